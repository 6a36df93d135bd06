# config.py
# Конфигурация приложения Flask

import os


class Config:
    # Абсолютный путь к базе данных
    BASE_DIR = os.path.abspath(os.path.dirname(__file__))
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        f'sqlite:///{os.path.join(BASE_DIR, "instance", "contest.db")}'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.environ.get('SECRET_KEY', 'your-secret-key-change-me')  # Замени на случайный ключ в продакшене
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # --- Физическая оценка ---
    # В документации встречаются два диапазона влажности (3.5-8.0 и 5.5-8.5),
    # поэтому пороги задаются конфигурацией, а не в коде.
    PHYSICAL_THRESHOLDS = {
        'humidity_min': 3.5,
        'humidity_max': 8.0,
        'broken_grains_max': 10.0,
        'flat_grains_warning': 15.0,
        'insects_max': 0,
        'fermented_min': 60.0,
        'purple_beans_max': 15.0,
        'slaty_beans_max': 0.0,
        'internal_moldy_max': 0.0,
        'over_fermented_max': 0.0,
    }
    # Прошедший физическую оценку образец сразу становится 'approved'
    PHYSICAL_AUTO_APPROVE = True

    # --- Сенсорная оценка ---
    DEFECTS_DISQUALIFY_AT = 7.0
    DEFECTS_PENALTY_FROM = 3.0
    DEFECTS_PENALTY_RATE = 0.5

    # --- Рейтинг ---
    RANKING_TOP_N = 10
    RANKING_NOTIFY_TOP = 3


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'testing'
    LOG_LEVEL = 'WARNING'
