# app.py
# Основной файл Flask-приложения с использованием паттерна Application Factory

import logging

import click
from flask import Flask, jsonify

from config import Config
from extensions import db, migrate
from errors import EngineError

# Важно импортировать модели здесь, чтобы Alembic (Migrate) мог их видеть
from models import (User, Contest, Sample, PhysicalEvaluation, JudgeAssignment,  # noqa: F401
                    SensoryEvaluation, FinalEvaluation, TopResult, Notification)

logger = logging.getLogger(__name__)


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    logging.getLogger().setLevel(level)
    app.logger.setLevel(level)


def create_app(config_class=Config):
    # Создаем экземпляр приложения
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    # --- Инициализируем расширения С ПРИЛОЖЕНИЕМ ---
    db.init_app(app)
    migrate.init_app(app, db)

    # --- Регистрируем наши Blueprints (маршруты) ---
    from routes.auth import auth_bp
    from routes.main import main_bp
    from routes.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)

    # Любая ошибка движка превращается в JSON с кодом из errors.py
    @app.errorhandler(EngineError)
    def handle_engine_error(error):
        logger.warning('%s: %s', error.kind, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.cli.command('recompute-rankings')
    def recompute_rankings_command():
        """Пересобрать таблицу top_results."""
        from logic.base import transactional
        from logic.ranking import recompute_top_results

        rows = transactional(recompute_top_results)()
        click.echo(f'Ranking rebuilt: {len(rows)} row(s)')

    @app.cli.command('init-db')
    def init_db_command():
        """Создать таблицы без миграций (для разработки)."""
        db.create_all()
        click.echo('Database tables created')

    return app
