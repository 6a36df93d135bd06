# logic/__init__.py
# Бизнес-логика конкурса: статусы образцов, оценки, рейтинг, уведомления
