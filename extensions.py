# extensions.py
# Файл для хранения экземпляров расширений Flask

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()


def in_clause(column, values):
    """Текст CheckConstraint вида "column IN ('a', 'b')" из кортежа допустимых значений."""
    return f"{column} IN (" + ", ".join(f"'{v}'" for v in values) + ")"
