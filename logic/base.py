# logic/base.py
# Общие помощники для операций движка

import logging
from datetime import date
from functools import wraps

from extensions import db
from errors import NotFound

logger = logging.getLogger(__name__)

_UNIT_KEY = 'engine_unit_depth'


def transactional(f):
    """
    Одна публичная операция движка - одна транзакция.

    Все изменения (сама запись, переходы статусов, пересчет рейтинга,
    уведомления) идут через db.session и фиксируются одним commit. Любое
    исключение откатывает всё. Вложенные вызовы других операций коммит не
    делают - это делает только внешний вызов.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        info = db.session.info
        depth = info.get(_UNIT_KEY, 0)
        info[_UNIT_KEY] = depth + 1
        try:
            result = f(*args, **kwargs)
            if depth == 0:
                db.session.commit()
            return result
        except Exception:
            if depth == 0:
                db.session.rollback()
                logger.warning('Operation %s rolled back', f.__name__)
            raise
        finally:
            info[_UNIT_KEY] = depth
    return decorated_function


def today():
    return date.today()


def get_or_404(model, entity_id):
    obj = db.session.get(model, entity_id)
    if obj is None:
        raise NotFound(model.__name__, entity_id)
    return obj
