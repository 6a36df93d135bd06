# logic/users.py
# Регистрация пользователей по персональному коду доступа

import logging
import secrets

from extensions import db
from models import User
from models.user import ROLES
from errors import ConstraintViolation
from logic import notifications
from logic.base import transactional

logger = logging.getLogger(__name__)


def generate_access_code():
    while True:
        code = f'{secrets.randbelow(1_000_000):06d}'
        if User.query.filter_by(code=code).first() is None:
            return code


@transactional
def register_user(name=None, email=None, role='participant', code=None):
    if role not in ROLES:
        raise ConstraintViolation(f"Unknown role '{role}'")
    if email and User.query.filter_by(email=email).first() is not None:
        raise ConstraintViolation(f'User with email {email} already exists')
    if code and User.query.filter_by(code=code).first() is not None:
        raise ConstraintViolation(f'Access code {code} is already taken')

    user = User(code=code or generate_access_code(), name=name, email=email, role=role)
    db.session.add(user)
    db.session.flush()
    logger.info('User %s registered with role %s', user.id, role)
    notifications.on_user_registered(user)
    return user


def find_by_code(code):
    return User.query.filter_by(code=code).first()
