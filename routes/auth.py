# routes/auth.py
# Маршруты для авторизации

from flask import Blueprint, jsonify, request, session

from extensions import db
from models.user import User
from logic import users

auth_bp = Blueprint('auth', __name__)


def current_user():
    user_id = session.get('user_id')
    if user_id is None:
        return None
    user = db.session.get(User, user_id)
    if user is None:
        # Пользователь удален, а сессия осталась
        session.clear()
    return user


def _payload():
    return request.get_json(silent=True) or request.form.to_dict()


@auth_bp.route('/login', methods=['POST'])
def login():
    user_code = _payload().get('code')
    if not user_code:
        return jsonify({'error': 'bad_request', 'message': 'Access code is required'}), 400

    # Ищем пользователя в базе данных по коду
    user = users.find_by_code(user_code)
    if user is None:
        return jsonify({'error': 'unauthorized', 'message': 'Invalid access code'}), 401

    session.clear()  # Очищаем старую сессию
    session['user_id'] = user.id
    session['user_role'] = user.role
    return jsonify({'id': user.id, 'role': user.role, 'name': user.display_name})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'status': 'ok'})


@auth_bp.route('/register', methods=['POST'])
def register():
    # Самостоятельно регистрируются только участники
    data = _payload()
    user = users.register_user(name=data.get('name'), email=data.get('email'))
    return jsonify({'id': user.id, 'code': user.code, 'role': user.role}), 201
