# Authentication and profile routes

import logging

from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user

from ghostwire.errors import ValidationFailed
from ghostwire.extensions import registry
from ghostwire.functions import users
from ghostwire.functions.tokens import issue_token
from ghostwire.functions.validation import validate_registration, validate_login

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _body():
    return request.get_json(silent=True) or {}


def _cookie_options():
    return {
        'httponly': True,
        'secure': current_app.config.get('TOKEN_COOKIE_SECURE', False),
        'samesite': 'Lax',
    }


@auth_bp.route('/register', methods=['POST'])
def register():
    # Body: { username, email, password }
    data = _body()
    username = data.get('username')
    email = data.get('email')
    password = data.get('password')

    error = validate_registration(username, email, password)
    if error:
        raise ValidationFailed(error)

    user = users.register(username, email, password)
    return jsonify({'message': 'User registered', 'user': user.to_profile()}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    # Body: { email, password }; sets the token cookie and returns the token
    data = _body()
    email = data.get('email')
    password = data.get('password')

    error = validate_login(email, password)
    if error:
        raise ValidationFailed(error)

    user = users.authenticate(email, password)
    token = issue_token(user)

    response = jsonify({
        'message': 'Login successful',
        'user': user.to_profile(online=registry.is_online(user.id)),
        'token': token
    })
    response.set_cookie(
        current_app.config['TOKEN_COOKIE_NAME'],
        token,
        max_age=current_app.config['TOKEN_TTL_SECONDS'],
        **_cookie_options()
    )
    logger.info(f"[AUTH] User {user.id} logged in")
    return response


@auth_bp.route('/logout', methods=['POST'])
def logout():
    response = jsonify({'message': 'Logged out'})
    response.delete_cookie(current_app.config['TOKEN_COOKIE_NAME'], **_cookie_options())
    return response


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify({'user': current_user.to_profile(online=registry.is_online(current_user.id))})


@auth_bp.route('/me', methods=['PATCH'])
@login_required
def update_profile():
    # Body: any of { username, avatarUrl, color }
    data = _body()
    changes = {key: data[key] for key in ('username', 'avatarUrl', 'color') if key in data}
    user = users.update_profile(current_user.id, changes)
    return jsonify({
        'message': 'Profile updated',
        'user': user.to_profile(online=registry.is_online(user.id))
    })


@auth_bp.route('/users', methods=['GET'])
@login_required
def search_users():
    # GET /api/auth/users?q=term
    term = (request.args.get('q') or '').strip()
    if len(term) < 2:
        return jsonify([])
    return jsonify([u.to_public() for u in users.search(term)])
