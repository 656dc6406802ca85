# User store: registration, lookup, search, profile updates

import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from ghostwire.errors import Conflict, NotFound, PersistenceFailed, Unauthenticated, ValidationFailed
from ghostwire.extensions import db
from ghostwire.functions.validation import validate_username
from ghostwire.models import User

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


def find_by_id(user_id):
    if not user_id:
        return None
    return db.session.get(User, user_id)


def find_by_email(email):
    if not email:
        return None
    return User.query.filter_by(email=email.strip().lower()).first()


def search(term, limit=SEARCH_LIMIT):
    # Match on username or email, case-insensitive substring
    pattern = f"%{term}%"
    return (
        User.query
        .filter(or_(User.username.ilike(pattern), User.email.ilike(pattern)))
        .order_by(User.username)
        .limit(limit)
        .all()
    )


def register(username, email, password):
    email = email.strip().lower()
    if find_by_email(email):
        raise Conflict("Email already registered.")
    if User.query.filter_by(username=username).first():
        raise Conflict("Username already taken.")

    user = User(
        username=username,
        email=email,
        password_hash=generate_password_hash(password, method='scrypt')
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Email or username already registered.")
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[USERS] Failed to register {email}: {e}")
        raise PersistenceFailed("Failed to register user")
    logger.info(f"[USERS] Registered {user.id} ({user.username})")
    return user


def authenticate(email, password):
    user = find_by_email(email)
    if not user or not check_password_hash(user.password_hash, password):
        raise Unauthenticated("Invalid email or password")
    return user


def update_profile(user_id, data):
    # Only keys present in data are touched; None clears avatar/color
    user = find_by_id(user_id)
    if not user:
        raise NotFound("User not found")

    if 'username' in data:
        username = data['username']
        error = validate_username(username)
        if error:
            raise ValidationFailed(error)
        taken = User.query.filter(User.username == username, User.id != user.id).first()
        if taken:
            raise Conflict("Username already taken.")
        user.username = username
    if 'avatarUrl' in data:
        user.avatar_url = data['avatarUrl'] or None
    if 'color' in data:
        user.color = data['color'] or None

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[USERS] Failed to update profile {user_id}: {e}")
        raise PersistenceFailed("Failed to update profile")
    return user
