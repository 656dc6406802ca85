# Credential verification: signed, expiring bearer tokens (JWT)

from collections import namedtuple
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from ghostwire.errors import Unauthenticated

ALGORITHM = 'HS256'

# Who a verified token speaks for
Identity = namedtuple('Identity', ['user_id', 'username'])


def _secret(secret=None):
    return secret or current_app.config['JWT_SECRET']


def issue_token(user, secret=None, ttl=None):
    # Sign a token carrying the user's id and username
    if ttl is None:
        ttl = current_app.config.get('TOKEN_TTL_SECONDS', 7 * 24 * 60 * 60)
    now = datetime.now(timezone.utc)
    claims = {
        'sub': str(user.id),
        'username': user.username,
        'iat': now,
        'exp': now + timedelta(seconds=ttl),
    }
    return jwt.encode(claims, _secret(secret), algorithm=ALGORITHM)


def verify_token(token, secret=None):
    # Returns an Identity or raises Unauthenticated
    if not token or not isinstance(token, str):
        raise Unauthenticated('No token provided')
    try:
        claims = jwt.decode(token, _secret(secret), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated('Token expired')
    except jwt.InvalidTokenError:
        raise Unauthenticated('Invalid token')
    user_id = claims.get('sub')
    if not user_id:
        raise Unauthenticated('Invalid token')
    return Identity(user_id=user_id, username=claims.get('username'))


def token_from_request(request, auth=None):
    # Bearer header, then cookie, then the socket handshake auth payload
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        token = header[len('Bearer '):].strip()
        if token:
            return token

    cookie_name = current_app.config.get('TOKEN_COOKIE_NAME', 'token')
    token = request.cookies.get(cookie_name)
    if token:
        return token

    if isinstance(auth, dict) and auth.get('token'):
        return auth.get('token')
    return None


def authenticate_request(request, auth=None):
    return verify_token(token_from_request(request, auth))
