# Configuration file for GhostWire application

import json
import os

# Try to load configuration from `config.json` located next to this file.
# If the file is missing or a key is absent, fall back to the defaults below.
# Secrets and the database URL can also come from the environment.
_BASE_DIR = os.path.dirname(os.path.abspath(__file__))
_JSON_PATH = os.path.join(_BASE_DIR, 'config.json')

# Defaults
_defaults = {
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///ghostwire.db',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'SECRET_KEY': 'ghostwire_secret_key',
    'JWT_SECRET': 'default_secret',
    'TOKEN_TTL_SECONDS': 7 * 24 * 60 * 60,
    'TOKEN_COOKIE_NAME': 'token',
    'TOKEN_COOKIE_SECURE': False,
    'HISTORY_LIMIT': 50,
    'MESSAGE_MAX_LENGTH': 1000,
    'GROUP_LIMIT_PER_ADMIN': 5,
    'MAX_ROOMS_PER_CONNECTION': None,
    'PERSISTENCE_TIMEOUT': 5,
    'SOCKETIO_ASYNC_MODE': 'eventlet',
    'CORS_ALLOWED_ORIGINS': 'http://localhost:3000',
}

# Environment variable -> config key
_env_keys = {
    'DATABASE_URL': 'SQLALCHEMY_DATABASE_URI',
    'SECRET_KEY': 'SECRET_KEY',
    'JWT_SECRET': 'JWT_SECRET',
}

_cfg = {}
try:
    with open(_JSON_PATH, 'r', encoding='utf-8') as f:
        _cfg = json.load(f) or {}
except FileNotFoundError:
    # No config.json present, use defaults
    _cfg = {}
except ValueError:
    # Unparseable config.json: fall back to defaults
    _cfg = {}

for _env_name, _key in _env_keys.items():
    if os.environ.get(_env_name):
        _cfg[_key] = os.environ[_env_name]


# Helper to get value from env, JSON or defaults
def _get(key):
    return _cfg.get(key, _defaults.get(key))


# Database
SQLALCHEMY_DATABASE_URI = _get('SQLALCHEMY_DATABASE_URI')
SQLALCHEMY_TRACK_MODIFICATIONS = _get('SQLALCHEMY_TRACK_MODIFICATIONS')

# Security
SECRET_KEY = _get('SECRET_KEY')
JWT_SECRET = _get('JWT_SECRET')
TOKEN_TTL_SECONDS = int(_get('TOKEN_TTL_SECONDS'))
TOKEN_COOKIE_NAME = _get('TOKEN_COOKIE_NAME')
TOKEN_COOKIE_SECURE = bool(_get('TOKEN_COOKIE_SECURE'))

# Chat limits
HISTORY_LIMIT = int(_get('HISTORY_LIMIT'))
MESSAGE_MAX_LENGTH = int(_get('MESSAGE_MAX_LENGTH'))
GROUP_LIMIT_PER_ADMIN = int(_get('GROUP_LIMIT_PER_ADMIN'))
MAX_ROOMS_PER_CONNECTION = _get('MAX_ROOMS_PER_CONNECTION')

# Store calls give up after this many seconds
PERSISTENCE_TIMEOUT = float(_get('PERSISTENCE_TIMEOUT'))

# Socket.IO
SOCKETIO_ASYNC_MODE = _get('SOCKETIO_ASYNC_MODE')
CORS_ALLOWED_ORIGINS = _get('CORS_ALLOWED_ORIGINS')


def engine_options(uri, timeout):
    # SQLAlchemy engine options bounding how long a store call may take.
    # SQLite gives up waiting for a lock after `timeout`; server databases
    # also cancel statements running longer than that.
    options = {}
    millis = int(timeout * 1000)
    if uri.startswith('sqlite'):
        options['connect_args'] = {'timeout': timeout, 'check_same_thread': False}
        if ':memory:' in uri or uri in ('sqlite://', 'sqlite:///'):
            from sqlalchemy.pool import StaticPool
            options['poolclass'] = StaticPool
        return options

    if uri.startswith('postgresql'):
        options['connect_args'] = {
            'connect_timeout': max(1, int(timeout)),
            'options': f"-c statement_timeout={millis} -c lock_timeout={millis}",
        }
    elif uri.startswith('mysql'):
        options['connect_args'] = {
            'connect_timeout': max(1, int(timeout)),
            'read_timeout': max(1, int(timeout)),
            'write_timeout': max(1, int(timeout)),
        }
    options['pool_timeout'] = timeout
    options['pool_pre_ping'] = True
    return options
