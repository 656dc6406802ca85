"""Shared test fixtures: an app on in-memory SQLite, users, socket clients."""
from types import SimpleNamespace

import pytest

from ghostwire import create_app
from ghostwire.extensions import db, registry, socketio
from ghostwire.functions import groups, users
from ghostwire.functions.tokens import issue_token

TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret-key',
    'JWT_SECRET': 'test-jwt-secret',
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'SOCKETIO_ASYNC_MODE': 'threading',
    'CORS_ALLOWED_ORIGINS': '*',
}


@pytest.fixture
def app():
    registry.clear()
    flask_app = create_app(dict(TEST_CONFIG))
    yield flask_app
    with flask_app.app_context():
        db.session.remove()
        db.drop_all()
    registry.clear()


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Register a user and return a plain record with a signed token."""
    def _make(username, email=None, password='Password123', **profile):
        with app.app_context():
            user = users.register(username, email or f"{username}@example.com", password)
            if profile:
                users.update_profile(user.id, profile)
            return SimpleNamespace(
                id=user.id,
                username=user.username,
                email=user.email,
                password=password,
                token=issue_token(user),
            )
    return _make


@pytest.fixture
def make_group(app):
    def _make(admin, name='General', members=()):
        with app.app_context():
            group = groups.create_group(admin.id, name, '', member_ids=[m.id for m in members])
            return group.id
    return _make


@pytest.fixture
def connect(app):
    """Open Socket.IO test connections; all are closed at teardown."""
    clients = []

    def _connect(user=None, auth=None, headers=None):
        if user is not None and auth is None and headers is None:
            auth = {'token': user.token}
        client = socketio.test_client(app, auth=auth, headers=headers)
        clients.append(client)
        return client

    yield _connect
    for client in clients:
        if client.is_connected():
            client.disconnect()


def drain(client):
    """Received events grouped by name, first argument only; empties the queue."""
    received = {}
    for r in client.get_received():
        received.setdefault(r['name'], []).append(r['args'][0] if r['args'] else None)
    return received


def auth_header(user):
    return {'Authorization': f"Bearer {user.token}"}
