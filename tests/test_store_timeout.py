"""Store calls that cannot finish within PERSISTENCE_TIMEOUT."""
import sqlite3
import time
from contextlib import contextmanager

import pytest

import config
from conftest import TEST_CONFIG, drain
from ghostwire import create_app
from ghostwire.extensions import db, registry
from ghostwire.models import Message

TIMEOUT = 0.3


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / 'ghostwire.db'


@pytest.fixture
def app(db_path):
    # File database, so a second connection can hold the write lock
    registry.clear()
    flask_app = create_app(dict(
        TEST_CONFIG,
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{db_path}",
        PERSISTENCE_TIMEOUT=TIMEOUT,
    ))
    yield flask_app
    with flask_app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
    registry.clear()


@contextmanager
def hold_write_lock(db_path):
    # Another connection owns the database's write lock until the block ends
    other = sqlite3.connect(str(db_path), isolation_level=None)
    other.execute('BEGIN IMMEDIATE')
    try:
        yield
    finally:
        other.execute('ROLLBACK')
        other.close()


def test_locked_store_reports_error_within_timeout(app, connect, make_user, make_group, db_path):
    alice, bob = make_user('alice'), make_user('bob')
    group_id = make_group(alice, members=[bob])
    a, b = connect(alice), connect(bob)
    a.emit('join_group', group_id)
    b.emit('join_group', group_id)
    drain(a), drain(b)

    with hold_write_lock(db_path):
        started = time.monotonic()
        a.emit('send_message', {'targetId': group_id, 'type': 'group', 'content': 'stuck?'})
        elapsed = time.monotonic() - started

    assert drain(a) == {'error': [{'message': 'Failed to send message'}]}
    assert drain(b) == {}
    assert elapsed < TIMEOUT + 2


def test_message_stored_once_lock_is_released(app, connect, make_user, make_group, db_path):
    alice = make_user('alice')
    group_id = make_group(alice)
    a = connect(alice)
    a.emit('join_group', group_id)
    drain(a)

    with hold_write_lock(db_path):
        a.emit('send_message', {'targetId': group_id, 'type': 'group', 'content': 'first'})
    a.emit('send_message', {'targetId': group_id, 'type': 'group', 'content': 'second'})

    received = drain(a)
    assert len(received['error']) == 1
    assert [m['content'] for m in received['new_message']] == ['second']
    with app.app_context():
        assert [m.content for m in Message.query.all()] == ['second']


def test_postgres_statements_are_cancelled_after_the_timeout():
    options = config.engine_options('postgresql://u@db/chat', 5)
    assert 'statement_timeout=5000' in options['connect_args']['options']
    assert 'lock_timeout=5000' in options['connect_args']['options']
    assert options['pool_timeout'] == 5


def test_mysql_reads_and_writes_time_out():
    options = config.engine_options('mysql+pymysql://u@db/chat', 5)
    assert options['connect_args']['read_timeout'] == 5
    assert options['connect_args']['write_timeout'] == 5
    assert options['pool_timeout'] == 5


def test_sqlite_waits_for_locks_at_most_the_timeout():
    options = config.engine_options('sqlite:///chat.db', 2)
    assert options['connect_args']['timeout'] == 2
    assert 'poolclass' not in options
