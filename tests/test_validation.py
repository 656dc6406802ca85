"""Tests for payload and form validation."""
import pytest

from ghostwire.functions.validation import (
    validate_group, validate_login, validate_registration, validate_send_message
)


def payload(**overrides):
    base = {'targetId': 'g1', 'type': 'group', 'content': 'hello'}
    base.update(overrides)
    return base


class TestSendMessage:

    def test_valid_group_and_private(self):
        assert validate_send_message(payload()) is None
        assert validate_send_message(payload(type='private')) is None
        assert validate_send_message(payload(content='x' * 1000)) is None

    @pytest.mark.parametrize('bad, reason', [
        (payload(targetId=''), 'Target ID'),
        (payload(targetId=None), 'Target ID'),
        (payload(content=''), 'empty'),
        (payload(content='   \n\t'), 'empty'),
        (payload(content=None), 'empty'),
        (payload(content='x' * 1001), '1000'),
        (payload(type='broadcast'), 'type'),
        (payload(type=None), 'type'),
        (payload(clientId=''), 'client'),
        (payload(clientId='x' * 65), 'client'),
        ('just a string', 'payload'),
        (None, 'payload'),
    ])
    def test_invalid(self, bad, reason):
        error = validate_send_message(bad)
        assert error is not None
        assert reason in error

    def test_configurable_limit(self):
        assert validate_send_message(payload(content='x' * 11), max_length=10) is not None


class TestGroup:

    def test_valid(self):
        assert validate_group('abc', '') is None
        assert validate_group('x' * 50, 'd' * 200) is None

    @pytest.mark.parametrize('name, description', [
        ('', ''),
        ('   ', ''),
        ('ab', ''),
        ('x' * 51, ''),
        ('valid', 'd' * 201),
        (None, ''),
    ])
    def test_invalid(self, name, description):
        assert validate_group(name, description) is not None


class TestRegistration:

    def test_valid(self):
        assert validate_registration('alice', 'alice@example.com', 'Password123') is None

    @pytest.mark.parametrize('username, email, password', [
        ('al', 'alice@example.com', 'Password123'),
        ('a' * 21, 'alice@example.com', 'Password123'),
        ('alice', 'not-an-email', 'Password123'),
        ('alice', 'alice@example.com', 'short'),
        (None, None, None),
    ])
    def test_invalid(self, username, email, password):
        assert validate_registration(username, email, password) is not None

    def test_login_requires_both_fields(self):
        assert validate_login('', 'x') is not None
        assert validate_login('a@b.c', '') is not None
        assert validate_login('a@b.c', 'x') is None
