"""Tests for the group store and the /api/groups routes."""
import pytest
from sqlalchemy.exc import OperationalError

from conftest import auth_header
from ghostwire.errors import AuthorizationFailed, BusinessRuleViolation, PersistenceFailed
from ghostwire.functions import groups, messages
from ghostwire.models import Group, GroupMember


def counts(app):
    with app.app_context():
        return Group.query.count(), GroupMember.query.count()


class TestStore:

    def test_creator_is_member_and_admin(self, app, make_user):
        alice = make_user('alice')
        with app.app_context():
            group = groups.create_group(alice.id, 'General', 'chat')
            assert group.is_admin(alice.id)
            assert groups.is_member(group.id, alice.id)
            assert groups.count_by_admin(alice.id) == 1

    def test_extra_members_added_in_same_transaction(self, app, make_user):
        alice, bob, carol = make_user('alice'), make_user('bob'), make_user('carol')
        with app.app_context():
            group = groups.create_group(alice.id, 'General', member_ids=[bob.id, carol.id, bob.id, 'nobody'])
            members = {m.user_id for m in group.members}
        assert members == {alice.id, bob.id, carol.id}

    def test_failure_midway_leaves_nothing_behind(self, app, make_user, monkeypatch):
        alice, bob = make_user('alice'), make_user('bob')

        def broken(user_ids):
            raise OperationalError('SELECT', {}, Exception('connection lost'))

        monkeypatch.setattr(groups, '_existing_user_ids', broken)
        with app.app_context():
            with pytest.raises(PersistenceFailed):
                groups.create_group(alice.id, 'General', member_ids=[bob.id])
        assert counts(app) == (0, 0)

    def test_sixth_group_rejected_before_any_write(self, app, make_user):
        alice = make_user('alice')
        with app.app_context():
            for i in range(5):
                groups.create_group(alice.id, f"Group {i}")
        before = counts(app)

        with app.app_context():
            with pytest.raises(BusinessRuleViolation):
                groups.create_group(alice.id, 'One too many')
        assert counts(app) == before == (5, 5)

    def test_limit_is_per_admin(self, app, make_user):
        alice, bob = make_user('alice'), make_user('bob')
        with app.app_context():
            for i in range(5):
                groups.create_group(alice.id, f"Group {i}")
            groups.create_group(bob.id, 'Bob group')
            assert groups.count_by_admin(bob.id) == 1

    def test_add_members_admin_only(self, app, make_user, make_group):
        alice, bob, carol = make_user('alice'), make_user('bob'), make_user('carol')
        group_id = make_group(alice, members=[bob])
        with app.app_context():
            with pytest.raises(AuthorizationFailed):
                groups.add_members(group_id, bob.id, [carol.id])
            assert not groups.is_member(group_id, carol.id)
            assert groups.add_members(group_id, alice.id, [carol.id, bob.id]) == 1
            assert groups.is_member(group_id, carol.id)

    def test_find_user_groups(self, app, make_user, make_group):
        alice, bob = make_user('alice'), make_user('bob')
        shared = make_group(alice, 'Shared', members=[bob])
        make_group(alice, 'Private')
        with app.app_context():
            assert [g.id for g in groups.find_user_groups(bob.id)] == [shared]
            assert len(groups.find_user_groups(alice.id)) == 2


class TestRoutes:

    def test_requires_authentication(self, http):
        res = http.get('/api/groups')
        assert res.status_code == 401
        assert res.get_json() == {'error': 'Unauthorized'}

    def test_create_and_list(self, http, make_user):
        alice, bob = make_user('alice'), make_user('bob')
        res = http.post('/api/groups', json={
            'name': 'General', 'description': 'all hands', 'members': [bob.email]
        }, headers=auth_header(alice))
        assert res.status_code == 201
        group = res.get_json()['group']
        assert group['adminId'] == alice.id

        listed = http.get('/api/groups', headers=auth_header(bob)).get_json()
        assert [g['id'] for g in listed] == [group['id']]

    def test_create_validation_error(self, http, make_user):
        alice = make_user('alice')
        res = http.post('/api/groups', json={'name': 'ab'}, headers=auth_header(alice))
        assert res.status_code == 400
        assert '3 and 50' in res.get_json()['error']

    def test_create_limit_over_http(self, app, http, make_user):
        alice = make_user('alice')
        for i in range(5):
            assert http.post('/api/groups', json={'name': f"Group {i}"}, headers=auth_header(alice)).status_code == 201
        res = http.post('/api/groups', json={'name': 'Sixth'}, headers=auth_header(alice))
        assert res.status_code == 400
        assert 'limit' in res.get_json()['error']
        assert counts(app) == (5, 5)

    def test_add_members_route(self, http, make_user, make_group):
        alice, bob, carol = make_user('alice'), make_user('bob'), make_user('carol')
        group_id = make_group(alice)

        res = http.post(f"/api/groups/{group_id}/add-members",
                        json={'emails': [bob.email], 'userIds': [carol.id]}, headers=auth_header(alice))
        assert res.status_code == 200
        assert res.get_json()['added'] == 2

        res = http.post(f"/api/groups/{group_id}/add-members",
                        json={'userIds': [alice.id]}, headers=auth_header(bob))
        assert res.status_code == 403

        res = http.post(f"/api/groups/{group_id}/add-members", json={}, headers=auth_header(alice))
        assert res.status_code == 400

        res = http.post('/api/groups/missing/add-members', json={'userIds': [bob.id]}, headers=auth_header(alice))
        assert res.status_code == 404

    def test_messages_for_members_only(self, app, http, make_user, make_group):
        alice, bob, carol = make_user('alice'), make_user('bob'), make_user('carol')
        group_id = make_group(alice, members=[bob])
        with app.app_context():
            for text in ('one', 'two', 'three'):
                messages.save_message(alice.id, group_id, 'group', text)

        res = http.get(f"/api/groups/{group_id}/messages", headers=auth_header(bob))
        assert res.status_code == 200
        assert [m['content'] for m in res.get_json()['messages']] == ['one', 'two', 'three']

        res = http.get(f"/api/groups/{group_id}/messages?limit=2", headers=auth_header(bob))
        assert [m['content'] for m in res.get_json()['messages']] == ['two', 'three']

        assert http.get(f"/api/groups/{group_id}/messages", headers=auth_header(carol)).status_code == 403
        assert http.get('/api/groups/missing/messages', headers=auth_header(bob)).status_code == 404
