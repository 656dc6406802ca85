# Group API routes (create, list, add members, message history)

import logging

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from ghostwire.errors import AuthorizationFailed, NotFound, ValidationFailed
from ghostwire.functions import groups, messages, users

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__)


# Helper functions
def resolve_user_ids(entries):
    # Accepts emails, user ids, or {id: ...} objects; unknown emails are dropped
    resolved = []
    for entry in entries or []:
        if isinstance(entry, dict):
            entry = entry.get('id')
        if not isinstance(entry, str) or not entry:
            continue
        if '@' in entry:
            user = users.find_by_email(entry)
            if user:
                resolved.append(user.id)
        else:
            resolved.append(entry)
    return resolved


@api_bp.route('', methods=['POST'])
@login_required
def create_group():
    # Body: { name, description?, members? }
    data = request.get_json(silent=True) or {}
    members = data.get('members')
    if members is not None and not isinstance(members, list):
        raise ValidationFailed('Members must be a list.')

    group = groups.create_group(
        current_user.id,
        data.get('name'),
        data.get('description') or '',
        member_ids=resolve_user_ids(members)
    )
    return jsonify({'message': 'Group created', 'group': group.to_dict()}), 201


@api_bp.route('', methods=['GET'])
@login_required
def list_my_groups():
    return jsonify([g.to_dict() for g in groups.find_user_groups(current_user.id)])


@api_bp.route('/<group_id>/add-members', methods=['POST'])
@login_required
def add_members(group_id):
    # Body: { userIds?, emails? }; admin only
    data = request.get_json(silent=True) or {}
    user_ids = data.get('userIds') if isinstance(data.get('userIds'), list) else []
    emails = data.get('emails') if isinstance(data.get('emails'), list) else []

    resolved = resolve_user_ids(list(user_ids) + [e for e in emails if isinstance(e, str) and '@' in e])
    if not resolved:
        raise ValidationFailed('No valid users to add')

    added = groups.add_members(group_id, current_user.id, resolved)
    return jsonify({'message': 'Members added', 'added': added})


@api_bp.route('/<group_id>/messages', methods=['GET'])
@login_required
def get_messages(group_id):
    # Members only; oldest first
    if not groups.get_group(group_id):
        raise NotFound('Group not found')
    if not groups.is_member(group_id, current_user.id):
        raise AuthorizationFailed('You are not a member of this group')

    limit = request.args.get('limit', type=int)
    if limit is not None and limit <= 0:
        raise ValidationFailed('limit must be positive')
    return jsonify({'messages': messages.get_messages_by_group_id(group_id, limit=limit)})
