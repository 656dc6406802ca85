# Group store: creation (with the per-admin limit), membership, lookups

import logging

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ghostwire.errors import (
    AuthorizationFailed, BusinessRuleViolation, ChatError, NotFound,
    PersistenceFailed, ValidationFailed
)
from ghostwire.extensions import db
from ghostwire.functions.validation import validate_group
from ghostwire.models import Group, GroupMember, User

logger = logging.getLogger(__name__)


def get_group(group_id):
    if not group_id:
        return None
    return db.session.get(Group, group_id)


def count_by_admin(admin_id):
    return db.session.query(func.count(Group.id)).filter(Group.admin_id == admin_id).scalar() or 0


def is_member(group_id, user_id):
    return db.session.query(GroupMember.id).filter_by(group_id=group_id, user_id=user_id).first() is not None


def find_user_groups(user_id):
    return (
        Group.query
        .join(GroupMember, GroupMember.group_id == Group.id)
        .filter(GroupMember.user_id == user_id)
        .order_by(Group.created_at)
        .all()
    )


def _existing_user_ids(user_ids):
    user_ids = [uid for uid in dict.fromkeys(user_ids) if uid]
    if not user_ids:
        return []
    found = {row.id for row in db.session.query(User.id).filter(User.id.in_(user_ids))}
    return [uid for uid in user_ids if uid in found]


def create_group(admin_id, name, description='', member_ids=()):
    """Create a group, its admin membership and any extra memberships.

    Everything happens in one transaction: the admin's row is locked, their
    existing groups are counted, and only then are the rows inserted. A
    limit violation is raised before anything is written; any other failure
    rolls the whole group back.
    """
    error = validate_group(name, description)
    if error:
        raise ValidationFailed(error)
    limit = current_app.config.get('GROUP_LIMIT_PER_ADMIN', 5)

    try:
        admin = db.session.query(User).filter(User.id == admin_id).with_for_update().first()
        if admin is None:
            raise NotFound("Admin user not found")

        existing = count_by_admin(admin_id)
        if existing >= limit:
            raise BusinessRuleViolation(f"Group creation limit reached (max {limit} groups)")

        group = Group(name=name, description=description or '', admin_id=admin_id)
        db.session.add(group)
        db.session.flush()

        db.session.add(GroupMember(group_id=group.id, user_id=admin_id))
        extra = [uid for uid in _existing_user_ids(member_ids) if uid != admin_id]
        for uid in extra:
            db.session.add(GroupMember(group_id=group.id, user_id=uid))

        db.session.commit()
    except ChatError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[GROUPS] Failed to create group for {admin_id}: {e}")
        raise PersistenceFailed("Failed to create group")

    logger.info(f"[GROUPS] Group {group.id} created by {admin_id} with {len(extra) + 1} members")
    return group


def add_member(group_id, user_id):
    # Idempotent; returns True when a new membership row was written
    if is_member(group_id, user_id):
        return False
    db.session.add(GroupMember(group_id=group_id, user_id=user_id))
    return True


def add_members(group_id, requester_id, user_ids):
    # Admin-only; unknown users and existing members are skipped
    group = get_group(group_id)
    if not group:
        raise NotFound("Group not found")
    if not group.is_admin(requester_id):
        raise AuthorizationFailed("Only the group admin can add members")

    added = 0
    try:
        for uid in _existing_user_ids(user_ids):
            if add_member(group_id, uid):
                added += 1
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[GROUPS] Failed to add members to {group_id}: {e}")
        raise PersistenceFailed("Failed to add members")

    logger.info(f"[GROUPS] Added {added} members to {group_id}")
    return added
