# Message store: persistence, history queries, enrichment

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from ghostwire.errors import PersistenceFailed, ValidationFailed
from ghostwire.extensions import db
from ghostwire.functions.ids import isoformat
from ghostwire.models import Message, User

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


def serialize_message(msg, sender=None):
    # Enriched wire shape; sender display fields come from `sender`
    sender = sender if sender is not None else msg.sender
    return {
        'id': msg.id,
        'senderId': msg.sender_id,
        'targetId': msg.target_id,
        'content': msg.content,
        'type': msg.type,
        'createdAt': isoformat(msg.created_at),
        'username': sender.username if sender else None,
        'avatarUrl': sender.avatar_url if sender else None,
        'color': sender.color if sender else None,
    }


def _find_by_client_id(sender_id, client_id):
    return Message.query.filter_by(sender_id=sender_id, client_id=client_id).first()


def _retry_of(existing, target_id, msg_type, content):
    # A client id names one message; reusing it for anything else is rejected
    if (existing.type, existing.target_id, existing.content) != (msg_type, target_id, content):
        raise ValidationFailed("Client message id already used")
    return existing, False


def save_message(sender_id, target_id, msg_type, content, client_id=None):
    """Insert one message and commit it.

    Returns ``(message, created)``. When ``client_id`` matches a message the
    sender already stored, that message is returned with ``created=False``
    and nothing is inserted. The stored message must have the same target,
    type and content, otherwise ValidationFailed is raised. Raises
    PersistenceFailed if the insert does not commit.
    """
    try:
        if client_id:
            existing = _find_by_client_id(sender_id, client_id)
            if existing:
                retry = _retry_of(existing, target_id, msg_type, content)
                logger.info(f"[MESSAGES] Duplicate client id {client_id} from {sender_id}, reusing {existing.id}")
                return retry

        msg = Message(
            sender_id=sender_id,
            group_id=target_id if msg_type == 'group' else None,
            recipient_id=target_id if msg_type == 'private' else None,
            type=msg_type,
            content=content,
            client_id=client_id
        )
        db.session.add(msg)
        db.session.commit()
        return msg, True
    except IntegrityError as e:
        db.session.rollback()
        # Lost a race against a retry carrying the same client id
        if client_id:
            existing = _find_by_client_id(sender_id, client_id)
            if existing:
                return _retry_of(existing, target_id, msg_type, content)
        logger.error(f"[MESSAGES] Insert rejected for {sender_id}: {e}")
        raise PersistenceFailed("Failed to send message")
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[MESSAGES] Insert failed for {sender_id}: {e}")
        raise PersistenceFailed("Failed to send message")


def enrich(msg):
    # Re-read the sender so profile edits show up on new messages
    sender = db.session.get(User, msg.sender_id, populate_existing=True)
    return serialize_message(msg, sender)


def get_group_history(group_id, limit=HISTORY_LIMIT):
    # Most recent `limit` messages of a group, oldest first
    try:
        rows = (
            Message.query
            .options(joinedload(Message.sender))
            .filter(Message.group_id == group_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[MESSAGES] History query failed for {group_id}: {e}")
        raise PersistenceFailed("Failed to load history")
    rows.reverse()
    return [serialize_message(m) for m in rows]


def get_messages_by_group_id(group_id, limit=None):
    # All messages of a group (or the latest `limit`), oldest first
    if limit:
        return get_group_history(group_id, limit)
    try:
        rows = (
            Message.query
            .options(joinedload(Message.sender))
            .filter(Message.group_id == group_id)
            .order_by(Message.created_at, Message.id)
            .all()
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[MESSAGES] Message query failed for {group_id}: {e}")
        raise PersistenceFailed("Failed to load messages")
    return [serialize_message(m) for m in rows]
