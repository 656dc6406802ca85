# Socket.IO event handlers: the real-time message gateway
#
# connect -> join_group* / send_message* -> disconnect
# Every handler after connect receives the ConnectionContext bound at handshake.

import functools
import logging

from flask import current_app, request
from flask_socketio import emit

from ghostwire.errors import AuthorizationFailed, ChatError, NotFound, Unauthenticated, ValidationFailed
from ghostwire.extensions import db, registry, socketio
from ghostwire.functions import groups as group_store
from ghostwire.functions import messages as message_store
from ghostwire.functions import users as user_store
from ghostwire.functions.tokens import authenticate_request
from ghostwire.functions.validation import validate_send_message
from ghostwire.sockets.registry import group_room, private_room

logger = logging.getLogger(__name__)


def gateway_event(name):
    # Register a handler that runs with the caller's context and reports
    # every failure back to the caller as an `error` event
    def decorator(fn):
        @functools.wraps(fn)
        def handler(*args):
            ctx = registry.context_for(request.sid)
            try:
                if ctx is None:
                    raise Unauthenticated('Not authenticated')
                return fn(ctx, *args)
            except ChatError as e:
                logger.info(f"[SOCKET {name.upper()}] {request.sid}: {e.message}")
                emit('error', {'message': e.message})
            except Exception:
                logger.exception(f"[SOCKET {name.upper()}] Unexpected failure for {request.sid}")
                db.session.rollback()
                emit('error', {'message': 'Internal server error'})
        return socketio.on(name)(handler)
    return decorator


@socketio.on('connect')
def on_connect(auth=None):
    # Authenticate before the connection can join anything
    try:
        identity = authenticate_request(request, auth)
    except Unauthenticated as e:
        logger.warning(f"[SOCKET CONNECT] Rejected {request.sid}: {e.message}")
        raise ConnectionRefusedError('Authentication error')

    ctx = registry.bind_identity(request.sid, identity)
    logger.info(f"[SOCKET CONNECT] User {ctx.user_id} ({ctx.username}) connected as {ctx.sid}, joined {ctx.private_room}")


@gateway_event('join_group')
def on_join_group(ctx, data=None):
    group_id = data.get('groupId') if isinstance(data, dict) else data
    if isinstance(group_id, int) and not isinstance(group_id, bool):
        group_id = str(group_id)
    if not group_id or not isinstance(group_id, str):
        raise ValidationFailed('Group ID is required.')

    room = group_room(group_id)
    if registry.join_room(ctx.sid, room):
        logger.info(f"[SOCKET JOIN] User {ctx.user_id} joined {room}")

    # Point-in-time snapshot for this connection only
    history = message_store.get_group_history(group_id, current_app.config.get('HISTORY_LIMIT', 50))
    emit('history', history)


@gateway_event('send_message')
def on_send_message(ctx, payload=None):
    error = validate_send_message(payload, current_app.config.get('MESSAGE_MAX_LENGTH', 1000))
    if error:
        raise ValidationFailed(error)

    target_id = payload['targetId']
    msg_type = payload['type']
    content = payload['content'].strip()

    if msg_type == 'group':
        if not group_store.get_group(target_id):
            raise NotFound('Group not found')
        if not group_store.is_member(target_id, ctx.user_id):
            raise AuthorizationFailed('You are not a member of this group')
        rooms = [group_room(target_id)]
    else:
        if not user_store.find_by_id(target_id):
            raise NotFound('Recipient not found')
        # Recipient plus the sender's own connections
        rooms = [private_room(target_id), ctx.private_room]

    # persist -> enrich -> broadcast under the target room's lock, so the room sees commit order
    with registry.room_lock(rooms[0]):
        msg, created = message_store.save_message(
            ctx.user_id, target_id, msg_type, content,
            client_id=payload.get('clientId')
        )
        enriched = message_store.enrich(msg)
        reached = registry.broadcast(rooms, 'new_message', enriched)

    logger.info(
        f"[SOCKET SEND] {msg_type} message {msg.id} from {ctx.user_id} to {target_id} "
        f"reached {reached} connections{'' if created else ' (retry)'}"
    )


@socketio.on('disconnect')
def on_disconnect(reason=None):
    rooms = registry.rooms_for(request.sid)
    ctx = registry.leave_all(request.sid)
    if ctx is not None:
        logger.info(
            f"[SOCKET DISCONNECT] User {ctx.user_id} left {len(rooms)} rooms after "
            f"{ctx.connected_for():.0f}s ({reason or 'closed'})"
        )
