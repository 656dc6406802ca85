# Connection registry: live socket connections and the identity bound to each
#
# Room membership and fan-out belong to Flask-SocketIO (join_room, leave_room,
# emit to=...). The registry only remembers who each connection is and in
# which order it joined its group rooms.

import logging
import threading
import time
import weakref

import flask_socketio

logger = logging.getLogger(__name__)

NAMESPACE = '/'


def private_room(user_id):
    # Room every connection of a user auto-joins (direct messages)
    return f"user_{user_id}"


def group_room(group_id):
    return f"group_{group_id}"


class ConnectionContext:
    # Per-connection session state, handed to every event handler

    def __init__(self, sid, identity):
        self.sid = sid
        self.identity = identity
        self.private_room = private_room(identity.user_id)
        # Group rooms in join order, oldest first
        self.joined = []
        self.connected_at = time.time()

    @property
    def user_id(self):
        return self.identity.user_id

    @property
    def username(self):
        return self.identity.username

    def connected_for(self):
        return time.time() - self.connected_at

    def __repr__(self):
        return f"<ConnectionContext {self.sid} user={self.user_id} groups={len(self.joined)}>"


class ConnectionRegistry:
    """Binds connection ids to identities on top of Flask-SocketIO rooms.

    ``bind_identity``, ``join_room`` and ``leave_all`` run inside Socket.IO
    handlers, where Flask-SocketIO's room helpers have the app context they
    need. Queries read the Socket.IO server's room table directly, so they
    also work from REST requests and tests.
    """

    def __init__(self, max_rooms=None):
        self.max_rooms = max_rooms
        self._socketio = None
        self._lock = threading.RLock()
        self._connections = {}
        # Entries disappear once no sender holds the lock
        self._room_locks = weakref.WeakValueDictionary()

    def init_app(self, app, socketio):
        self.max_rooms = app.config.get('MAX_ROOMS_PER_CONNECTION')
        self._socketio = socketio
        app.extensions['ghostwire_registry'] = self

    @property
    def server(self):
        if self._socketio is None or self._socketio.server is None:
            raise RuntimeError('registry is not attached to a Socket.IO server; call init_app() first')
        return self._socketio.server

    # --- state changes ---

    def bind_identity(self, sid, identity):
        with self._lock:
            if sid in self._connections:
                raise RuntimeError(f"connection {sid} is already bound")
            ctx = ConnectionContext(sid, identity)
            self._connections[sid] = ctx
        flask_socketio.join_room(ctx.private_room, sid=sid, namespace=NAMESPACE)
        return ctx

    def join_room(self, sid, room_key):
        # Returns True when the connection was not in the room yet
        with self._lock:
            ctx = self._connections.get(sid)
            if ctx is None:
                raise KeyError(f"connection {sid} is not bound")
            if room_key in self.rooms_for(sid):
                return False
            flask_socketio.join_room(room_key, sid=sid, namespace=NAMESPACE)
            if room_key != ctx.private_room:
                ctx.joined.append(room_key)
                self._evict_oldest(ctx)
            return True

    def leave_all(self, sid):
        with self._lock:
            ctx = self._connections.pop(sid, None)
            if ctx is None:
                return None
            for room_key in self.rooms_for(sid):
                flask_socketio.leave_room(room_key, sid=sid, namespace=NAMESPACE)
            ctx.joined = []
        return ctx

    def _evict_oldest(self, ctx):
        if not self.max_rooms:
            return
        while len(ctx.joined) > self.max_rooms:
            oldest = ctx.joined.pop(0)
            flask_socketio.leave_room(oldest, sid=ctx.sid, namespace=NAMESPACE)
            logger.info(f"[REGISTRY] Evicted {ctx.sid} from {oldest} (cap {self.max_rooms})")

    # --- delivery ---

    def broadcast(self, room_keys, event, payload):
        # Socket.IO sends once per connection even when it sits in several of room_keys
        if isinstance(room_keys, str):
            room_keys = [room_keys]
        room_keys = list(dict.fromkeys(room_keys))
        reached = len(self.members(room_keys))
        self._socketio.emit(event, payload, to=room_keys, namespace=NAMESPACE)
        return reached

    def room_lock(self, room_key):
        # Lock held across persist + broadcast so a room sees commit order
        with self._lock:
            lock = self._room_locks.get(room_key)
            if lock is None:
                lock = threading.Lock()
                self._room_locks[room_key] = lock
            return lock

    # --- queries ---

    def context_for(self, sid):
        with self._lock:
            return self._connections.get(sid)

    def members(self, room_keys):
        # Connection ids in any of the given rooms
        if isinstance(room_keys, str):
            room_keys = [room_keys]
        if not room_keys:
            return set()
        try:
            participants = self.server.manager.get_participants(NAMESPACE, list(room_keys))
            return {sid for sid, _ in participants}
        except KeyError:
            return set()

    def rooms_for(self, sid):
        # Named rooms of a connection; Socket.IO also puts every sid in a room of its own
        return [r for r in self.server.rooms(sid, namespace=NAMESPACE) if r != sid]

    def is_online(self, user_id):
        return bool(self.members(private_room(user_id)))

    def connection_count(self):
        with self._lock:
            return len(self._connections)

    def clear(self):
        with self._lock:
            self._connections.clear()
            self._room_locks.clear()
