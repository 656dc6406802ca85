# Flask extensions initialization
# Helps avoid circular imports by initializing extensions without app context

from flask_sqlalchemy import SQLAlchemy
from flask_socketio import SocketIO
from flask_login import LoginManager

from ghostwire.sockets.registry import ConnectionRegistry

db = SQLAlchemy()
# async_mode and CORS origins are supplied by create_app() from config
socketio = SocketIO(
    ping_timeout=60,
    ping_interval=25,
    manage_session=False,
    path='socket.io',
    engineio_logger=False,
    logger=False
)
login_manager = LoginManager()

# Live connections and the rooms they are in
registry = ConnectionRegistry()
