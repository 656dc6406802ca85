# Entry point for the GhostWire application

import config

if config.SOCKETIO_ASYNC_MODE == 'eventlet':
    import eventlet
    eventlet.monkey_patch()

import logging  # noqa: E402
import os  # noqa: E402

from ghostwire import create_app  # noqa: E402
from ghostwire.extensions import socketio  # noqa: E402

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO'),
    format='%(asctime)s %(levelname)s %(name)s %(message)s'
)

app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 3000))
    print("[SERVER STARTUP] Starting GhostWire...")
    print(f"[SERVER CONFIG] Socket.IO ({config.SOCKETIO_ASYNC_MODE}) running on port {port}")
    socketio.run(app, host='0.0.0.0', port=port, debug=False)
