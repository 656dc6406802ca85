# Socket.IO package
# Handlers live in ghostwire.sockets.events and are registered by create_app()
