# Flask application factory

import logging

from flask import Flask, jsonify

import config as default_config
from ghostwire.errors import ChatError, Unauthenticated
from ghostwire.extensions import db, socketio, login_manager, registry

logger = logging.getLogger(__name__)


def create_app(config=None):
    # Create and configure Flask application
    flask_app = Flask(__name__)

    # Load config: module defaults, then the caller's overrides (dict or object)
    flask_app.config.from_object(default_config)
    if config:
        if isinstance(config, dict):
            flask_app.config.update(config)
        else:
            flask_app.config.from_object(config)
    flask_app.config.setdefault(
        'SQLALCHEMY_ENGINE_OPTIONS',
        default_config.engine_options(
            flask_app.config['SQLALCHEMY_DATABASE_URI'],
            flask_app.config['PERSISTENCE_TIMEOUT']
        )
    )

    # Socket handlers must be registered before the first init_app()
    import ghostwire.sockets.events  # noqa

    # Initialize extensions
    db.init_app(flask_app)
    socketio.init_app(
        flask_app,
        async_mode=flask_app.config['SOCKETIO_ASYNC_MODE'],
        cors_allowed_origins=flask_app.config['CORS_ALLOWED_ORIGINS']
    )
    login_manager.init_app(flask_app)
    registry.init_app(flask_app, socketio)

    _setup_auth()

    @flask_app.errorhandler(ChatError)
    def _chat_error(e):
        return jsonify(e.to_dict()), e.status_code

    # Register blueprints
    from ghostwire.routes import auth_bp, api_bp
    flask_app.register_blueprint(auth_bp, url_prefix='/api/auth')
    flask_app.register_blueprint(api_bp, url_prefix='/api/groups')

    @flask_app.route('/')
    def health():
        return jsonify({'status': 'ok', 'connections': registry.connection_count()})

    # Create database tables
    with flask_app.app_context():
        _init_database()

    return flask_app


def _setup_auth():
    # REST requests authenticate with the same bearer token as sockets
    from flask import request
    from ghostwire.functions import users
    from ghostwire.functions.tokens import authenticate_request

    @login_manager.request_loader
    def load_user_from_request(req):
        try:
            identity = authenticate_request(req)
        except Unauthenticated:
            return None
        return users.find_by_id(identity.user_id)

    # Always JSON 401, there are no HTML pages to redirect to
    @login_manager.unauthorized_handler
    def _unauthorized():
        logger.info(f"[AUTH] Unauthorized request to {request.path}")
        return jsonify({'error': 'Unauthorized'}), 401


def _init_database():
    # Initialize database tables
    from ghostwire import models  # noqa

    try:
        db.create_all()
    except Exception as e:
        logger.error(f"[DATABASE] Failed to create tables: {e}")
        raise
