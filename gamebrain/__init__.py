import logging
from flask import Flask
from flask_socketio import SocketIO
from flask_wtf.csrf import CSRFProtect
from config import Config

socketio = SocketIO()
csrf = CSRFProtect()

logger = logging.getLogger(__name__)


def _split_origins(value):
    """Comma-separated origins to a list; empty means same-origin only."""
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    csrf.init_app(app)

    # Select the document store (Firestore, or in-memory for development)
    from gamebrain.firebase_init import init_gateway
    init_gateway(app.config)

    allowed_origins = _split_origins(app.config.get('CORS_ALLOWED_ORIGINS', ''))
    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins if allowed_origins else None,
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE', 'eventlet')
    )

    # Register current_user context processor and before_request
    from gamebrain.decorators import load_current_user, get_current_user

    @app.before_request
    def before_request():
        load_current_user()

    from gamebrain.history import save_history_cookie
    app.after_request(save_history_cookie)

    @app.context_processor
    def inject_current_user():
        return {'current_user': get_current_user()}

    # Register blueprints
    from gamebrain.routes import auth, dashboard, games, guides, main
    app.register_blueprint(auth.bp)
    app.register_blueprint(dashboard.bp)
    app.register_blueprint(games.bp)
    app.register_blueprint(guides.bp)
    app.register_blueprint(main.bp)

    from gamebrain import events  # noqa: F401

    logger.debug('GameBrain app created')
    return app
