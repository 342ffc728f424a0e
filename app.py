import os
import logging
from datetime import datetime, timedelta
from uuid import uuid4

from dotenv import load_dotenv

# .env is read before config.py builds its class attributes
load_dotenv()

from flask import Flask, send_from_directory, request, g
from flask_cors import CORS

from config import Config
from src.core import SessionStore
from src.domain.playback import OAuthGateway, PlaybackProxy, make_client_factory
from src.interfaces.http.routes import spotify_bp, health_bp
from src.observability import configure_structured_logging, metrics_blueprint
from src.observability.logging import redact
from src.settings import load_app_settings


logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
CLIENT_BUILD_DIR = os.path.join(PROJECT_ROOT, 'client', 'dist')


class RedactingFormatter(logging.Formatter):
    """Plain-text formatter for the per-run log file that masks OAuth tokens."""

    def format(self, record):
        return redact(super().format(record))


def configure_logging(log_dir: str) -> str:
    """
    Attach a per-run file log (``vinyl-YYYYmmdd-HHMMSS.log``) to the root logger.

    Console output is added only when ENABLE_CONSOLE_LOGS is set. Werkzeug and
    Flask loggers are routed to root so request lines land in the same file.
    Returns the log file path.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, datetime.now().strftime("vinyl-%Y%m%d-%H%M%S.log"))

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    # Keep the JSON stdout handler; replace any file handler from an earlier call
    root.handlers = [h for h in root.handlers if not isinstance(h, logging.FileHandler)]

    formatter = RedactingFormatter('%(asctime)s %(levelname)-7s [%(name)s] %(message)s')
    handlers = [logging.FileHandler(log_path, encoding='utf-8')]
    if Config.ENABLE_CONSOLE_LOGS:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(logging.INFO if isinstance(handler, logging.FileHandler) else logging.WARNING)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in ("werkzeug", "flask.app"):
        framework_logger = logging.getLogger(name)
        framework_logger.handlers = []
        framework_logger.propagate = True

    return log_path


def _log_spotify_configuration(settings) -> None:
    logger.info(
        "Spotify configuration: client id %s, client secret %s, redirect URI %s",
        "set" if settings.spotify_client_id else "missing",
        "set" if settings.spotify_client_secret else "missing",
        settings.redirect_uri or "not configured",
    )
    if not settings.redirect_uri:
        logger.error("PUBLIC_HOSTNAME (or SPOTIFY_REDIRECT_URI) is not set; Spotify login will fail.")


def create_app(settings_overrides=None):
    app = Flask(__name__, static_folder=CLIENT_BUILD_DIR, static_url_path='')
    app.config.from_object(Config)

    settings = load_app_settings(settings_overrides)
    app.config.update(
        PERMANENT_SESSION_LIFETIME=timedelta(seconds=settings.session_lifetime_seconds),
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE='Lax',
        SESSION_COOKIE_SECURE=Config.SESSION_COOKIE_SECURE,
    )
    configure_structured_logging(app)
    _log_spotify_configuration(settings)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or uuid4().hex

    @app.after_request
    def _echo_request_id(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers.setdefault('X-Request-ID', request_id)
        return response

    # Cookies carry the session, so wildcard origins are never honoured
    cors_origins = sorted({o.strip() for o in Config.CORS_ALLOWED_ORIGINS if o and o.strip() not in ("", "*")})
    if cors_origins:
        CORS(app, resources={r"/api/*": {"origins": cors_origins}}, supports_credentials=True)

    session_store = SessionStore(lifetime_seconds=settings.session_lifetime_seconds)
    app.extensions['app_settings'] = settings
    app.extensions['session_store'] = session_store
    app.extensions['oauth_gateway'] = OAuthGateway(settings=settings, session_store=session_store)
    app.extensions['playback_proxy'] = PlaybackProxy(
        session_store=session_store,
        client_factory=make_client_factory(settings.upstream_timeout_seconds),
        market=settings.market,
    )

    for blueprint in (spotify_bp, health_bp, metrics_blueprint):
        app.register_blueprint(blueprint)

    # Anything outside /api is the built single-page client
    @app.route('/', defaults={'path': ''})
    @app.route('/<path:path>')
    def serve_client_app(path):
        if path and os.path.exists(os.path.join(CLIENT_BUILD_DIR, path)):
            return send_from_directory(CLIENT_BUILD_DIR, path)
        return send_from_directory(CLIENT_BUILD_DIR, 'index.html')

    return app


if __name__ == '__main__':
    # Under the debug reloader only the child process writes a log file
    if not Config.DEBUG or os.environ.get('WERKZEUG_RUN_MAIN') == 'true':
        log_dir = Config.LOG_DIR if os.path.isabs(Config.LOG_DIR) else os.path.join(PROJECT_ROOT, Config.LOG_DIR)
        logger.info("File logging initialized at %s", configure_logging(log_dir))

    app = create_app()
    app.logger.handlers = []
    app.logger.propagate = True
    logger.info("Starting vinyl player backend...")
    app.run(debug=Config.DEBUG, host='0.0.0.0', port=int(os.getenv('PORT', '5000')), threaded=True)
