"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, middleware, and configuration.

Gunicorn:
    gunicorn "wxprovision.flask_app:create_app()"
"""
from __future__ import annotations
import logging
import os
from tempfile import gettempdir

from flask import Flask
from flask_cors import CORS
from flask_session import Session
from werkzeug.middleware.proxy_fix import ProxyFix

from wxprovision.config import load_settings

# CSV uploads larger than this are rejected with 413
MAX_UPLOAD_BYTES = 16 * 1024 * 1024


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> Flask:
    """Create and configure Flask application."""
    # Load configuration
    cfg = load_settings()

    # Create Flask app
    app = Flask(__name__)

    # Store config for easy access in routes
    app.config["APP_CONFIG"] = cfg
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES

    # Flask session configuration
    app.config["SECRET_KEY"] = cfg.secret_key

    app.config["SESSION_TYPE"] = os.environ.get("FLASK_SESSION_TYPE", "filesystem")
    if app.config["SESSION_TYPE"] == "filesystem":
        session_dir = os.environ.get("FLASK_SESSION_DIR") or os.path.join(gettempdir(), "wxprovision_flask_session")
        os.makedirs(session_dir, exist_ok=True)
        app.config["SESSION_FILE_DIR"] = session_dir

    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = cfg.session_cookie_secure

    # Initialize session
    Session(app)

    # Trust X-Forwarded-* headers from proxy (nginx)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    # Only the frontend may call the API from a browser, with cookies
    CORS(app, origins=[cfg.frontend_url], supports_credentials=True)

    # Initialize OAuth
    from wxprovision.api import auth
    auth.init_oauth(app, cfg)

    # Register blueprints
    from wxprovision.api import health, errors
    from wxprovision.api import organization
    from wxprovision.api import users

    app.register_blueprint(auth.bp)
    app.register_blueprint(health.bp)
    app.register_blueprint(organization.bp)
    app.register_blueprint(users.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    _configure_logging(app, cfg.log_level)

    # Log startup info
    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    print(f"[flask_app] Mode={mode_label}")
    print(f"[flask_app] Frontend origin allowed: {cfg.frontend_url}")

    if cfg.demo_mode:
        print("[flask_app] WARNING: Demo mode active - do not deploy with demo credentials")

    return app


def _configure_logging(app: Flask, level: str) -> None:
    """Route wxprovision.* loggers through the Flask handler at ``level``."""
    package_logger = logging.getLogger("wxprovision")
    package_logger.setLevel(level)
    if not package_logger.handlers:
        for handler in app.logger.handlers:
            package_logger.addHandler(handler)
    app.logger.setLevel(level)


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=8080, debug=True)
