"""Health check endpoints."""
from flask import Blueprint, current_app

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Basic health check endpoint."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness: configuration is loaded and the OAuth client is registered."""
    from wxprovision.api import auth

    if current_app.config.get("APP_CONFIG") is None or auth.oauth is None:
        return ("not ready", 503, {"Content-Type": "text/plain"})
    return ("ready", 200, {"Content-Type": "text/plain"})
