"""
Flask decorators and request helpers for session-authenticated API routes.

The browser logs in once through Webex OAuth; every API route then works from
the bearer token and organization id stored in the server-side session.
"""

import logging
from functools import wraps

from flask import current_app, jsonify

from wxprovision.core.session_context import (
    current_access_token,
    current_org_id,
    is_authenticated,
)
from wxprovision.core.webex import WebexClient

logger = logging.getLogger(__name__)


def require_login(fn):
    """
    Decorator rejecting requests without a logged-in Webex administrator.

    Returns a JSON 401 instead of redirecting, since every caller is the
    single-page frontend.

    Example:
        @bp.route("/licenses")
        @require_login
        def list_licenses():
            ...
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not is_authenticated():
            logger.info("Rejected unauthenticated request to %s", fn.__name__)
            return jsonify({"error": "Unauthorized", "message": "Authentication required"}), 401
        if not current_org_id():
            logger.warning("Session has a token but no organization id")
            return jsonify({
                "error": "Unauthorized",
                "message": "No Webex organization is associated with this session. Please log in again.",
            }), 401
        return fn(*args, **kwargs)

    return wrapper


def session_webex_client() -> WebexClient:
    """WebexClient bound to the session's access token. Call after @require_login."""
    cfg = current_app.config["APP_CONFIG"]
    return WebexClient(
        current_access_token(),
        base_url=cfg.webex_api_base_url,
        timeout=cfg.request_timeout,
    )
