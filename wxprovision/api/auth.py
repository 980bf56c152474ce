"""Authentication routes and Webex OAuth helpers.

Flow:
- /login redirects to Webex (authorization code + PKCE)
- /callback stores the token, then reads orgId/displayName from /v1/people/me
- /logout clears the session and returns to the frontend
"""
from __future__ import annotations
import base64
import hashlib
import secrets
import string

from flask import Blueprint, current_app, jsonify, redirect, session, url_for
from authlib.integrations.flask_client import OAuth

from wxprovision.core.session_context import is_authenticated
from wxprovision.core.webex import OrganizationService, WebexClient

bp = Blueprint("auth", __name__)

# Module-level OAuth instance (will be initialized by create_app)
oauth: OAuth = None

AUTH_PROVIDER = "webex"


def init_oauth(app, cfg):
    """Initialize the OAuth client and register Webex."""
    global oauth

    oauth = OAuth(app)
    base_url = cfg.webex_api_base_url
    oauth.register(
        name=AUTH_PROVIDER,
        client_id=cfg.webex_client_id,
        client_secret=cfg.webex_client_secret_resolved or None,
        authorize_url=f"{base_url}/v1/authorize",
        access_token_url=f"{base_url}/v1/access_token",
        api_base_url=f"{base_url}/v1/",
        client_kwargs={"scope": cfg.webex_scopes},
        fetch_token=lambda: session.get("token"),
    )
    return oauth


def get_webex_client():
    """Get the registered Webex OAuth client."""
    if oauth is None:
        raise RuntimeError("OAuth not initialized. Call init_oauth first.")
    return oauth.create_client(AUTH_PROVIDER)


# ─────────────────────────────────────────────────────────────────────────────
# PKCE Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _generate_code_verifier(length: int = 64) -> str:
    """Generate PKCE code verifier."""
    alphabet = string.ascii_letters + string.digits + "-._~"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _build_code_challenge(code_verifier: str) -> str:
    """Build PKCE code challenge from verifier."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def _store_identity(cfg, access_token: str) -> None:
    """Read the admin's organization and display name into the session."""
    client = WebexClient(access_token, base_url=cfg.webex_api_base_url, timeout=cfg.request_timeout)
    result = OrganizationService(client).get_me()
    if not result.ok:
        current_app.logger.warning(f"[Auth] Could not read /v1/people/me: {result.message}")
        return
    me = result.data or {}
    session["org_id"] = me.get("orgId")
    session["display_name"] = me.get("displayName", "")
    current_app.logger.info(f"[Auth] Logged in {me.get('displayName')} for org {me.get('orgId')}")


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("/login")
def login():
    """Initiate Webex OAuth login flow with PKCE."""
    cfg = current_app.config["APP_CONFIG"]
    client = get_webex_client()

    code_verifier = _generate_code_verifier()
    session["pkce_code_verifier"] = code_verifier

    return client.authorize_redirect(
        redirect_uri=cfg.webex_redirect_uri,
        code_challenge=_build_code_challenge(code_verifier),
        code_challenge_method="S256",
    )


@bp.route("/callback")
def callback():
    """Handle the Webex callback after successful authentication."""
    cfg = current_app.config["APP_CONFIG"]
    client = get_webex_client()

    code_verifier = session.pop("pkce_code_verifier", None)
    if not code_verifier:
        return redirect(url_for("auth.login"))

    token = client.authorize_access_token(code_verifier=code_verifier)
    session["token"] = token
    _store_identity(cfg, token.get("access_token"))

    return redirect(f"{cfg.frontend_url}/home")


@bp.route("/logout", methods=["GET", "POST"])
def logout():
    """Clear the session and return to the frontend."""
    cfg = current_app.config["APP_CONFIG"]
    session.clear()
    return redirect(cfg.frontend_url)


@bp.route("/check-auth")
def check_auth():
    """Report whether the browser session is logged in (public)."""
    return jsonify({
        "isAuthenticated": "true" if is_authenticated() else "false",
        "authProvider": AUTH_PROVIDER,
    })
