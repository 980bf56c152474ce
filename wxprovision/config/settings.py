"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DUPLICATE_EMAIL_POLICIES = ("reject", "last-wins")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            print(f"[settings] ✓ Loaded {env_var} from environment (fallback)")
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Flask
    secret_key: str
    session_cookie_secure: bool = True

    # Webex OAuth client
    webex_client_id: str = ""
    webex_client_secret: str = ""
    webex_redirect_uri: str = ""
    webex_scopes: str = "spark:kms spark-admin:people_read spark-admin:people_write spark-admin:licenses_read spark-admin:locations_read identity:people_rw"
    frontend_url: str = "http://localhost:3000"

    # Webex API
    webex_api_base_url: str = "https://webexapis.com"
    request_timeout: float = 30.0

    # Bulk export
    bulk_fail_on_errors: int = 10
    user_search_page_size: int = 1000
    duplicate_email_policy: str = "reject"
    license_assignment_workers: int = 1

    # Identifier resolution (eventual consistency poll)
    id_resolution_max_attempts: int = 5
    id_resolution_initial_delay: float = 1.0
    id_resolution_backoff: float = 2.0
    id_resolution_max_delay: float = 8.0

    # Logging
    log_level: str = "INFO"

    @property
    def webex_client_secret_resolved(self) -> str:
        """Webex OAuth client secret as loaded by ``load_settings``.

        Demo mode without a secret yields an empty string (login disabled
        until configured).

        Raises:
            ValueError: If secret not found in production mode
        """
        if self.webex_client_secret:
            return self.webex_client_secret

        if self.demo_mode:
            return ""

        raise ValueError(
            "WEBEX_CLIENT_SECRET not found. "
            "Set DEMO_MODE=true or provide secret via Docker secrets or environment variable."
        )


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default/generate."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        print(f"[demo-mode] Using default for {var_name}")
        os.environ[var_name] = demo_default
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def _get_int(var_name: str, default: int, minimum: int = 0) -> int:
    """Read an integer setting, rejecting values below ``minimum``."""
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer, got '{raw}'.")
    if value < minimum:
        raise RuntimeError(f"Environment variable {var_name} must be >= {minimum}, got {value}.")
    return value


def _get_float(var_name: str, default: float, minimum: float = 0.0) -> float:
    """Read a float setting, rejecting values below ``minimum``."""
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be a number, got '{raw}'.")
    if value < minimum:
        raise RuntimeError(f"Environment variable {var_name} must be >= {minimum}, got {value}.")
    return value


def _get_log_level(var_name: str = "LOG_LEVEL", default: str = "INFO") -> str:
    """Read a logging level name, rejecting anything the logging module does not define."""
    level = os.environ.get(var_name, "").strip().upper() or default
    if level not in LOG_LEVELS:
        raise RuntimeError(f"Environment variable {var_name} must be one of {', '.join(LOG_LEVELS)}, got '{level}'.")
    return level


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    # ─────────────────────────────────────────────────────────────────────────
    # Load secrets from /run/secrets (Docker secrets pattern)
    # Priority: /run/secrets > environment variables > demo defaults
    # ─────────────────────────────────────────────────────────────────────────

    # Flask secret key
    secret_key = _load_secret_from_file("flask_secret_key", "FLASK_SECRET_KEY")
    if not secret_key:
        if demo_mode:
            secret_key = secrets.token_urlsafe(48)
            os.environ["FLASK_SECRET_KEY"] = secret_key
            print("[demo-mode] Generated temporary FLASK_SECRET_KEY")
        else:
            raise RuntimeError("FLASK_SECRET_KEY not found in /run/secrets or environment")

    # Webex OAuth client secret
    webex_client_secret = _load_secret_from_file("webex_client_secret", "WEBEX_CLIENT_SECRET") or ""
    if webex_client_secret:
        os.environ["WEBEX_CLIENT_SECRET"] = webex_client_secret
    elif not demo_mode:
        raise RuntimeError("WEBEX_CLIENT_SECRET not found in /run/secrets or environment")

    # Session cookie secure flag
    session_secure_str = os.environ.get("FLASK_SESSION_COOKIE_SECURE")
    if session_secure_str is None and demo_mode:
        session_secure_str = "false"
    session_cookie_secure = (session_secure_str or "true").lower() == "true"

    # Webex OAuth client
    webex_client_id = _get_or_generate("WEBEX_CLIENT_ID", demo_default="demo-client-id", demo_mode=demo_mode)
    webex_redirect_uri = _get_or_generate(
        "WEBEX_REDIRECT_URI",
        demo_default="http://localhost:8080/callback",
        demo_mode=demo_mode,
    )
    frontend_url = _get_or_generate(
        "FRONTEND_URL",
        demo_default="http://localhost:3000",
        demo_mode=demo_mode,
    ).rstrip("/")
    webex_scopes = os.environ.get("WEBEX_SCOPES", "").strip() or AppConfig.webex_scopes

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; client_id={webex_client_id}")

    if demo_mode:
        print("[settings] WARNING: Demo credentials in use. Do not deploy with these defaults.")

    return AppConfig(
        demo_mode=demo_mode,
        secret_key=secret_key,
        session_cookie_secure=session_cookie_secure,
        webex_client_id=webex_client_id,
        webex_client_secret=webex_client_secret,
        webex_redirect_uri=webex_redirect_uri,
        webex_scopes=webex_scopes,
        frontend_url=frontend_url,
        **_pipeline_settings(),
    )


def _pipeline_settings() -> dict:
    """Webex API and bulk export settings shared by the app and the CLI."""
    duplicate_email_policy = os.environ.get("DUPLICATE_EMAIL_POLICY", "reject").strip().lower()
    if duplicate_email_policy not in DUPLICATE_EMAIL_POLICIES:
        raise RuntimeError(
            f"DUPLICATE_EMAIL_POLICY must be one of {', '.join(DUPLICATE_EMAIL_POLICIES)}, "
            f"got '{duplicate_email_policy}'."
        )

    return {
        "webex_api_base_url": os.environ.get("WEBEX_API_BASE_URL", "https://webexapis.com").rstrip("/"),
        "request_timeout": _get_float("WEBEX_REQUEST_TIMEOUT", 30.0, minimum=1.0),
        "bulk_fail_on_errors": _get_int("BULK_FAIL_ON_ERRORS", 10, minimum=1),
        "user_search_page_size": _get_int("USER_SEARCH_PAGE_SIZE", 1000, minimum=1),
        "duplicate_email_policy": duplicate_email_policy,
        "license_assignment_workers": _get_int("LICENSE_ASSIGNMENT_WORKERS", 1, minimum=1),
        "id_resolution_max_attempts": _get_int("ID_RESOLUTION_MAX_ATTEMPTS", 5, minimum=1),
        "id_resolution_initial_delay": _get_float("ID_RESOLUTION_INITIAL_DELAY", 1.0),
        "id_resolution_backoff": _get_float("ID_RESOLUTION_BACKOFF", 2.0, minimum=1.0),
        "id_resolution_max_delay": _get_float("ID_RESOLUTION_MAX_DELAY", 8.0),
        "log_level": _get_log_level(),
    }


def load_cli_settings() -> AppConfig:
    """Settings for command-line runs: no Flask session and no OAuth client."""
    return AppConfig(demo_mode=False, secret_key="", **_pipeline_settings())
