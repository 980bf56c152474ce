"""Session helpers for the logged-in Webex administrator."""
from __future__ import annotations
from typing import Optional

from flask import session


def is_authenticated() -> bool:
    """Check if user is authenticated."""
    token = session.get("token") or {}
    return bool(token.get("access_token"))


def current_access_token() -> Optional[str]:
    """Bearer token of the logged-in administrator, or None."""
    token = session.get("token") or {}
    return token.get("access_token")


def current_org_id() -> Optional[str]:
    """Organization id stored at login from /v1/people/me."""
    return session.get("org_id")


def current_display_name() -> str:
    return session.get("display_name") or ""
