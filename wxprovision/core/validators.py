"""Input validation helpers for CSV user data."""
from __future__ import annotations
from typing import Optional


def validate_email(email: str) -> str:
    """Validate email address.

    Args:
        email: Email address to validate

    Returns:
        Trimmed email address (case preserved, it is the provider login name)

    Raises:
        ValueError: If email is invalid
    """
    email = (email or "").strip()
    if not email:
        raise ValueError("Email is required")
    if "@" not in email:
        raise ValueError(f"Invalid email format: '{email}'")

    local, domain = email.rsplit("@", 1)
    if not local or not domain:
        raise ValueError(f"Invalid email format: '{email}'")
    if len(email) > 254:
        raise ValueError("Email exceeds maximum length")

    return email


def validate_extension(extension: str) -> str:
    """Validate a phone extension.

    Args:
        extension: Raw extension; empty means "no extension"

    Returns:
        Trimmed extension (may be empty)

    Raises:
        ValueError: If a non-empty extension is not purely numeric
    """
    extension = (extension or "").strip()
    if extension and not (extension.isascii() and extension.isdigit()):
        raise ValueError(f"Extension '{extension}' is not a valid number")
    return extension


def is_true_flag(value: Optional[str]) -> bool:
    """CSV license columns are true only when they read ``true`` (any case)."""
    return (value or "").strip().lower() == "true"


def is_csv_upload(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Accept uploads declared as ``text/csv`` or named ``*.csv``."""
    if content_type and content_type.split(";")[0].strip().lower() == "text/csv":
        return True
    return bool(filename) and filename.lower().endswith(".csv")
