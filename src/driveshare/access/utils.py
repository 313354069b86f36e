"""Email, token, and datetime helpers."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime

from email_validator import EmailNotValidError, validate_email

from .exceptions import InvalidEmailError, InvalidInputError

TOKEN_BYTES = 32
"""Entropy of a public link token, in bytes, before URL-safe encoding."""

MAX_TREE_DEPTH = 100
"""Upper bound on ancestor walks; a longer chain is treated as a cycle."""

SEARCH_LIMIT = 50
MAX_SEARCH_LIMIT = 200

RESERVED_NAMES = {".", ".."}


def normalize_email(email: str) -> str:
    """Validate and lower-case *email*, raising ``InvalidEmailError`` if malformed.

    Syntax only; no DNS lookups are made.
    """
    try:
        result = validate_email((email or "").strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise InvalidEmailError(f"Invalid email address: {email!r}") from exc
    return result.normalized.lower()


def validate_name(name: str) -> str:
    """Return a cleaned resource name or raise ``InvalidInputError``."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInputError("Name must not be empty")
    if cleaned in RESERVED_NAMES or "/" in cleaned or "\\" in cleaned or "\0" in cleaned:
        raise InvalidInputError(f"Invalid name: {name!r}")
    if len(cleaned) > 255:
        raise InvalidInputError("Name must be at most 255 characters")
    return cleaned


def new_token() -> str:
    """Generate an unguessable, URL-safe share token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
