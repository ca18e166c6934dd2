"""Normalization of page ids, usernames and generated secrets."""

import re
import secrets
from typing import Any

_PAGE_ID_STRIP = re.compile(r"[^a-z0-9_-]")

# No 0/O, 1/l/I lookalikes
PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789"


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def sanitize_page_id(value: Any) -> str:
    """
    Normalize a page id to lowercase ``[a-z0-9_-]``.

    Disallowed characters are stripped rather than rejected, so the result
    may be empty; callers treat an empty id as invalid.
    """
    return _PAGE_ID_STRIP.sub("", _as_text(value).strip().lower())


def normalize_username(value: Any) -> str:
    """Usernames are keyed trimmed and lowercase."""
    return _as_text(value).strip().lower()


def generate_password(length: int = 16) -> str:
    """Random password drawn from an alphabet without ambiguous glyphs."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def generate_token() -> str:
    """128-bit session token as hex."""
    return secrets.token_hex(16)


def generate_revision_id() -> str:
    """80-bit revision id as hex, unique within a page's history."""
    return secrets.token_hex(10)
