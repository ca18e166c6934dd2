"""Utility modules for PageVault."""

from .clock import Clock, parse_iso, to_iso, utc_now
from .identifiers import (
    generate_password,
    generate_revision_id,
    generate_token,
    normalize_username,
    sanitize_page_id,
)
from .logging import (
    ConsoleFormatter,
    ContextFilter,
    JSONFormatter,
    RedactionFilter,
    bind_context,
    clear_context,
    current_context,
    log_duration,
    scrub,
    setup_logging,
)

__all__ = [
    # Time
    "Clock",
    "parse_iso",
    "to_iso",
    "utc_now",
    # Identifiers
    "generate_password",
    "generate_revision_id",
    "generate_token",
    "normalize_username",
    "sanitize_page_id",
    # Logging
    "setup_logging",
    "bind_context",
    "clear_context",
    "current_context",
    "log_duration",
    "scrub",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextFilter",
    "RedactionFilter",
]
