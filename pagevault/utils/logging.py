"""
Log formatting and request context for PageVault.

Records are stamped with three context fields before formatting:

- ``request_id``: bound by the request logging middleware
- ``username``: bound once a bearer token resolves to a session
- ``page_id``: the page a request or content operation targets

Login bodies, session tokens and setup tokens must never reach a log
line, so every handler runs ``RedactionFilter`` and the JSON formatter
scrubs its serialized output a second time (audit details and extras are
not covered by the message filter).

Audit appends log with ``audit_action``/``audit_details`` extras; the JSON
formatter renders those as a nested ``audit`` object so log shippers can
index actions without parsing message text.
"""

import json
import logging
import os
import re
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

CONTEXT_FIELDS = ("request_id", "username", "page_id")

_context: Dict[str, ContextVar] = {
    name: ContextVar(f"pagevault_{name}", default=None) for name in CONTEXT_FIELDS
}

REDACTED = "[REDACTED]"

# Keys that carry credentials in login, setup and user-admin payloads
SECRET_KEYS = ("passwordSecret", "newPassword", "password", "setupToken", "token", "secret")

_SECRET_FIELD = re.compile(
    r"(?P<key>[\"']?\b(?:%s)[\"']?\s*[:=]\s*)(?P<value>\"[^\"]*\"|'[^']*'|[^\s,;&}]+)"
    % "|".join(SECRET_KEYS),
    re.IGNORECASE,
)
_BEARER = re.compile(r"(?P<key>bearer\s+)(?P<value>[A-Za-z0-9._~+/=-]+)", re.IGNORECASE)
# Session tokens are 32 hex chars; revision ids are shorter and stay readable
_SESSION_TOKEN = re.compile(r"\b[0-9a-f]{32}\b")

# Attributes every LogRecord has; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}
_STRUCTURED_ATTRS = frozenset(CONTEXT_FIELDS) | {"audit_action", "audit_details"}

_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "asyncio": logging.WARNING,
}


def _mask(match: "re.Match[str]") -> str:
    value = match.group("value")
    quote = value[0] if value[:1] in ("'", '"') else ""
    return f"{match.group('key')}{quote}{REDACTED}{quote}"


def scrub(text: str) -> str:
    """Mask credential values; quoting is preserved so JSON stays valid."""
    if not text:
        return text
    text = _SECRET_FIELD.sub(_mask, text)
    text = _BEARER.sub(_mask, text)
    return _SESSION_TOKEN.sub(REDACTED, text)


def bind_context(**fields: Optional[str]) -> None:
    """Set context fields for the current task; ``None`` values are ignored."""
    for name, value in fields.items():
        if value is not None:
            _context[name].set(value)


def clear_context() -> None:
    for var in _context.values():
        var.set(None)


def current_context(name: str) -> Optional[str]:
    return _context[name].get()


class ContextFilter(logging.Filter):
    """Fill context fields the caller did not pass explicitly via ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in CONTEXT_FIELDS:
            if getattr(record, name, None) is None:
                setattr(record, name, _context[name].get() or "-")
        return True


class RedactionFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)
        record.msg = scrub(message)
        record.args = ()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def __init__(self, service_name: str = "pagevault"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service_name,
            "msg": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value and value != "-":
                entry[name] = value

        action = getattr(record, "audit_action", None)
        if action:
            entry["audit"] = {
                "action": action,
                "details": getattr(record, "audit_details", None) or {},
            }

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in _STRUCTURED_ATTRS
        }
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return scrub(json.dumps(entry, default=str, ensure_ascii=False))


class ConsoleFormatter(logging.Formatter):
    """Single-line colored output for local runs: time, level, message, context tags."""

    COLORS = {
        "DEBUG": "\033[2m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        color = self.COLORS.get(record.levelname, "")
        line = f"{stamp} {color}{record.levelname:<7}{self.RESET} {record.name}: {record.getMessage()}"

        tags = []
        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            tags.append(f"req={request_id[:8]}")
        for label, name in (("user", "username"), ("page", "page_id")):
            value = getattr(record, name, "-")
            if value != "-":
                tags.append(f"{label}={value}")
        action = getattr(record, "audit_action", None)
        if action:
            tags.append(f"audit={action}")
        if tags:
            line += f"  [{' '.join(tags)}]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _wants_json() -> bool:
    flag = os.environ.get("LOG_FORMAT_JSON")
    if flag is not None:
        return flag.lower() in ("1", "true", "yes")
    return os.environ.get("ENVIRONMENT", "development").lower() in ("production", "prod")


def setup_logging(
    service_name: str = "pagevault",
    log_level: Optional[str] = None,
    force_json: Optional[bool] = None,
) -> logging.Logger:
    """
    Install one stdout handler on the root logger.

    ``LOG_LEVEL`` picks the level (default INFO). JSON output is used when
    ``LOG_FORMAT_JSON`` is truthy or ``ENVIRONMENT`` is production.
    """
    level_name = (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    use_json = _wants_json() if force_json is None else force_json

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(ContextFilter())
    handler.addFilter(RedactionFilter())
    handler.setFormatter(JSONFormatter(service_name) if use_json else ConsoleFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    root.debug(f"Logging configured (level={level_name}, json={use_json})")
    return root


@contextmanager
def log_duration(
    operation: str,
    logger: logging.Logger,
    level: int = logging.DEBUG,
) -> Iterator[None]:
    """Log how long the block took, and whether it raised."""
    started = time.perf_counter()
    failed = True
    try:
        yield
        failed = False
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.log(
            logging.WARNING if failed else level,
            f"{operation} {'failed' if failed else 'finished'} in {elapsed_ms:.1f}ms",
            extra={"operation": operation, "duration_ms": round(elapsed_ms, 1)},
        )
