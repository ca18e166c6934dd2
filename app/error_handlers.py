"""
FastAPI exception handlers for PageVault.

This module provides centralized exception handling that:
- Maps PageVaultException subclasses to their HTTP status codes
- Turns request validation failures into 400 responses
- Reports unexpected exceptions to Sentry
- Prevents internal details leaking from 5xx responses

Error responses have the shape ``{"error": "Human-readable message"}``;
oversized saves add ``current``, ``max`` and ``suggestion`` fields.
"""

import logging
import re
import uuid
from typing import Any, Dict, List, Optional

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pagevault.config import get_settings
from pagevault.exceptions import PageVaultException

from .middleware import request_id_of

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Server error"

# Patterns that indicate sensitive information in server-side messages
SENSITIVE_REGEX = re.compile(
    r"password|secret|token|bearer|authorization|credential|private|"
    r"/home/|/Users/|/var/|/etc/",
    re.IGNORECASE,
)


def sanitize_error_message(message: str) -> str:
    """
    Strip potentially sensitive information from a 5xx message.

    Returns a generic message when anything sensitive is detected.
    """
    if not message:
        return GENERIC_SERVER_ERROR

    if SENSITIVE_REGEX.search(message):
        return GENERIC_SERVER_ERROR

    message = re.sub(r"[/\\][\w./\\-]+\.\w+", "[path]", message)
    message = re.sub(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b", "[ip]", message)

    if len(message) > 500:
        message = message[:500] + "..."

    return message


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[str]:
    """Turn pydantic error dicts into short field messages."""
    formatted = []
    for error in errors:
        loc = [str(p) for p in error.get("loc", []) if p not in ("body", "query", "path")]
        field = ".".join(loc) if loc else "request"
        error_type = error.get("type", "")

        if error_type == "missing":
            formatted.append(f"{field} is required")
        elif error_type in ("model_attributes_type", "dict_type") and field == "request":
            formatted.append("Invalid JSON body")
        else:
            formatted.append(f"{field}: {error.get('msg', 'Invalid value')}")

    return formatted[:10]


def create_error_response(
    status_code: int,
    error: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error},
        headers=headers,
    )


def report_to_sentry(
    exc: Exception,
    request: Optional[Request] = None,
    extra_context: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """
    Report an exception to Sentry with request context.

    Returns:
        Sentry event ID if reported, None when Sentry is not active.
    """
    client = sentry_sdk.get_client()
    if not client.is_active():
        return None

    with sentry_sdk.new_scope() as scope:
        if request is not None:
            scope.set_context("request", {
                "method": request.method,
                "path": request.url.path,
            })
            username = getattr(request.state, "username", None)
            if username:
                scope.set_user({"username": username})
            request_id = request_id_of(request)
            if request_id:
                scope.set_tag("request_id", request_id)

        if extra_context:
            scope.set_context("extra", extra_context)

        return sentry_sdk.capture_exception(exc)


# =============================================================================
# Exception Handlers
# =============================================================================

EXPECTED_SERVER_STATUSES = frozenset({
    status.HTTP_501_NOT_IMPLEMENTED,
    status.HTTP_503_SERVICE_UNAVAILABLE,
})


async def pagevault_exception_handler(
    request: Request,
    exc: PageVaultException,
) -> JSONResponse:
    """Handle PageVaultException and subclasses."""
    log_message = f"{exc.__class__.__name__} [{exc.error_code.value}]: {exc.message}"
    if exc.internal_message:
        log_message += f" | Internal: {exc.internal_message}"

    if exc.status_code >= 500 and exc.status_code not in EXPECTED_SERVER_STATUSES:
        logger.error(log_message, exc_info=True)
        report_to_sentry(exc, request, extra_context=exc.details)
        return create_error_response(exc.status_code, sanitize_error_message(exc.message))

    logger.warning(log_message, extra={"error_details": exc.details} if exc.details else None)

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers() or None,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Malformed request bodies and query strings are plain 400s."""
    errors = format_validation_errors(exc.errors())

    logger.warning(
        f"Validation error on {request.method} {request.url.path}: "
        f"{len(errors)} error(s)"
    )

    if len(errors) == 1:
        message = errors[0]
    else:
        message = "; ".join(errors) or "Invalid request data"

    return create_error_response(status.HTTP_400_BAD_REQUEST, message)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Routing errors (unknown path, wrong method) in the same error shape."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code == status.HTTP_404_NOT_FOUND and request.url.path.startswith("/api/"):
        detail = "Unknown API route"

    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {detail}")
        detail = sanitize_error_message(detail)
    elif exc.status_code >= 400:
        logger.warning(f"HTTP {exc.status_code}: {detail}")

    headers = None
    if exc.headers:
        safe_headers = {"Allow", "WWW-Authenticate"}
        headers = {k: v for k, v in exc.headers.items() if k in safe_headers} or None

    return create_error_response(exc.status_code, detail, headers=headers)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all for unexpected errors.

    Logs the traceback, reports to Sentry and returns a generic message
    carrying only a short reference id.
    """
    error_reference = str(uuid.uuid4())[:8]

    logger.error(
        f"Unhandled exception [ref:{error_reference}] on "
        f"{request.method} {request.url.path}: {exc}",
        exc_info=True,
    )

    report_to_sentry(exc, request, extra_context={"error_reference": error_reference})

    if get_settings().is_production:
        message = f"{GENERIC_SERVER_ERROR} (ref: {error_reference})"
    else:
        message = f"{GENERIC_SERVER_ERROR}: {type(exc).__name__} (ref: {error_reference})"

    return create_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


# =============================================================================
# Handler Registration
# =============================================================================

def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(PageVaultException, pagevault_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.info("Exception handlers registered successfully")
