"""
Request logging middleware.

Each request is given an id (the caller's ``X-Request-ID`` when present)
and bound to the log context together with the page it targets, so the
content engine's log lines for that request carry both. The session
username is bound later by the bearer dependency and read back from
``request.state`` for the summary line.
"""

import logging
import time
import uuid
from typing import FrozenSet, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from pagevault.utils import bind_context, clear_context, current_context, sanitize_page_id

from .rate_limit import client_ip

logger = logging.getLogger(__name__)

PAGE_PATH_PREFIX = "/api/pages/"


def page_id_of(request: Request) -> Optional[str]:
    """Page addressed by ``?pageId=`` or ``/api/pages/<id>``, if any."""
    raw = request.query_params.get("pageId")
    if raw is None and request.url.path.startswith(PAGE_PATH_PREFIX):
        raw = request.url.path[len(PAGE_PATH_PREFIX):].split("/", 1)[0]
    return sanitize_page_id(raw) or None


def request_id_of(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or current_context("request_id")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log one summary line per request and add ``X-Request-ID`` and
    ``X-Response-Time`` response headers.

    Docs routes are not logged; health checks are logged only when they fail.
    """

    SILENT_PATHS: FrozenSet[str] = frozenset({"/docs", "/redoc", "/openapi.json", "/favicon.ico"})
    FAILURES_ONLY_PATHS: FrozenSet[str] = frozenset({"/api/health"})

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        page_id = page_id_of(request)
        clear_context()
        bind_context(request_id=request_id, page_id=page_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.exception(
                f"{request.method} {request.url.path} raised after {elapsed_ms:.1f}ms",
                extra=self._fields(request, page_id, None, elapsed_ms),
            )
            clear_context()
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.1f}ms"

        level = self._level_for(request.url.path, response.status_code)
        if level is not None:
            logger.log(
                level,
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)",
                extra=self._fields(request, page_id, response.status_code, elapsed_ms),
            )
        clear_context()
        return response

    def _level_for(self, path: str, status_code: int) -> Optional[int]:
        if path in self.SILENT_PATHS:
            return None
        if status_code >= 500:
            return logging.ERROR
        if status_code >= 400:
            return logging.WARNING
        if path in self.FAILURES_ONLY_PATHS:
            return None
        return logging.INFO

    @staticmethod
    def _fields(request: Request, page_id: Optional[str], status_code: Optional[int], elapsed_ms: float) -> dict:
        # The bearer dependency runs in the endpoint's task, so its context
        # binding is not visible here; request.state is shared.
        return {
            "event": "http_request",
            "method": request.method,
            "path": request.url.path,
            "status": status_code,
            "duration_ms": round(elapsed_ms, 1),
            "client": client_ip(request),
            "username": getattr(request.state, "username", None),
            "page_id": page_id,
        }
