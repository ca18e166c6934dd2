"""Middleware components for the PageVault API."""

from .logging import RequestLoggingMiddleware, page_id_of, request_id_of
from .rate_limit import (
    RateLimiter,
    client_ip,
    get_rate_limiter,
    rate_limit,
    reset_rate_limiter,
)

__all__ = [
    "RequestLoggingMiddleware",
    "page_id_of",
    "request_id_of",
    "RateLimiter",
    "client_ip",
    "get_rate_limiter",
    "rate_limit",
    "reset_rate_limiter",
]
