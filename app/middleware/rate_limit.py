"""
Per-client sliding-window rate limiting.

Login, initial setup, feedback and session administration are capped per
client IP. Each capped endpoint declares a scope and the message returned
with the 429:

    @router.post("", dependencies=[Depends(rate_limit("auth", LOGIN_LIMIT_MESSAGE))])
    async def login(...):
        ...

Limits come from ``RateLimitSettings`` (``AUTH_RATE_LIMIT`` etc.) and the
whole mechanism is switched off with ``RATE_LIMIT_ENABLED=false``.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from fastapi import Request

from pagevault.config import get_settings
from pagevault.exceptions import RateLimitError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    """Outcome of one rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: int  # Unix timestamp
    retry_after: Optional[int] = None  # Seconds, when blocked


class RateLimitBackend(ABC):
    """Storage for request timestamps, keyed by scope and client."""

    @abstractmethod
    def record_request(self, key: str, timestamp: float, window_seconds: int) -> Tuple[int, float]:
        """
        Record a request and return the window's count and oldest timestamp.
        """

    @abstractmethod
    def clear(self) -> None:
        """Forget every recorded request."""


class InMemoryBackend(RateLimitBackend):
    """
    Sliding window log held in process memory.

    PageVault runs as a single process, so no shared backend is needed.
    Idle keys are dropped every ``cleanup_interval`` seconds.
    """

    def __init__(self, cleanup_interval: int = 300):
        self._requests: Dict[str, List[float]] = {}
        self._lock = threading.RLock()
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = time.time()

    def _drop_idle_keys(self, now: float, window_seconds: int) -> None:
        if now - self._last_cleanup <= self._cleanup_interval:
            return
        self._last_cleanup = now
        cutoff = now - window_seconds
        idle = [key for key, stamps in self._requests.items() if not stamps or stamps[-1] <= cutoff]
        for key in idle:
            del self._requests[key]
        if idle:
            logger.debug(f"Dropped {len(idle)} idle rate limit keys")

    def record_request(self, key: str, timestamp: float, window_seconds: int) -> Tuple[int, float]:
        with self._lock:
            self._drop_idle_keys(timestamp, window_seconds)
            cutoff = timestamp - window_seconds
            stamps = [t for t in self._requests.get(key, ()) if t > cutoff]
            stamps.append(timestamp)
            self._requests[key] = stamps
            return len(stamps), stamps[0]

    def clear(self) -> None:
        with self._lock:
            self._requests.clear()


class RateLimiter:
    """Counts requests per ``scope:client`` key over a sliding window."""

    def __init__(
        self,
        backend: Optional[RateLimitBackend] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._backend = backend or InMemoryBackend()
        self._clock = clock

    def check(self, scope: str, client: str, limit: int, window_seconds: int = 60) -> RateLimitResult:
        now = self._clock()
        count, oldest = self._backend.record_request(f"{scope}:{client}", now, window_seconds)
        reset_at = int(oldest + window_seconds)

        if count > limit:
            return RateLimitResult(
                allowed=False,
                limit=limit,
                remaining=0,
                reset_at=reset_at,
                retry_after=max(1, reset_at - int(now)),
            )
        return RateLimitResult(
            allowed=True,
            limit=limit,
            remaining=max(0, limit - count),
            reset_at=reset_at,
        )

    def reset(self) -> None:
        self._backend.clear()


_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get the singleton rate limiter instance."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter()
    return _rate_limiter


def reset_rate_limiter() -> None:
    """Discard the singleton (tests start every client with empty windows)."""
    global _rate_limiter
    _rate_limiter = None


def client_ip(request: Request) -> str:
    """Caller address, preferring proxy headers."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    if request.client:
        return request.client.host
    return "unknown"


def rate_limit(scope: str, message: str) -> Callable:
    """
    Dependency factory enforcing the ``<scope>_rate_limit`` setting per client IP.

    Raises:
        RateLimitError: 429 with ``Retry-After`` once the window is full.
    """

    async def dependency(request: Request) -> None:
        settings = get_settings().rate_limit
        if not settings.rate_limit_enabled:
            return

        limit = settings.limit_for(scope)
        client = client_ip(request)
        result = get_rate_limiter().check(
            scope, client, limit, window_seconds=settings.rate_limit_window_seconds
        )
        if not result.allowed:
            logger.warning(f"Rate limit hit on {scope} by {client}: {limit}/{settings.rate_limit_window_seconds}s")
            raise RateLimitError(message, retry_after=result.retry_after, limit=limit)

    return dependency
