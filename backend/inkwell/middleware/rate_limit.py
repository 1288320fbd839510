"""Rate limiting middleware for API protection."""

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from inkwell.core.errors import RateLimited, error_response
from inkwell.core.request_utils import get_client_ip

logger = logging.getLogger(__name__)

# Authentication endpoints get the strict per-client attempt limit
AUTH_PATHS = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/refresh",
)


@dataclass
class WindowCounter:
    """Request count for one client within the current window."""

    window_start: float
    count: int = 0


class FixedWindowRateLimiter:
    """In-memory fixed-window rate limiter keyed by client.

    Each key gets ``limit`` hits per ``window_seconds``; the count resets when
    a hit lands in a new window. Safe for concurrent use from threads or tasks.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._counters: dict[str, WindowCounter] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> tuple[bool, dict[str, str]]:
        """Record a hit for key.

        Returns:
            Tuple of (is_allowed, headers_dict)
        """
        now = self._clock()
        with self._lock:
            counter = self._counters.get(key)
            if counter is None or now - counter.window_start >= self.window_seconds:
                counter = WindowCounter(window_start=now)
                self._counters[key] = counter

            reset_seconds = max(1, math.ceil(counter.window_start + self.window_seconds - now))
            headers = {
                "X-RateLimit-Limit": str(self.limit),
                "X-RateLimit-Reset": str(reset_seconds),
            }

            if counter.count >= self.limit:
                headers["X-RateLimit-Remaining"] = "0"
                headers["Retry-After"] = str(reset_seconds)
                return False, headers

            counter.count += 1
            headers["X-RateLimit-Remaining"] = str(self.limit - counter.count)
            return True, headers

    def reset(self, key: str | None = None) -> None:
        """Reset counters for one key, or all keys."""
        with self._lock:
            if key is None:
                self._counters.clear()
            else:
                self._counters.pop(key, None)

    def cleanup_expired_windows(self) -> int:
        """Drop counters whose window has passed. Returns count removed."""
        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, counter in self._counters.items()
                if now - counter.window_start >= self.window_seconds
            ]
            for key in expired:
                del self._counters[key]
            return len(expired)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client rate limiting in front of authentication.

    - Authentication endpoints (login/register/refresh) use the strict limiter
    - Everything else under /api uses the general limiter
    - Rate limit headers are added to every limited response
    """

    def __init__(
        self,
        app: ASGIApp,
        general_limiter: FixedWindowRateLimiter,
        auth_limiter: FixedWindowRateLimiter,
        trusted_proxies: set[str] | None = None,
        enabled: bool = True,
    ) -> None:
        super().__init__(app)
        self.general_limiter = general_limiter
        self.auth_limiter = auth_limiter
        self.trusted_proxies = trusted_proxies or set()
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not self.enabled or request.method == "OPTIONS" or not path.startswith("/api"):
            return await call_next(request)

        client_ip = get_client_ip(request, self.trusted_proxies)
        if path in AUTH_PATHS:
            limiter, key = self.auth_limiter, f"{client_ip}:auth"
            message = "Too many authentication attempts, please try again later."
        else:
            limiter, key = self.general_limiter, f"{client_ip}:api"
            message = "Too many requests from this IP, please try again later."

        is_allowed, headers = limiter.hit(key)
        if not is_allowed:
            logger.warning(
                f"Rate limit exceeded for {client_ip} on {path}",
                extra={"event": "rate_limited", "client_ip": client_ip, "path": path},
            )
            return error_response(RateLimited(message), headers=headers)

        response = await call_next(request)
        for name, value in headers.items():
            response.headers[name] = value
        return response
