"""Middleware module for the Inkwell backend."""

from inkwell.middleware.auth import AuthenticationMiddleware
from inkwell.middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from inkwell.middleware.rate_limit_cleanup import rate_limit_cleanup_loop
from inkwell.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "AuthenticationMiddleware",
    "FixedWindowRateLimiter",
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
    "rate_limit_cleanup_loop",
]
