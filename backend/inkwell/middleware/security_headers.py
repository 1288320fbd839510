"""Security headers middleware."""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Applied to every response, including covers served from /uploads
STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; img-src 'self' data: https:; object-src 'none'; frame-ancestors 'none'"
    ),
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains; preload"

# Token-bearing responses must never be cached by browsers or proxies
NO_STORE_PREFIX = "/api/auth"


def _is_https(request: Request) -> bool:
    return request.headers.get("x-forwarded-proto", "") == "https" or request.url.scheme == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds hardening headers, HSTS over https and no-store on auth responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers.update(STATIC_HEADERS)
        if request.url.path.startswith(NO_STORE_PREFIX):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"
        if _is_https(request):
            response.headers["Strict-Transport-Security"] = HSTS_VALUE

        return response
