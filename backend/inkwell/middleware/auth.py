"""Bearer token authentication middleware.

Every /api/* request must carry a valid access token in the Authorization
header, except the public routes listed in PUBLIC_ROUTES. On success the
decoded Identity and the raw token are attached to ``request.state`` for the
authorization guards and for revocation on logout.
"""

import logging
import re
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from inkwell.core.errors import (
    AuthError,
    ConfigError,
    TokenExpired,
    TokenInvalidStructure,
    TokenMissing,
    TokenRevoked,
    error_response,
)
from inkwell.core.logging import redact_token
from inkwell.services.revocation import RevocationRegistry
from inkwell.services.tokens import REFRESH_TOKEN_TYPE, Identity, TokenService

logger = logging.getLogger(__name__)

# (method, path pattern) pairs reachable without a token
PUBLIC_ROUTES: list[tuple[str, re.Pattern[str]]] = [
    ("POST", re.compile(r"^/api/auth/register$")),
    ("POST", re.compile(r"^/api/auth/login$")),
    ("POST", re.compile(r"^/api/auth/refresh$")),
    ("GET", re.compile(r"^/api/articles$")),
    ("GET", re.compile(r"^/api/articles/[^/]+$")),
    ("GET", re.compile(r"^/api/articles/[^/]+/comments$")),
]

# Values some clients send when they have no token
PLACEHOLDER_TOKENS = frozenset({"null", "undefined"})


def is_public_route(method: str, path: str) -> bool:
    if method == "HEAD":
        method = "GET"
    return any(method == m and pattern.match(path) for m, pattern in PUBLIC_ROUTES)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    Missing headers, empty tokens and the literal strings "null"/"undefined"
    all count as no token.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    if not token or token in PLACEHOLDER_TOKENS:
        return None
    return token


def authenticate_token(
    token: str | None,
    tokens: TokenService,
    revocations: RevocationRegistry,
) -> Identity:
    """Run a presented token through the full validation pipeline.

    Order matters: missing, revoked, configuration, signature/time, claim
    shape, then an explicit expiry check against the current clock.
    """
    if token is None:
        raise TokenMissing()

    if revocations.is_revoked(token):
        raise TokenRevoked()

    if not tokens.is_configured:
        raise ConfigError()

    claims = tokens.verify(token)

    if claims.get("id") is None or claims.get("type") == REFRESH_TOKEN_TYPE:
        raise TokenInvalidStructure()
    try:
        identity = Identity.from_claims(claims)
    except (TypeError, ValueError) as e:
        raise TokenInvalidStructure() from e

    # Re-checked after decoding; this path answers 401 rather than 403
    exp = claims.get("exp")
    if not isinstance(exp, int | float) or exp < time.time():
        raise TokenExpired(status_code=401)

    return identity


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Middleware to authenticate API requests using bearer JWTs.

    - Token must be in: Authorization: Bearer <token>
    - 401 for missing or revoked tokens, 403 for presented-but-invalid ones
    - 500 CONFIG_ERROR if the signing secret is not configured
    """

    def __init__(
        self,
        app: ASGIApp,
        tokens: TokenService,
        revocations: RevocationRegistry,
    ) -> None:
        super().__init__(app)
        self.tokens = tokens
        self.revocations = revocations

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        # CORS preflight requests are handled by CORSMiddleware
        if request.method == "OPTIONS":
            return await call_next(request)

        if not path.startswith("/api") or is_public_route(request.method, path):
            return await call_next(request)

        token = extract_bearer_token(request.headers.get("Authorization"))
        try:
            identity = authenticate_token(token, self.tokens, self.revocations)
        except ConfigError as e:
            logger.critical(
                f"Rejecting {request.method} {path}: JWT secret is not configured",
                extra={"event": "auth_config_error", "method": request.method, "path": path},
            )
            return error_response(e)
        except AuthError as e:
            redacted = redact_token(token)
            logger.warning(
                f"Auth failed ({e.code}) for {request.method} {path} - token: {redacted}",
                extra={
                    "event": "auth_failed",
                    "code": e.code,
                    "method": request.method,
                    "path": path,
                    "token": redacted,
                },
            )
            return error_response(e)

        request.state.identity = identity
        request.state.token = token
        return await call_next(request)
