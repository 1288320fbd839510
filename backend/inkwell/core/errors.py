"""Application error taxonomy.

Every failure the API reports is an ``AppError`` carrying an HTTP status and a
stable machine-readable ``code``. Responses always have the shape
``{"error": <message>, "code": <code>}``.
"""

from typing import Any

from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for errors mapped to HTTP responses."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(self.message)


# --- Token / authentication failures ---


class AuthError(AppError):
    """Base authentication error."""

    status_code = 401
    code = "AUTH_ERROR"
    message = "Authentication failed"


class TokenMissing(AuthError):
    code = "TOKEN_MISSING"
    message = "Access token missing or invalid"


class TokenRevoked(AuthError):
    code = "TOKEN_REVOKED"
    message = "Token has been revoked"


class TokenError(AuthError):
    """A token was presented but could not be trusted.

    Distinct from the 401s above: the client sent *a* token, just an invalid one.
    """

    status_code = 403
    code = "TOKEN_INVALID"
    message = "Invalid token"


class TokenMalformed(TokenError):
    code = "TOKEN_MALFORMED"
    message = "Malformed token"


class TokenExpired(TokenError):
    code = "TOKEN_EXPIRED"
    message = "Token expired"


class TokenNotActive(TokenError):
    code = "TOKEN_NOT_ACTIVE"
    message = "Token not active"


class TokenInvalidStructure(TokenError):
    code = "TOKEN_INVALID_STRUCTURE"
    message = "Invalid token structure"


class ConfigError(AppError):
    """Server-side deployment defect, never caused by the client."""

    status_code = 500
    code = "CONFIG_ERROR"
    message = "Server configuration error"


class AuthRequired(AuthError):
    code = "AUTH_REQUIRED"
    message = "Authentication required"


class InsufficientPermissions(AppError):
    status_code = 403
    code = "INSUFFICIENT_PERMISSIONS"
    message = "Insufficient permissions"


class NotOwner(AppError):
    status_code = 403
    code = "NOT_OWNER"
    message = "Access denied - not resource owner"


class InvalidCredentials(AuthError):
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class RefreshTokenMissing(AuthError):
    code = "REFRESH_TOKEN_MISSING"
    message = "Refresh token required"


class RefreshFailed(AuthError):
    code = "REFRESH_FAILED"
    message = "Token refresh failed"


class InvalidTokenType(AuthError):
    code = "INVALID_TOKEN_TYPE"
    message = "Invalid token type"


class InvalidRefreshToken(AuthError):
    code = "INVALID_REFRESH_TOKEN"
    message = "Invalid refresh token"


# --- Request / resource failures ---


class UserExists(AppError):
    status_code = 400
    code = "USER_EXISTS"
    message = "User with this email or username already exists"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class RateLimited(AppError):
    status_code = 429
    code = "RATE_LIMITED"
    message = "Too many requests, please try again later."


# --- Uploads ---


class InvalidFileType(AppError):
    status_code = 400
    code = "INVALID_FILE_TYPE"
    message = "Only image files (JPEG, PNG, GIF) are allowed"


class FileTooLarge(AppError):
    status_code = 413
    code = "FILE_TOO_LARGE"
    message = "Cover image must be 5MB or smaller"


class StoreError(AppError):
    """Credential/content store failure. Driver details never reach the client."""

    status_code = 500
    code = "STORE_ERROR"
    message = "Internal server error"


def error_body(exc: AppError) -> dict[str, Any]:
    return {"error": exc.message, "code": exc.code}


def error_response(exc: AppError, headers: dict[str, str] | None = None) -> JSONResponse:
    """Render an AppError as the standard JSON error response."""
    response_headers = dict(headers or {})
    if exc.status_code == 401:
        response_headers.setdefault("WWW-Authenticate", "Bearer")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc),
        headers=response_headers or None,
    )
