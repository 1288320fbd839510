"""Pydantic schemas for authentication API."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

RESERVED_USERNAMES = frozenset({"admin", "root", "api", "www", "mail", "support"})

PASSWORD_SPECIALS = "@$!%*?&"

EMAIL_MAX_LENGTH = 100


def _normalize_email(value: str) -> str:
    if len(value) > EMAIL_MAX_LENGTH:
        raise ValueError(f"Email must be at most {EMAIL_MAX_LENGTH} characters")
    return value.lower()


class RegisterRequest(BaseModel):
    """Request for user registration."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[a-zA-Z0-9_-]+$",
        description="Username (3-50 chars: letters, numbers, hyphens and underscores)",
    )
    email: EmailStr
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password with lowercase, uppercase, digit and one of @$!%*?&",
    )

    @field_validator("username")
    @classmethod
    def username_not_reserved(cls, v: str) -> str:
        if v.lower() in RESERVED_USERNAMES:
            raise ValueError("Username is reserved")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def email_strip(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if not (
            any(c.islower() for c in v)
            and any(c.isupper() for c in v)
            and any(c.isdigit() for c in v)
            and any(c in PASSWORD_SPECIALS for c in v)
        ):
            raise ValueError(
                "Password must contain: lowercase, uppercase, number, and special character"
            )
        return v


class LoginRequest(BaseModel):
    """Request for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def email_strip(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _normalize_email(v)


class RefreshRequest(BaseModel):
    """Request for token refresh.

    The token is optional at the schema level so a missing value answers
    REFRESH_TOKEN_MISSING rather than a generic validation error.
    """

    refresh_token: str | None = None


class UserPublic(BaseModel):
    """Public identity fields. Never includes hashes or tokens."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: str


class RegisterResponse(BaseModel):
    message: str
    user: UserPublic


class TokenResponse(BaseModel):
    """Response with JWT tokens."""

    message: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiry in seconds")
    user: UserPublic | None = None


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    code: str | None = None
