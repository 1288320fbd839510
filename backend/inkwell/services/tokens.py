"""Token service: issues and verifies signed access and refresh tokens."""

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any

import jwt
from jwt.exceptions import ExpiredSignatureError, ImmatureSignatureError, PyJWTError
from jwt.utils import base64url_decode, base64url_encode

from inkwell.core.config import Settings
from inkwell.core.errors import ConfigError, TokenExpired, TokenMalformed, TokenNotActive

logger = logging.getLogger(__name__)

REFRESH_TOKEN_TYPE = "refresh"


def canonical_token(token: str) -> str:
    """Re-encode the signature segment so every spelling the decoder accepts maps to one string.

    Padding, stray characters and non-zero trailing bits in the base64url
    signature all decode to the same bytes and still verify.
    """
    signing_input, sep, signature = token.rpartition(".")
    if not sep:
        return token
    try:
        raw = base64url_decode(signature)
    except ValueError:
        return token
    return f"{signing_input}.{base64url_encode(raw).decode('ascii')}"


@dataclass(frozen=True)
class Identity:
    """Caller identity as embedded in an access token."""

    id: int
    username: str
    email: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "Identity":
        return cls(
            id=int(claims["id"]),
            username=str(claims.get("username", "")),
            email=str(claims.get("email", "")),
            role=str(claims.get("role") or "user"),
        )


class TokenService:
    """Issues and verifies HS256 JWTs carrying an Identity.

    Verification only fails for structural or temporal reasons; whether the
    token's subject still exists or has been revoked is the caller's concern.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        issuer: str = "blogging-platform",
        audience: str = "blogging-platform-users",
        access_ttl_seconds: int = 15 * 60,
        refresh_ttl_seconds: int = 7 * 24 * 60 * 60,
    ) -> None:
        self._secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self.access_ttl_seconds = access_ttl_seconds
        self.refresh_ttl_seconds = refresh_ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            access_ttl_seconds=settings.jwt_access_token_expire_minutes * 60,
            refresh_ttl_seconds=settings.jwt_refresh_token_expire_days * 24 * 60 * 60,
        )

    @property
    def is_configured(self) -> bool:
        """True when a signing secret is available."""
        return bool(self._secret)

    def _require_secret(self) -> str:
        if not self._secret:
            logger.critical("JWT signing secret is not configured")
            raise ConfigError()
        return self._secret

    def _encode(self, claims: dict[str, Any], ttl_seconds: int) -> str:
        now = int(time.time())
        payload = {
            **claims,
            "iat": now,
            "exp": now + ttl_seconds,
            "iss": self.issuer,
            "aud": self.audience,
            # Nonce so two tokens minted in the same second never collide
            "jti": secrets.token_hex(16),
        }
        token = jwt.encode(payload, self._require_secret(), algorithm=self.algorithm)
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(token)

    def issue_access_token(self, identity: Identity) -> str:
        """Create a short-lived access token embedding the identity."""
        return self._encode(
            {
                "id": identity.id,
                "email": identity.email,
                "role": identity.role,
                "username": identity.username,
            },
            self.access_ttl_seconds,
        )

    def issue_refresh_token(self, identity_id: int) -> str:
        """Create a long-lived refresh token for the given subject."""
        return self._encode({"id": identity_id, "type": REFRESH_TOKEN_TYPE}, self.refresh_ttl_seconds)

    def verify(self, token: str) -> dict[str, Any]:
        """Decode and validate a token, returning its claims.

        Raises:
            TokenExpired: past its exp claim
            TokenNotActive: used before its nbf/iat claim
            TokenMalformed: bad signature, structure, issuer or audience
            ConfigError: no signing secret configured
        """
        secret = self._require_secret()
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"require": ["exp", "iat"]},
            )
        except ExpiredSignatureError as e:
            raise TokenExpired() from e
        except ImmatureSignatureError as e:
            raise TokenNotActive() from e
        except PyJWTError as e:
            raise TokenMalformed() from e
