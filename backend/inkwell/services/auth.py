"""Authentication service: registration, login, refresh rotation and logout."""

import logging
from dataclasses import dataclass
from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from inkwell.core.config import settings
from inkwell.core.errors import (
    InvalidCredentials,
    InvalidRefreshToken,
    InvalidTokenType,
    RefreshFailed,
    RefreshTokenMissing,
    TokenError,
    UserExists,
)
from inkwell.models import User
from inkwell.services.revocation import RevocationRegistry
from inkwell.services.tokens import REFRESH_TOKEN_TYPE, Identity, TokenService
from inkwell.services.user import UserStore

logger = logging.getLogger(__name__)


@lru_cache
def get_password_hasher() -> PasswordHasher:
    """Argon2id hasher using the configured cost parameters."""
    return PasswordHasher(
        time_cost=settings.password_hash_time_cost,
        memory_cost=settings.password_hash_memory_cost,
        parallelism=settings.password_hash_parallelism,
        hash_len=32,
        salt_len=16,
    )


@lru_cache
def _dummy_password_hash() -> str:
    """Hash verified on the unknown-account login path.

    Computed once with the same parameters as real hashes, so a login for a
    missing account costs exactly one verification, like a wrong password.
    """
    return get_password_hasher().hash("inkwell-dummy-password")


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return get_password_hasher().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        return get_password_hasher().verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def identity_for(user: User) -> Identity:
    return Identity(id=user.id, username=user.username, email=user.email, role=user.role)


@dataclass
class IssuedTokens:
    """A freshly minted access/refresh pair."""

    access_token: str
    refresh_token: str
    expires_in: int


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        store: UserStore,
        tokens: TokenService,
        revocations: RevocationRegistry,
    ):
        self.store = store
        self.tokens = tokens
        self.revocations = revocations

    def _issue_pair(self, user: User) -> IssuedTokens:
        return IssuedTokens(
            access_token=self.tokens.issue_access_token(identity_for(user)),
            refresh_token=self.tokens.issue_refresh_token(user.id),
            expires_in=self.tokens.access_ttl_seconds,
        )

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a new user account with the default role."""
        if await self.store.exists(username, email):
            raise UserExists()

        user = await self.store.create(username, email, hash_password(password))
        logger.info(
            f"New user registered: {user.username} (ID: {user.id})",
            extra={"event": "user_registered", "user_id": user.id},
        )
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials and return the user.

        Raises InvalidCredentials for both "user not found" and "wrong password"
        to prevent user enumeration. Both paths run one hash verification.
        """
        user = await self.store.find_by_email(email)

        if user is None:
            verify_password(password, _dummy_password_hash())
            raise InvalidCredentials()

        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()

        return user

    async def login(self, email: str, password: str) -> tuple[User, IssuedTokens]:
        """Authenticate, issue a token pair and persist the refresh token."""
        user = await self.authenticate(email, password)
        issued = self._issue_pair(user)
        await self.store.record_login(user, issued.refresh_token)
        logger.info(
            f"User logged in: {user.username} (ID: {user.id})",
            extra={"event": "login", "user_id": user.id},
        )
        return user, issued

    async def refresh(self, refresh_token: str | None) -> IssuedTokens:
        """Rotate a refresh token into a new access/refresh pair.

        Only the currently stored refresh token is accepted; a superseded one
        fails with InvalidRefreshToken and leaves the stored value untouched.
        """
        if not refresh_token:
            raise RefreshTokenMissing()

        try:
            claims = self.tokens.verify(refresh_token)
        except TokenError as e:
            logger.debug(f"Refresh token rejected: {e.code}")
            raise RefreshFailed() from e

        if claims.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidTokenType()

        try:
            user_id = int(claims["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidRefreshToken() from e

        user = await self.store.find_by_id(user_id)
        if user is None or user.refresh_token != refresh_token:
            raise InvalidRefreshToken()

        issued = self._issue_pair(user)
        if not await self.store.rotate_refresh_token(user.id, refresh_token, issued.refresh_token):
            # Lost a race with a concurrent refresh using the same token
            raise InvalidRefreshToken()
        return issued

    async def logout(self, identity: Identity, access_token: str | None) -> None:
        """Revoke the current access token and clear the stored refresh token."""
        if access_token:
            self.revocations.revoke(access_token)
        await self.store.update_refresh_token(identity.id, None)
        logger.info(
            f"User logged out: {identity.username} (ID: {identity.id})",
            extra={"event": "logout", "user_id": identity.id},
        )
