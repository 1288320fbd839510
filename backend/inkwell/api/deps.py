"""Shared FastAPI dependencies: services, current identity and guards."""

from collections.abc import Awaitable, Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.core import get_db
from inkwell.core.errors import AuthRequired
from inkwell.services import authorization
from inkwell.services.auth import AuthService
from inkwell.services.revocation import RevocationRegistry
from inkwell.services.tokens import Identity, TokenService
from inkwell.services.user import UserStore


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_revocation_registry(request: Request) -> RevocationRegistry:
    return request.app.state.revocations


def get_user_store(db: AsyncSession = Depends(get_db)) -> UserStore:
    """Dependency to get the credential store."""
    return UserStore(db)


def get_auth_service(
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
    revocations: RevocationRegistry = Depends(get_revocation_registry),
) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(store, tokens, revocations)


def get_optional_identity(request: Request) -> Identity | None:
    """Identity attached by AuthenticationMiddleware, if any."""
    return getattr(request.state, "identity", None)


def get_current_identity(
    identity: Identity | None = Depends(get_optional_identity),
) -> Identity:
    """Dependency requiring an authenticated caller."""
    if identity is None:
        raise AuthRequired()
    return identity


def get_current_token(request: Request) -> str | None:
    return getattr(request.state, "token", None)


def require_role(*roles: str) -> Callable[..., Awaitable[Identity]]:
    """Dependency factory: only callers holding one of ``roles`` pass."""

    async def _require_role(
        identity: Identity | None = Depends(get_optional_identity),
    ) -> Identity:
        return authorization.require_role(identity, roles)

    return _require_role
