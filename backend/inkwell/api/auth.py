"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, status

from inkwell.api.deps import (
    get_auth_service,
    get_current_identity,
    get_current_token,
    get_user_store,
)
from inkwell.core.errors import AuthRequired
from inkwell.schemas.auth import (
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserPublic,
)
from inkwell.services.auth import AuthService
from inkwell.services.tokens import Identity
from inkwell.services.user import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """Create a new user account.

    Returns 400 USER_EXISTS if the email or username is taken.
    """
    user = await auth_service.register(
        username=request.username,
        email=request.email,
        password=request.password,
    )
    return RegisterResponse(
        message="User registered successfully",
        user=UserPublic.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Authenticate and get JWT tokens.

    Unknown email and wrong password both answer 401 INVALID_CREDENTIALS.
    """
    user, issued = await auth_service.login(email=request.email, password=request.password)
    return TokenResponse(
        message="Login successful",
        access_token=issued.access_token,
        refresh_token=issued.refresh_token,
        expires_in=issued.expires_in,
        user=UserPublic.model_validate(user),
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_tokens(
    request: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Exchange the current refresh token for a new token pair (rotation)."""
    issued = await auth_service.refresh(request.refresh_token)
    return TokenResponse(
        message="Token refreshed successfully",
        access_token=issued.access_token,
        refresh_token=issued.refresh_token,
        expires_in=issued.expires_in,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    identity: Identity = Depends(get_current_identity),
    token: str | None = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Log out the current user.

    Revokes the presented access token and clears the stored refresh token,
    so neither the in-flight token nor any refresh remains usable.
    """
    await auth_service.logout(identity, token)
    return MessageResponse(message="Logged out successfully", code="LOGOUT_SUCCESS")


@router.get("/me", response_model=UserPublic)
async def get_current_user_info(
    identity: Identity = Depends(get_current_identity),
    store: UserStore = Depends(get_user_store),
) -> UserPublic:
    """Get the current user's information from the store."""
    user = await store.find_by_id(identity.id)
    if user is None:
        raise AuthRequired("User no longer exists")
    return UserPublic.model_validate(user)
