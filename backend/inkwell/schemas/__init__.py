"""Pydantic schemas for request/response validation."""

from inkwell.schemas.article import (
    ArticleCreate,
    ArticleListItem,
    ArticleResponse,
    ArticleSummary,
    ArticleUpdate,
    CommentCreate,
    CommentResponse,
    CommentSummary,
    CommentUpdate,
)
from inkwell.schemas.auth import (
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserPublic,
)
from inkwell.schemas.user import ProfileResponse, ProfileUser, UserListItem

__all__ = [
    "ArticleCreate",
    "ArticleListItem",
    "ArticleResponse",
    "ArticleSummary",
    "ArticleUpdate",
    "CommentCreate",
    "CommentResponse",
    "CommentSummary",
    "CommentUpdate",
    "LoginRequest",
    "MessageResponse",
    "ProfileResponse",
    "ProfileUser",
    "RefreshRequest",
    "RegisterRequest",
    "RegisterResponse",
    "TokenResponse",
    "UserListItem",
    "UserPublic",
]
