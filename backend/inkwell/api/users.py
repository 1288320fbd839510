"""User profile API endpoints."""

from fastapi import APIRouter, Depends

from inkwell.api.articles import article_response, get_article_service, get_comment_service
from inkwell.api.deps import get_current_identity, get_user_store, require_role
from inkwell.core.errors import NotFound
from inkwell.schemas.article import ArticleResponse, ArticleSummary, CommentSummary
from inkwell.schemas.user import ProfileResponse, ProfileUser, UserListItem
from inkwell.services.article import ArticleService, CommentService
from inkwell.services.tokens import Identity
from inkwell.services.user import UserStore

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserListItem])
async def list_users(
    _admin: Identity = Depends(require_role("admin")),
    store: UserStore = Depends(get_user_store),
) -> list[UserListItem]:
    """List all user accounts (admin only)."""
    return [UserListItem.model_validate(user) for user in await store.list()]


@router.get("/{user_id}/profile", response_model=ProfileResponse)
async def get_user_profile(
    user_id: int,
    _identity: Identity = Depends(get_current_identity),
    store: UserStore = Depends(get_user_store),
    articles: ArticleService = Depends(get_article_service),
    comments: CommentService = Depends(get_comment_service),
) -> ProfileResponse:
    """A user's public profile with their articles and comments."""
    user = await store.find_by_id(user_id)
    if user is None:
        raise NotFound("User not found")
    return ProfileResponse(
        user=ProfileUser.model_validate(user),
        articles=[ArticleSummary.model_validate(a) for a in await articles.list_for_user(user_id)],
        comments=[CommentSummary.model_validate(c) for c in await comments.list_for_user(user_id)],
    )


@router.get("/{user_id}/articles", response_model=list[ArticleResponse])
async def get_user_articles(
    user_id: int,
    _identity: Identity = Depends(get_current_identity),
    articles: ArticleService = Depends(get_article_service),
) -> list[ArticleResponse]:
    """All of a user's articles, newest first."""
    return [article_response(article) for article in await articles.list_for_user(user_id)]
