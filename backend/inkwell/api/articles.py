"""Article and comment API endpoints.

Reads are public; writes need an access token, and changing or deleting
content needs ownership (or the admin role). Articles are created and
updated from multipart forms so a cover image can travel with them.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.api.deps import get_current_identity
from inkwell.core import get_db
from inkwell.core.errors import NotFound
from inkwell.models import Article, Comment
from inkwell.schemas.article import (
    ArticleBase,
    ArticleCreate,
    ArticleListItem,
    ArticleResponse,
    ArticleUpdate,
    CommentCreate,
    CommentResponse,
    CommentUpdate,
)
from inkwell.schemas.auth import MessageResponse
from inkwell.services.article import ArticleService, CommentService, split_tags
from inkwell.services.authorization import verify_ownership
from inkwell.services.covers import CoverStore, cover_url
from inkwell.services.tokens import Identity

logger = logging.getLogger(__name__)

router = APIRouter(tags=["articles"])


def get_article_service(db: AsyncSession = Depends(get_db)) -> ArticleService:
    """Dependency to get article service."""
    return ArticleService(db)


def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
    """Dependency to get comment service."""
    return CommentService(db)


def get_cover_store(request: Request) -> CoverStore:
    return request.app.state.covers


def _form_model(model: type[ArticleBase], **fields: Any) -> Any:
    try:
        return model(**fields)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


def article_create_form(
    title: str = Form(...),
    content: str = Form(...),
    category: str = Form(...),
    tags: str | None = Form(None),
) -> ArticleCreate:
    return _form_model(ArticleCreate, title=title, content=content, category=category, tags=tags)


def article_update_form(
    title: str = Form(...),
    content: str = Form(...),
    category: str = Form(...),
    tags: str | None = Form(None),
    remove_cover: bool = Form(False),
) -> ArticleUpdate:
    return _form_model(
        ArticleUpdate,
        title=title,
        content=content,
        category=category,
        tags=tags,
        remove_cover=remove_cover,
    )


def _has_file(upload: UploadFile | None) -> bool:
    # Browsers send an empty part when no file was chosen
    return upload is not None and bool(upload.filename)


def article_response(article: Article) -> ArticleResponse:
    return ArticleResponse(
        id=article.id,
        user_id=article.user_id,
        title=article.title,
        content=article.content,
        category=article.category,
        tags=split_tags(article.tags),
        cover=article.cover,
        cover_url=cover_url(article.cover),
        created_at=article.created_at,
        updated_at=article.updated_at,
    )


def _comment_response(comment: Comment, username: str | None = None) -> CommentResponse:
    response = CommentResponse.model_validate(comment)
    response.username = username
    return response


async def _get_article_or_404(service: ArticleService, article_id: int) -> Article:
    article = await service.get(article_id)
    if article is None:
        raise NotFound("Article not found")
    return article


@router.post("/articles", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    data: ArticleCreate = Depends(article_create_form),
    cover: UploadFile | None = File(None),
    identity: Identity = Depends(get_current_identity),
    service: ArticleService = Depends(get_article_service),
    covers: CoverStore = Depends(get_cover_store),
) -> ArticleResponse:
    """Create an article owned by the caller, with an optional cover image."""
    filename = await covers.save(cover) if _has_file(cover) else None
    try:
        article = await service.create(identity.id, data, filename)
    except Exception:
        await covers.delete(filename)
        raise
    logger.info(f"Article {article.id} created by user {identity.id}")
    return article_response(article)


@router.get("/articles", response_model=list[ArticleListItem])
async def list_articles(
    service: ArticleService = Depends(get_article_service),
) -> list[ArticleListItem]:
    """List all articles, newest first."""
    return [
        ArticleListItem(**item, cover_url=cover_url(item["cover"])) for item in await service.list()
    ]


@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: int,
    service: ArticleService = Depends(get_article_service),
) -> ArticleResponse:
    """Get an article by ID."""
    return article_response(await _get_article_or_404(service, article_id))


@router.put("/articles/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: int,
    data: ArticleUpdate = Depends(article_update_form),
    cover: UploadFile | None = File(None),
    identity: Identity = Depends(get_current_identity),
    service: ArticleService = Depends(get_article_service),
    covers: CoverStore = Depends(get_cover_store),
) -> ArticleResponse:
    """Update an article. Only the author or an admin may do this.

    An uploaded cover replaces the stored one; ``remove_cover`` clears it and
    takes precedence over an upload. Replaced files are deleted.
    """
    article = await _get_article_or_404(service, article_id)
    verify_ownership(identity, article.user_id)
    previous = article.cover

    filename = None
    if _has_file(cover) and not data.remove_cover:
        filename = await covers.save(cover)
    try:
        article = await service.update(article, data, filename)
    except Exception:
        await covers.delete(filename)
        raise

    if previous and previous != article.cover:
        await covers.delete(previous)
    return article_response(article)


@router.delete("/articles/{article_id}", response_model=MessageResponse)
async def delete_article(
    article_id: int,
    identity: Identity = Depends(get_current_identity),
    service: ArticleService = Depends(get_article_service),
    covers: CoverStore = Depends(get_cover_store),
) -> MessageResponse:
    """Delete an article, its comments and its cover. Only the author or an admin may do this."""
    article = await _get_article_or_404(service, article_id)
    verify_ownership(identity, article.user_id)
    previous = article.cover
    await service.delete(article)
    await covers.delete(previous)
    logger.info(f"Article {article_id} deleted by user {identity.id}")
    return MessageResponse(message="Article deleted")


@router.post(
    "/articles/{article_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    article_id: int,
    data: CommentCreate,
    identity: Identity = Depends(get_current_identity),
    articles: ArticleService = Depends(get_article_service),
    comments: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    """Comment on an article."""
    await _get_article_or_404(articles, article_id)
    comment = await comments.add(identity.id, article_id, data.content)
    return _comment_response(comment, identity.username)


@router.get("/articles/{article_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    article_id: int,
    comments: CommentService = Depends(get_comment_service),
) -> list[CommentResponse]:
    """List an article's comments, oldest first."""
    return [
        _comment_response(comment, username)
        for comment, username in await comments.list_for_article(article_id)
    ]


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: int,
    data: CommentUpdate,
    identity: Identity = Depends(get_current_identity),
    comments: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    """Edit a comment. Only its author or an admin may do this."""
    comment = await comments.get(comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    verify_ownership(identity, comment.user_id)
    comment = await comments.update(comment, data.content)
    return _comment_response(comment)


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    identity: Identity = Depends(get_current_identity),
    comments: CommentService = Depends(get_comment_service),
) -> MessageResponse:
    """Delete a comment. Only its author or an admin may do this."""
    comment = await comments.get(comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    verify_ownership(identity, comment.user_id)
    await comments.delete(comment)
    return MessageResponse(message="Comment deleted successfully")
