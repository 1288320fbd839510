"""Article and comment services - business logic for blog content."""

import builtins
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.models import Article, Comment, User
from inkwell.schemas.article import ArticleCreate, ArticleUpdate


def join_tags(tags: builtins.list[str] | None) -> str | None:
    return ",".join(tags) if tags else None


def split_tags(tags: str | None) -> builtins.list[str]:
    return [t for t in (tags or "").split(",") if t]


class ArticleService:
    """Service for managing articles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, user_id: int, data: ArticleCreate, cover: str | None = None) -> Article:
        article = Article(
            user_id=user_id,
            title=data.title,
            content=data.content,
            category=data.category,
            tags=join_tags(data.tags),
            cover=cover,
        )
        self.db.add(article)
        await self.db.commit()
        await self.db.refresh(article)
        return article

    async def get(self, article_id: int) -> Article | None:
        result = await self.db.execute(select(Article).where(Article.id == article_id))
        return result.scalar_one_or_none()

    async def list(self) -> builtins.list[dict[str, Any]]:
        """List all articles newest first, with the author's username."""
        # Secondary sort by id for deterministic ordering when timestamps are identical
        result = await self.db.execute(
            select(Article, User.username)
            .outerjoin(User, Article.user_id == User.id)
            .order_by(Article.created_at.desc(), Article.id.desc())
        )
        return [
            {
                "id": article.id,
                "title": article.title,
                "content": article.content,
                "category": article.category,
                "tags": split_tags(article.tags),
                "cover": article.cover,
                "created_at": article.created_at,
                "author": username,
            }
            for article, username in result.all()
        ]

    async def list_for_user(self, user_id: int) -> builtins.list[Article]:
        result = await self.db.execute(
            select(Article)
            .where(Article.user_id == user_id)
            .order_by(Article.created_at.desc(), Article.id.desc())
        )
        return list(result.scalars().all())

    async def update(
        self, article: Article, data: ArticleUpdate, cover: str | None = None
    ) -> Article:
        """Replace an article's editable fields. ``cover`` is a newly stored filename."""
        article.title = data.title
        article.content = data.content
        article.category = data.category
        article.tags = join_tags(data.tags)
        if data.remove_cover:
            article.cover = None
        elif cover:
            article.cover = cover

        await self.db.commit()
        await self.db.refresh(article)
        return article

    async def delete(self, article: Article) -> None:
        """Delete an article together with its comments."""
        await self.db.execute(delete(Comment).where(Comment.article_id == article.id))
        await self.db.delete(article)
        await self.db.commit()


class CommentService:
    """Service for managing comments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, user_id: int, article_id: int, content: str) -> Comment:
        comment = Comment(user_id=user_id, article_id=article_id, content=content)
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    async def get(self, comment_id: int) -> Comment | None:
        result = await self.db.execute(select(Comment).where(Comment.id == comment_id))
        return result.scalar_one_or_none()

    async def list_for_article(self, article_id: int) -> builtins.list[tuple[Comment, str]]:
        """Comments on an article oldest first, paired with the commenter's username."""
        result = await self.db.execute(
            select(Comment, User.username)
            .join(User, Comment.user_id == User.id)
            .where(Comment.article_id == article_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        return [(comment, username) for comment, username in result.all()]

    async def list_for_user(self, user_id: int) -> builtins.list[Comment]:
        result = await self.db.execute(
            select(Comment).where(Comment.user_id == user_id).order_by(Comment.id)
        )
        return list(result.scalars().all())

    async def update(self, comment: Comment, content: str) -> Comment:
        comment.content = content
        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    async def delete(self, comment: Comment) -> None:
        await self.db.delete(comment)
        await self.db.commit()
