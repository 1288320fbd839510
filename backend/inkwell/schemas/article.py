"""Pydantic schemas for articles and comments."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_TAGS = 10
MAX_TAG_LENGTH = 50


class ArticleBase(BaseModel):
    title: str = Field(..., min_length=3, max_length=255)
    content: str = Field(..., min_length=10, max_length=50000)
    category: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-zA-Z0-9\s_-]+$")
    tags: list[str] | str | None = None
    @field_validator("title", "content", "category", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | str | None) -> list[str] | None:
        """Accept a list or a comma-separated string; always return a list."""
        if v is None:
            return None
        if isinstance(v, str):
            if len(v) > 500:
                raise ValueError("Tags string too long")
            v = v.split(",")
        tags = [t.strip() for t in v if t.strip()]
        if len(tags) > MAX_TAGS:
            raise ValueError(f"Maximum {MAX_TAGS} tags allowed")
        if any(len(t) > MAX_TAG_LENGTH for t in tags):
            raise ValueError(f"Each tag must be a string under {MAX_TAG_LENGTH} characters")
        return tags


class ArticleCreate(ArticleBase):
    """Request to create an article."""


class ArticleUpdate(ArticleBase):
    """Request to replace an article's fields.

    remove_cover clears the stored cover; an uploaded file replaces it.
    """

    remove_cover: bool = False


class ArticleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    content: str
    category: str
    tags: list[str]
    cover: str | None
    cover_url: str | None = None
    created_at: datetime
    updated_at: datetime


class ArticleListItem(BaseModel):
    id: int
    title: str
    content: str
    category: str
    tags: list[str]
    cover: str | None
    cover_url: str | None = None
    created_at: datetime
    author: str | None


class ArticleSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    created_at: datetime


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v):
        return v.strip() if isinstance(v, str) else v


class CommentUpdate(CommentCreate):
    """Request to edit a comment."""


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    article_id: int
    content: str
    created_at: datetime
    updated_at: datetime
    username: str | None = None


class CommentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    created_at: datetime
