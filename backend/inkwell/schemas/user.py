"""Pydantic schemas for user profiles."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from inkwell.schemas.article import ArticleSummary, CommentSummary


class ProfileUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str


class ProfileResponse(BaseModel):
    user: ProfileUser
    articles: list[ArticleSummary]
    comments: list[CommentSummary]


class UserListItem(BaseModel):
    """Admin view of a user account."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: str
    last_login_at: datetime | None
    created_at: datetime
