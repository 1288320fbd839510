"""Article model."""

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inkwell.models.base import BaseModel


class Article(BaseModel):
    """A blog article owned by the user in user_id."""

    __tablename__ = "articles"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    # Comma-separated
    tags: Mapped[str | None] = mapped_column(String(600), nullable=True)
    cover: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Article {self.id} {self.title!r}>"
