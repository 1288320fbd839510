"""User model - the credential store record."""

from datetime import datetime

from sqlalchemy import DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inkwell.models.base import BaseModel

UserRole = Enum(
    "user",
    "admin",
    name="user_role",
    create_constraint=True,
)


class User(BaseModel):
    """A registered author.

    refresh_token holds the single currently valid refresh token. Issuing a new
    one overwrites it; logout sets it to NULL.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(UserRole, nullable=False, default="user")

    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Tracking
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.username}>"
