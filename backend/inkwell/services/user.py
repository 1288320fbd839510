"""User store - persistence for user credentials and profiles."""

import builtins
import logging
from datetime import UTC, datetime

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.core.errors import StoreError, UserExists
from inkwell.models import User

logger = logging.getLogger(__name__)


class UserStore:
    """Credential store backed by the users table.

    Every database failure is re-raised as StoreError; the driver message is
    logged here and never returned to the client.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fail(self, operation: str, exc: SQLAlchemyError) -> StoreError:
        logger.error(f"User store {operation} failed: {exc}")
        await self.db.rollback()
        return StoreError()

    async def find_by_email(self, email: str) -> User | None:
        try:
            result = await self.db.execute(select(User).where(User.email == email.lower()))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise await self._fail("find_by_email", e) from e

    async def find_by_id(self, user_id: int) -> User | None:
        try:
            result = await self.db.execute(select(User).where(User.id == user_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise await self._fail("find_by_id", e) from e

    async def exists(self, username: str, email: str) -> bool:
        """Check whether a user with this username or email is registered."""
        try:
            result = await self.db.execute(
                select(User.id).where(or_(User.email == email.lower(), User.username == username))
            )
            return result.first() is not None
        except SQLAlchemyError as e:
            raise await self._fail("exists", e) from e

    async def create(self, username: str, email: str, password_hash: str) -> User:
        """Insert a new user with the default role.

        Raises UserExists when the username or email is taken, including when a
        concurrent registration wins the race after the caller checked.
        """
        user = User(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
            role="user",
        )
        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError as e:
            logger.info(f"User create rejected by unique constraint: {username}")
            await self.db.rollback()
            raise UserExists() from e
        except SQLAlchemyError as e:
            raise await self._fail("create", e) from e
        return user

    async def update_refresh_token(self, user_id: int, value: str | None) -> None:
        """Overwrite the stored refresh token (None clears it)."""
        try:
            await self.db.execute(update(User).where(User.id == user_id).values(refresh_token=value))
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("update_refresh_token", e) from e

    async def rotate_refresh_token(self, user_id: int, expected: str, new_value: str) -> bool:
        """Replace the refresh token only if it still equals ``expected``.

        Single compare-and-set statement: of two concurrent refreshes with the
        same token, exactly one succeeds.
        """
        try:
            result = await self.db.execute(
                update(User)
                .where(User.id == user_id, User.refresh_token == expected)
                .values(refresh_token=new_value)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("rotate_refresh_token", e) from e
        return bool(result.rowcount)

    async def record_login(self, user: User, refresh_token: str) -> None:
        """Persist a fresh refresh token and the login time."""
        try:
            await self.db.execute(
                update(User)
                .where(User.id == user.id)
                .values(refresh_token=refresh_token, last_login_at=datetime.now(UTC))
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("record_login", e) from e

    async def list(self) -> builtins.list[User]:
        """List all users, oldest first."""
        try:
            result = await self.db.execute(select(User).order_by(User.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise await self._fail("list", e) from e
