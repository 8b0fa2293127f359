"""User repository for database operations."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import User
from repositories.utils import log_slow_query


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("get_user_by_id")
    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by their ID. Soft-deleted users are not returned."""
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    @log_slow_query("create_user")
    async def create(self, user_id: str, *, email: str, username: str) -> User:
        user = User(id=user_id, email=email, username=username)
        self.db.add(user)
        await self.db.flush()
        return user

    @log_slow_query("delete_user")
    async def delete(self, user_id: str) -> bool:
        """Hard-delete a user; habits and completion records cascade."""
        result = await self.db.execute(delete(User).where(User.id == user_id))
        return bool(result.rowcount)
