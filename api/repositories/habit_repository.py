"""Habit repository for database operations."""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Habit
from repositories.utils import log_slow_query


class HabitRepository:
    """Repository for Habit database operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @log_slow_query("get_habit_by_id")
    async def get_by_id(
        self,
        habit_id: int,
        *,
        include_deleted: bool = False,
    ) -> Habit | None:
        """Get a habit by ID. Soft-deleted habits are hidden by default."""
        query = select(Habit).where(Habit.id == habit_id)
        if not include_deleted:
            query = query.where(Habit.deleted_at.is_(None))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    @log_slow_query("list_habits_for_user")
    async def list_for_user(self, user_id: str) -> Sequence[Habit]:
        """Live habits of a user, oldest first."""
        result = await self.db.execute(
            select(Habit)
            .where(Habit.user_id == user_id, Habit.deleted_at.is_(None))
            .order_by(Habit.created_at, Habit.id)
        )
        return result.scalars().all()

    @log_slow_query("create_habit")
    async def create(
        self,
        user_id: str,
        *,
        name: str,
        goal: int,
        color: str,
    ) -> Habit:
        habit = Habit(user_id=user_id, name=name, goal=goal, color=color)
        self.db.add(habit)
        await self.db.flush()
        return habit

    @log_slow_query("update_habit")
    async def update(self, habit: Habit, **changes: object) -> Habit:
        for field, value in changes.items():
            setattr(habit, field, value)
        await self.db.flush()
        return habit

    @log_slow_query("soft_delete_habit")
    async def soft_delete(self, habit: Habit, *, deleted_at: datetime) -> Habit:
        habit.deleted_at = deleted_at
        await self.db.flush()
        return habit
