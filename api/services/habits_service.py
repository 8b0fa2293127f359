"""Habit lifecycle: create, update, soft-delete and lookup.

Creating a habit seeds today's completion record as not done, so a fresh
habit shows up as pending on the day it was added.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from models import Habit
from repositories.habit_repository import HabitRepository
from repositories.user_repository import UserRepository
from schemas import HabitCreate, HabitUpdate
from services.calendar_service import ReferenceCalendar
from services.completions_service import create_accomplished_status
from services.errors import HabitNotFoundError, UserNotFoundError

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class HabitData:
    id: int
    user_id: str
    name: str
    goal: int
    color: str
    created_at: datetime
    deleted_at: datetime | None


def to_habit_data(habit: Habit) -> HabitData:
    return HabitData(
        id=habit.id,
        user_id=habit.user_id,
        name=habit.name,
        goal=habit.goal,
        color=habit.color,
        created_at=habit.created_at,
        deleted_at=habit.deleted_at,
    )


async def get_habit(db: AsyncSession, habit_id: int) -> Habit:
    """Live habit by id. Raises HabitNotFoundError for unknown or deleted ids."""
    habit = await HabitRepository(db).get_by_id(habit_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


async def list_habits(db: AsyncSession, user_id: str) -> Sequence[HabitData]:
    if await UserRepository(db).get_by_id(user_id) is None:
        raise UserNotFoundError(user_id)
    habits = await HabitRepository(db).list_for_user(user_id)
    return [to_habit_data(h) for h in habits]


async def create_habit(
    db: AsyncSession,
    user_id: str,
    data: HabitCreate,
    *,
    now: datetime | None = None,
    calendar: ReferenceCalendar | None = None,
) -> HabitData:
    if await UserRepository(db).get_by_id(user_id) is None:
        raise UserNotFoundError(user_id)

    habit = await HabitRepository(db).create(
        user_id, name=data.name, goal=data.goal, color=data.color.value
    )
    await create_accomplished_status(db, habit.id, now=now, calendar=calendar)

    logger.info("habit.created", habit_id=habit.id, user_id=user_id, goal=habit.goal)
    return to_habit_data(habit)


async def update_habit(
    db: AsyncSession,
    habit_id: int,
    data: HabitUpdate,
) -> HabitData:
    repo = HabitRepository(db)
    habit = await get_habit(db, habit_id)
    changes = data.changes()
    if changes:
        habit = await repo.update(habit, **changes)
        logger.info("habit.updated", habit_id=habit_id, fields=sorted(changes))
    return to_habit_data(habit)


async def delete_habit(
    db: AsyncSession,
    habit_id: int,
    *,
    now: datetime | None = None,
) -> HabitData:
    """Tombstone the habit. Its completion records are kept for history."""
    habit = await get_habit(db, habit_id)
    habit = await HabitRepository(db).soft_delete(
        habit, deleted_at=now or datetime.now(UTC)
    )
    logger.info("habit.deleted", habit_id=habit_id)
    return to_habit_data(habit)
