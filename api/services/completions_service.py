"""Daily completion state machine for habits.

Per (habit, day) a record moves through:

    NoRecord --create--> Pending(false)
    NoRecord --toggle--> Done(true)
    Pending(false) <--toggle--> Done(true)

Creating is idempotent: an existing record for today is returned untouched.
The first toggle of a day creates the record already done; habit creation
seeds Pending. Only today's record is ever toggled, and "today" is the
calendar day of ``now`` in the reference zone.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import StrEnum

from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from models import CompletionRecord, Habit
from repositories.completion_repository import CompletionRepository
from repositories.habit_repository import HabitRepository
from services.calendar_service import ReferenceCalendar
from services.errors import HabitNotFoundError, NaiveDatetimeError

logger = get_logger(__name__)


class CompletionState(StrEnum):
    NO_RECORD = "no_record"
    PENDING = "pending"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class CompletionResult:
    """Outcome of a create or toggle on today's record."""

    id: int
    habit_id: int
    day: date
    done: bool
    date_changed: datetime
    created_at: datetime
    created: bool

    @property
    def state(self) -> CompletionState:
        return CompletionState.DONE if self.done else CompletionState.PENDING


def state_of(record: CompletionRecord | None) -> CompletionState:
    if record is None:
        return CompletionState.NO_RECORD
    return CompletionState.DONE if record.done else CompletionState.PENDING


def _to_result(record: CompletionRecord, created: bool) -> CompletionResult:
    return CompletionResult(
        id=record.id,
        habit_id=record.habit_id,
        day=record.day,
        done=record.done,
        date_changed=record.date_changed,
        created_at=record.created_at,
        created=created,
    )


def _resolve_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(UTC)
    if now.tzinfo is None:
        raise NaiveDatetimeError(now)
    return now


async def _require_habit(db: AsyncSession, habit_id: int) -> Habit:
    habit = await HabitRepository(db).get_by_id(habit_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


async def create_accomplished_status(
    db: AsyncSession,
    habit_id: int,
    *,
    now: datetime | None = None,
    calendar: ReferenceCalendar | None = None,
) -> CompletionResult:
    """Ensure today's record exists, seeding it as not done."""
    now = _resolve_now(now)
    calendar = calendar or ReferenceCalendar.from_settings()
    await _require_habit(db, habit_id)

    record, created = await CompletionRepository(db).upsert_daily(
        habit_id, calendar.today(now), now=now, done=False
    )
    if created:
        logger.info("completion.seeded", habit_id=habit_id, day=record.day)
    return _to_result(record, created)


async def update_accomplished_status(
    db: AsyncSession,
    habit_id: int,
    *,
    now: datetime | None = None,
    calendar: ReferenceCalendar | None = None,
) -> CompletionResult:
    """Toggle today's record, creating it as done if the day has none yet."""
    now = _resolve_now(now)
    calendar = calendar or ReferenceCalendar.from_settings()
    await _require_habit(db, habit_id)

    repo = CompletionRepository(db)
    record, created = await repo.upsert_daily(
        habit_id, calendar.today(now), now=now, done=True
    )
    if not created:
        record = await repo.set_done(record, not record.done, now=now)

    logger.info(
        "completion.toggled",
        habit_id=habit_id,
        day=record.day,
        done=record.done,
        created=created,
    )
    return _to_result(record, created)


async def get_completion_state(
    db: AsyncSession,
    habit_id: int,
    day: date,
) -> CompletionState:
    await _require_habit(db, habit_id)
    record = await CompletionRepository(db).get_for_day(habit_id, day)
    return state_of(record)


async def get_accomplished_status(
    db: AsyncSession,
    habit_id: int,
    day: date,
) -> bool:
    """Whether the habit was accomplished on ``day``; False without a record."""
    return await get_completion_state(db, habit_id, day) is CompletionState.DONE
