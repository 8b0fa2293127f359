"""Analytics over a habit's or a user's completion history.

This module handles:
- Streaks for a single habit and for a user's habits combined
- Dense per-day completion counts for calendar views
- Consistency against weekly goals and weekly goal progress

Each function fetches a point-in-time snapshot through the repositories and
hands it to the pure calculators. Store failures propagate unchanged; an
empty history yields zero results.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import StrEnum

from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from models import Habit
from repositories.completion_repository import CompletionRepository
from repositories.habit_repository import HabitRepository
from repositories.user_repository import UserRepository
from services.aggregates_service import (
    DayCompletion,
    PeriodSummary,
    count_done_in_range,
    daily_completions,
    goal_progress,
    summarize_period,
)
from services.calendar_service import DateRange, Period, ReferenceCalendar
from services.errors import (
    InvalidFrequencyError,
    NaiveDatetimeError,
    UserNotFoundError,
)
from services.habits_service import HabitData, get_habit, to_habit_data
from services.streaks_service import (
    StreakData,
    calculate_streaks,
    completed_days,
    compute_record_streaks,
)

logger = get_logger(__name__)


class Frequency(StrEnum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "all_time"

    @classmethod
    def parse(cls, value: "str | Frequency") -> "Frequency":
        """Accepts enum members, values, and the spaced form "all time"."""
        if isinstance(value, Frequency):
            return value
        normalized = str(value).strip().lower().replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidFrequencyError(value) from None


@dataclass(frozen=True, slots=True)
class HabitHistory:
    habit: HabitData
    accomplished: list[date]
    streaks: StreakData


@dataclass(frozen=True, slots=True)
class AccomplishedCount:
    date_range: DateRange
    total: int
    days: list[DayCompletion]


@dataclass(frozen=True, slots=True)
class GoalProgress:
    habit_id: int
    goal: int
    week: DateRange
    done_count: int
    progress: float


def _resolve_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(UTC)
    if now.tzinfo is None:
        raise NaiveDatetimeError(now)
    return now


async def _user_habits(db: AsyncSession, user_id: str) -> Sequence[Habit]:
    if await UserRepository(db).get_by_id(user_id) is None:
        raise UserNotFoundError(user_id)
    return await HabitRepository(db).list_for_user(user_id)


async def _frequency_range(
    repo: CompletionRepository,
    habit_ids: set[int],
    frequency: Frequency,
    now: datetime,
    calendar: ReferenceCalendar,
) -> DateRange:
    """Calendar week or month containing now, or first record through today."""
    if frequency is Frequency.WEEKLY:
        return calendar.period_range(Period.WEEK, now)
    if frequency is Frequency.MONTHLY:
        return calendar.period_range(Period.MONTH, now)

    today = calendar.today(now)
    first = await repo.first_day(habit_ids)
    if first is None or first > today:
        return DateRange(today, today)
    return DateRange(first, today)


async def get_habit_streaks(
    db: AsyncSession,
    habit_id: int,
    *,
    now: datetime | None = None,
    calendar: ReferenceCalendar | None = None,
) -> StreakData:
    """Current and best streak of one habit."""
    now = _resolve_now(now)
    calendar = calendar or ReferenceCalendar.from_settings()
    await get_habit(db, habit_id)

    records = await CompletionRepository(db).find({habit_id}, done_only=True)
    return compute_record_streaks(records, now, calendar)


async def get_habit_accomplished_dates(
    db: AsyncSession,
    habit_id: int,
    *,
    now: datetime | None = None,
    calendar: ReferenceCalendar | None = None,
) -> HabitHistory:
    """Every day the habit was accomplished, oldest first, with its streaks."""
    now = _resolve_now(now)
    calendar = calendar or ReferenceCalendar.from_settings()
    habit = await get_habit(db, habit_id)

    records = await CompletionRepository(db).find({habit_id}, done_only=True)
    days = sorted(completed_days(records))
    return HabitHistory(
        habit=to_habit_data(habit),
        accomplished=days,
        streaks=calculate_streaks(days, calendar.today(now)),
    )


async def get_user_streak(
    db: AsyncSession,
    user_id: str,
    frequency: str | Frequency,
    *,
    now: datetime | None = None,
    calendar: ReferenceCalendar | None = None,
) -> StreakData:
    """Streaks over the days on which the user completed any habit.

    The window selected by ``frequency`` bounds the history considered; the
    current streak is still anchored on today.
    """
    frequency = Frequency.parse(frequency)
    now = _resolve_now(now)
    calendar = calendar or ReferenceCalendar.from_settings()

    habit_ids = {h.id for h in await _user_habits(db, user_id)}
    repo = CompletionRepository(db)
    date_range = await _frequency_range(repo, habit_ids, frequency, now, calendar)
    records = await repo.find(habit_ids, done_only=True, date_range=date_range)

    streaks = compute_record_streaks(records, now, calendar)
    logger.debug(
        "analytics.user_streak",
        user_id=user_id,
        frequency=frequency.value,
        current=streaks.current_streak,
        best=streaks.best_streak,
    )
    return streaks


async def get_user_accomplished_count(
    db: AsyncSession,
    user_id: str,
    frequency: str | Frequency,
    *,
    now: datetime | None = None,
    calendar: ReferenceCalendar | None = None,
) -> AccomplishedCount:
    """Dense per-day completion counts with the habit names done each day."""
    frequency = Frequency.parse(frequency)
    now = _resolve_now(now)
    calendar = calendar or ReferenceCalendar.from_settings()

    habits = await _user_habits(db, user_id)
    names = {h.id: h.name for h in habits}
    repo = CompletionRepository(db)
    date_range = await _frequency_range(repo, set(names), frequency, now, calendar)
    records = await repo.find(set(names), done_only=True, date_range=date_range)

    days = daily_completions(records, names, date_range)
    return AccomplishedCount(
        date_range=date_range,
        total=sum(d.count for d in days),
        days=days,
    )


async def get_user_consistency(
    db: AsyncSession,
    user_id: str,
    frequency: str | Frequency,
    *,
    now: datetime | None = None,
    calendar: ReferenceCalendar | None = None,
) -> PeriodSummary:
    """Completions against the user's summed weekly goals over the window."""
    frequency = Frequency.parse(frequency)
    now = _resolve_now(now)
    calendar = calendar or ReferenceCalendar.from_settings()

    habits = await _user_habits(db, user_id)
    habit_ids = {h.id for h in habits}
    repo = CompletionRepository(db)
    date_range = await _frequency_range(repo, habit_ids, frequency, now, calendar)
    records = await repo.find(habit_ids, done_only=True, date_range=date_range)

    return summarize_period(records, [h.goal for h in habits], date_range, calendar)


async def get_goal_progress(
    db: AsyncSession,
    habit_id: int,
    *,
    now: datetime | None = None,
    calendar: ReferenceCalendar | None = None,
) -> GoalProgress:
    """Share of this week's goal reached so far; may exceed 100."""
    now = _resolve_now(now)
    calendar = calendar or ReferenceCalendar.from_settings()
    habit = await get_habit(db, habit_id)

    window = calendar.period_window(Period.WEEK, now)
    week = calendar.to_date_range(window)
    records = await CompletionRepository(db).find(
        {habit_id}, done_only=True, window=window, calendar=calendar
    )
    done = count_done_in_range(records, week)
    return GoalProgress(
        habit_id=habit_id,
        goal=habit.goal,
        week=week,
        done_count=done,
        progress=goal_progress(done, habit.goal),
    )
