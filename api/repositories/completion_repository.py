"""Repository for daily completion records (the accomplishment store)."""

from collections.abc import Collection
from datetime import date, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models import CompletionRecord
from repositories.utils import log_slow_query
from services.calendar_service import DateRange, ReferenceCalendar, Window
from services.errors import InputError


class CompletionRepository:
    """Store contract for per-(habit, day) completion records.

    At most one record exists per habit and calendar day; the unique
    constraint enforces it and upsert_daily tolerates concurrent inserts.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @log_slow_query("find_completions")
    async def find(
        self,
        habit_ids: Collection[int],
        *,
        done_only: bool = False,
        date_range: DateRange | None = None,
        window: Window | None = None,
        calendar: ReferenceCalendar | None = None,
        descending: bool = False,
    ) -> list[CompletionRecord]:
        """Records for a set of habits, ordered by day.

        Args:
            habit_ids: Habits to include. Empty means no records.
            done_only: Only records currently marked done.
            date_range: Inclusive calendar days to restrict to.
            window: ``[start, end)`` instants to restrict to, mapped to the
                calendar days it touches in ``calendar``'s zone. Mutually
                exclusive with date_range.
            calendar: Reference calendar, required with window.
            descending: Most recent day first instead of oldest first.
        """
        if window is not None:
            if date_range is not None:
                raise InputError("Pass either date_range or window, not both")
            if calendar is None:
                raise InputError("A window needs a reference calendar")
            date_range = calendar.to_date_range(window)

        if not habit_ids:
            return []

        query = select(CompletionRecord).where(
            CompletionRecord.habit_id.in_(set(habit_ids))
        )
        if done_only:
            query = query.where(CompletionRecord.done.is_(True))
        if date_range is not None:
            query = query.where(
                CompletionRecord.day >= date_range.start,
                CompletionRecord.day <= date_range.end,
            )
        if descending:
            query = query.order_by(
                CompletionRecord.day.desc(), CompletionRecord.id.desc()
            )
        else:
            query = query.order_by(CompletionRecord.day, CompletionRecord.id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    @log_slow_query("get_completion_for_day")
    async def get_for_day(self, habit_id: int, day: date) -> CompletionRecord | None:
        result = await self.db.execute(
            select(CompletionRecord).where(
                CompletionRecord.habit_id == habit_id,
                CompletionRecord.day == day,
            )
        )
        return result.scalar_one_or_none()

    @log_slow_query("upsert_daily_completion")
    async def upsert_daily(
        self,
        habit_id: int,
        day: date,
        *,
        now: datetime,
        done: bool = False,
    ) -> tuple[CompletionRecord, bool]:
        """Return the record for (habit, day), creating it if missing.

        Uses INSERT ... ON CONFLICT DO NOTHING where the dialect supports it,
        otherwise a savepoint that swallows the duplicate-key error. Either way
        a concurrent writer that got there first wins and its row is returned.

        Returns:
            (record, created) where created is False if the row already existed.
        """
        existing = await self.get_for_day(habit_id, day)
        if existing is not None:
            return existing, False

        values = {
            "habit_id": habit_id,
            "day": day,
            "done": done,
            "date_changed": now,
            "created_at": now,
        }

        bind = self.db.get_bind()
        dialect = bind.dialect.name if bind else ""

        created = False
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert as pg_insert

            stmt = (
                pg_insert(CompletionRecord)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["habit_id", "day"])
            )
            result = await self.db.execute(stmt)
            created = bool(result.rowcount)
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert as sqlite_insert

            stmt = (
                sqlite_insert(CompletionRecord)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["habit_id", "day"])
            )
            result = await self.db.execute(stmt)
            created = bool(result.rowcount)
        else:
            try:
                async with self.db.begin_nested():
                    self.db.add(CompletionRecord(**values))
                    await self.db.flush()
                created = True
            except IntegrityError:
                pass  # Savepoint rolled back, continue to fetch existing

        result = await self.db.execute(
            select(CompletionRecord).where(
                CompletionRecord.habit_id == habit_id,
                CompletionRecord.day == day,
            )
        )
        return result.scalar_one(), created

    @log_slow_query("set_completion_done")
    async def set_done(
        self,
        record: CompletionRecord,
        done: bool,
        *,
        now: datetime,
    ) -> CompletionRecord:
        """Update the flag and stamp date_changed. The day never changes."""
        record.done = done
        record.date_changed = now
        await self.db.flush()
        return record

    @log_slow_query("count_completions")
    async def count_for_habit(self, habit_id: int) -> int:
        result = await self.db.execute(
            select(func.count(CompletionRecord.id)).where(
                CompletionRecord.habit_id == habit_id
            )
        )
        return result.scalar_one()

    @log_slow_query("first_completion_day")
    async def first_day(self, habit_ids: Collection[int]) -> date | None:
        """Earliest record day across the habits, or None without records."""
        if not habit_ids:
            return None
        result = await self.db.execute(
            select(func.min(CompletionRecord.day)).where(
                CompletionRecord.habit_id.in_(set(habit_ids))
            )
        )
        return result.scalar_one_or_none()

    @log_slow_query("delete_completions_for_habit")
    async def delete_for_habit(self, habit_id: int) -> int:
        result = await self.db.execute(
            delete(CompletionRecord).where(CompletionRecord.habit_id == habit_id)
        )
        return result.rowcount or 0
