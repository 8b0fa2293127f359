"""Calendar utilities resolved in the product's reference timezone.

Every boundary ("today", week start, month start) is computed in one fixed
zone taken from settings. Day differences compare calendar date components
in that zone; they are never derived from elapsed seconds, so DST shifts and
offset changes cannot turn one calendar day into 0 or 2.

All functions take explicit instants. Nothing here reads the clock.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import StrEnum
from zoneinfo import ZoneInfo

from core.config import Settings, get_settings
from services.errors import InvalidWindowError, NaiveDatetimeError

SUNDAY = 0
DAYS_PER_WEEK = 7


class Period(StrEnum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def days_between(later: date, earlier: date) -> int:
    """Number of calendar-day boundaries from ``earlier`` to ``later``."""
    return (later - earlier).days


def _require_aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise NaiveDatetimeError(value)
    return value


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive range of calendar dates."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidWindowError(self.start, self.end, "end before start")

    @property
    def num_days(self) -> int:
        return days_between(self.end, self.start) + 1

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        for offset in range(self.num_days):
            yield self.start + timedelta(days=offset)


@dataclass(frozen=True, slots=True)
class Window:
    """Half-open ``[start, end)`` range of timezone-aware instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidWindowError(self.start, self.end, "naive bounds")
        if self.end <= self.start:
            raise InvalidWindowError(self.start, self.end, "end not after start")

    def __contains__(self, instant: object) -> bool:
        return isinstance(instant, datetime) and self.start <= instant < self.end


@dataclass(frozen=True, slots=True)
class ReferenceCalendar:
    """Day, week and month arithmetic in a single reference zone.

    ``week_start`` uses Sunday=0 ... Saturday=6 numbering.
    """

    zone: ZoneInfo
    week_start: int = SUNDAY

    def __post_init__(self) -> None:
        if not 0 <= self.week_start < DAYS_PER_WEEK:
            raise ValueError(f"week_start must be 0..6, got {self.week_start}")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ReferenceCalendar":
        settings = settings or get_settings()
        return cls(zone=settings.zone, week_start=settings.week_start)

    # ---------------------------------------------------------------- days

    def local_date(self, t: datetime) -> date:
        """Calendar date of ``t`` in the reference zone."""
        return _require_aware(t).astimezone(self.zone).date()

    def today(self, now: datetime) -> date:
        return self.local_date(now)

    def start_of_day(self, t: datetime) -> datetime:
        return self._day_start(self.local_date(t))

    def end_of_day(self, t: datetime) -> datetime:
        """Last representable instant of the calendar day containing ``t``."""
        return datetime.combine(self.local_date(t), time.max, tzinfo=self.zone)

    def calendar_day_difference(self, a: datetime, b: datetime) -> int:
        """Calendar days from ``b`` to ``a`` (positive when ``a`` is later)."""
        return days_between(self.local_date(a), self.local_date(b))

    def is_same_calendar_day(self, t: datetime, reference: datetime) -> bool:
        return self.local_date(t) == self.local_date(reference)

    # --------------------------------------------------------------- weeks

    def week_bounds(self, day: date) -> DateRange:
        # date.weekday() is Monday=0; shift to Sunday=0 numbering
        sunday_based = (day.weekday() + 1) % DAYS_PER_WEEK
        offset = (sunday_based - self.week_start) % DAYS_PER_WEEK
        first = day - timedelta(days=offset)
        return DateRange(first, first + timedelta(days=DAYS_PER_WEEK - 1))

    def start_of_week(self, t: datetime) -> datetime:
        return self._day_start(self.week_bounds(self.local_date(t)).start)

    def end_of_week(self, t: datetime) -> datetime:
        last = self.week_bounds(self.local_date(t)).end
        return datetime.combine(last, time.max, tzinfo=self.zone)

    # -------------------------------------------------------------- months

    @staticmethod
    def month_bounds(day: date) -> DateRange:
        first = day.replace(day=1)
        next_first = (first + timedelta(days=32)).replace(day=1)
        return DateRange(first, next_first - timedelta(days=1))

    def start_of_month(self, t: datetime) -> datetime:
        return self._day_start(self.month_bounds(self.local_date(t)).start)

    def end_of_month(self, t: datetime) -> datetime:
        last = self.month_bounds(self.local_date(t)).end
        return datetime.combine(last, time.max, tzinfo=self.zone)

    # ------------------------------------------------------------- periods

    def period_range(self, period: Period, now: datetime) -> DateRange:
        """Calendar dates of the day, week or month containing ``now``."""
        today = self.local_date(now)
        if period is Period.DAY:
            return DateRange(today, today)
        if period is Period.WEEK:
            return self.week_bounds(today)
        return self.month_bounds(today)

    def period_window(self, period: Period, now: datetime) -> Window:
        """``[start, end)`` instants of the period containing ``now``."""
        dates = self.period_range(period, now)
        return Window(
            self._day_start(dates.start),
            self._day_start(dates.end + timedelta(days=1)),
        )

    def to_date_range(self, window: Window) -> DateRange:
        """Calendar dates touched by a half-open window."""
        last_instant = window.end - timedelta(microseconds=1)
        return DateRange(self.local_date(window.start), self.local_date(last_instant))

    def _day_start(self, day: date) -> datetime:
        return datetime.combine(day, time.min, tzinfo=self.zone)
