"""Streak calculation over completed calendar days.

One algorithm serves both a single habit and a whole user: callers pass the
set of days on which something was completed and get back the current and
best runs with their date ranges.

- current streak: consecutive completed days ending today; 0 if today is
  not completed
- best streak: longest run of consecutive completed days anywhere in
  history; ties keep the earliest run
- duplicate days collapse to one; a day difference of 0 never extends a run
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from models import CompletionRecord
from services.calendar_service import ReferenceCalendar, days_between
from services.errors import InputError


@dataclass(frozen=True, slots=True)
class CurrentStreak:
    length: int
    start: date | None
    end: date | None


@dataclass(frozen=True, slots=True)
class BestStreak:
    length: int
    start: date | None
    end: date | None


@dataclass(frozen=True, slots=True)
class StreakData:
    current: CurrentStreak
    best: BestStreak

    @property
    def current_streak(self) -> int:
        return self.current.length

    @property
    def best_streak(self) -> int:
        return self.best.length


NO_CURRENT_STREAK = CurrentStreak(length=0, start=None, end=None)
NO_BEST_STREAK = BestStreak(length=0, start=None, end=None)


def unique_days(
    days: Iterable[date], calendar: ReferenceCalendar | None = None
) -> set[date]:
    """Deduplicate calendar days.

    Instants are reduced to their date in the reference zone, so a datetime
    is only accepted together with ``calendar``.
    """
    unique: set[date] = set()
    for d in days:
        if isinstance(d, datetime):
            if calendar is None:
                raise InputError(
                    f"Instant {d!r} needs a reference calendar to map to a day"
                )
            d = calendar.local_date(d)
        unique.add(d)
    return unique


def calculate_current_streak(
    days: Iterable[date],
    today: date,
    calendar: ReferenceCalendar | None = None,
) -> CurrentStreak:
    """Walk back from today while each step is exactly one calendar day."""
    descending = sorted(unique_days(days, calendar), reverse=True)

    if not descending or descending[0] != today:
        return NO_CURRENT_STREAK

    length = 1
    start = descending[0]
    for day in descending[1:]:
        if days_between(start, day) != 1:
            break
        length += 1
        start = day

    return CurrentStreak(length=length, start=start, end=today)


def calculate_best_streak(
    days: Iterable[date], calendar: ReferenceCalendar | None = None
) -> BestStreak:
    """Longest run of consecutive days; the earliest wins on equal length."""
    ascending = sorted(unique_days(days, calendar))
    if not ascending:
        return NO_BEST_STREAK

    best_length = 0
    best_start: date | None = None
    best_end: date | None = None

    run_length = 1
    run_start = ascending[0]
    previous = ascending[0]

    for day in ascending[1:]:
        if days_between(day, previous) == 1:
            run_length += 1
        else:
            if run_length > best_length:
                best_length, best_start, best_end = run_length, run_start, previous
            run_length = 1
            run_start = day
        previous = day

    # Close the final run
    if run_length > best_length:
        best_length, best_start, best_end = run_length, run_start, previous

    return BestStreak(length=best_length, start=best_start, end=best_end)


def calculate_streaks(
    days: Iterable[date],
    today: date,
    calendar: ReferenceCalendar | None = None,
) -> StreakData:
    unique = unique_days(days, calendar)
    return StreakData(
        current=calculate_current_streak(unique, today),
        best=calculate_best_streak(unique),
    )


def completed_days(records: Iterable[CompletionRecord]) -> set[date]:
    """Calendar days of records currently marked done."""
    return {record.day for record in records if record.done}


def compute_record_streaks(
    records: Iterable[CompletionRecord],
    now: datetime,
    calendar: ReferenceCalendar,
) -> StreakData:
    """Streaks for completion records as of ``now`` in the reference zone.

    Records not marked done are ignored, so callers may pass an unfiltered
    history.
    """
    return calculate_streaks(completed_days(records), calendar.today(now))
