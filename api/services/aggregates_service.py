"""Period counts, goal progress and consistency over completion records.

Habit goals are completions per week. Consistency over a longer range scales
the summed weekly goals by the number of weeks the range touches. Outputs
that feed a calendar view are dense: one entry per day, zero-filled.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date

from models import CompletionRecord
from services.calendar_service import DateRange, Period, ReferenceCalendar
from services.errors import InvalidGoalError

PERCENT_DECIMALS = 2


@dataclass(frozen=True, slots=True)
class DayCompletion:
    """Completions on one calendar day, for heatmap/calendar rendering."""

    day: date
    count: int
    habits: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class PeriodSummary:
    date_range: DateRange
    done_count: int
    expected_count: int
    consistency: float


def _validate_goal(goal: int) -> None:
    if isinstance(goal, bool) or not isinstance(goal, int) or goal <= 0:
        raise InvalidGoalError(goal)


def count_done_in_range(
    records: Iterable[CompletionRecord], date_range: DateRange
) -> int:
    return sum(1 for r in records if r.done and r.day in date_range)


def daily_completions(
    records: Iterable[CompletionRecord],
    habit_names: Mapping[int, str],
    date_range: DateRange,
) -> list[DayCompletion]:
    """Dense day-by-day completions covering every day of the range.

    A habit counts at most once per day even if duplicate records slipped in.
    """
    by_day: dict[date, set[int]] = defaultdict(set)
    for record in records:
        if record.done and record.day in date_range:
            by_day[record.day].add(record.habit_id)

    result: list[DayCompletion] = []
    for day in date_range.days():
        habit_ids = by_day.get(day, set())
        names = sorted(habit_names.get(hid, str(hid)) for hid in habit_ids)
        result.append(DayCompletion(day=day, count=len(habit_ids), habits=tuple(names)))
    return result


def goal_progress(done_count: int, goal: int) -> float:
    """Percentage of the weekly goal reached. Not clamped: 4 of 3 is 133.33."""
    _validate_goal(goal)
    return round(done_count / goal * 100, PERCENT_DECIMALS)


def periods_in_range(
    period: Period,
    date_range: DateRange,
    calendar: ReferenceCalendar,
) -> int:
    """Number of days, weeks or months the range touches, partial ones included."""
    if period is Period.DAY:
        return date_range.num_days
    if period is Period.WEEK:
        first = calendar.week_bounds(date_range.start).start
        last = calendar.week_bounds(date_range.end).start
        return (last - first).days // 7 + 1
    start, end = date_range.start, date_range.end
    return (end.year - start.year) * 12 + (end.month - start.month) + 1


def consistency_percentage(done_count: int, total_goal: int, periods: int) -> float:
    """Completions as a percentage of goal-implied completions.

    A zero denominator (no habits, zero goals or no periods) yields 0.0.
    """
    expected = total_goal * periods
    if expected <= 0:
        return 0.0
    return round(done_count / expected * 100, PERCENT_DECIMALS)


def summarize_period(
    records: Iterable[CompletionRecord],
    goals: Iterable[int],
    date_range: DateRange,
    calendar: ReferenceCalendar,
) -> PeriodSummary:
    """Done count against summed weekly goals over the weeks in the range."""
    total_goal = sum(goals)
    weeks = periods_in_range(Period.WEEK, date_range, calendar)
    done = count_done_in_range(records, date_range)
    return PeriodSummary(
        date_range=date_range,
        done_count=done,
        expected_count=total_goal * weeks,
        consistency=consistency_percentage(done, total_goal, weeks),
    )
