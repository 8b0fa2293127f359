"""Tests for services/aggregates_service.py - counts, goals and consistency."""

from datetime import date

import pytest

from models import CompletionRecord
from services.aggregates_service import (
    DayCompletion,
    consistency_percentage,
    count_done_in_range,
    daily_completions,
    goal_progress,
    periods_in_range,
    summarize_period,
)
from services.calendar_service import DateRange, Period, ReferenceCalendar
from services.errors import InvalidGoalError

pytestmark = pytest.mark.unit

FIRST_WEEK_2024 = DateRange(date(2024, 1, 1), date(2024, 1, 7))


def _record(habit_id: int, day: date, done: bool = True) -> CompletionRecord:
    return CompletionRecord(habit_id=habit_id, day=day, done=done)


class TestCountDoneInRange:
    def test_counts_only_done_inside_range(self):
        records = [
            _record(1, date(2024, 1, 1)),
            _record(1, date(2024, 1, 2), done=False),
            _record(2, date(2024, 1, 7)),
            _record(2, date(2024, 1, 8)),
        ]
        assert count_done_in_range(records, FIRST_WEEK_2024) == 2

    def test_empty(self):
        assert count_done_in_range([], FIRST_WEEK_2024) == 0


class TestDailyCompletions:
    def test_dense_output_without_records(self):
        days = daily_completions([], {}, FIRST_WEEK_2024)
        assert len(days) == 7
        assert [d.day for d in days] == list(FIRST_WEEK_2024.days())
        assert all(d.count == 0 and d.habits == () for d in days)

    def test_dense_output_with_sparse_records(self):
        records = [_record(1, date(2024, 1, 3))]
        days = daily_completions(records, {1: "Read"}, FIRST_WEEK_2024)
        assert len(days) == 7
        assert days[2] == DayCompletion(day=date(2024, 1, 3), count=1, habits=("Read",))
        assert sum(d.count for d in days) == 1

    def test_groups_habit_names_per_day(self):
        records = [
            _record(2, date(2024, 1, 1)),
            _record(1, date(2024, 1, 1)),
            _record(1, date(2024, 1, 1)),  # duplicate for the same habit
            _record(3, date(2024, 1, 1), done=False),
        ]
        names = {1: "Walk", 2: "Read", 3: "Cook"}
        first = daily_completions(records, names, FIRST_WEEK_2024)[0]
        assert first.count == 2
        assert first.habits == ("Read", "Walk")

    def test_records_outside_range_ignored(self):
        records = [_record(1, date(2023, 12, 31)), _record(1, date(2024, 1, 8))]
        days = daily_completions(records, {1: "Read"}, FIRST_WEEK_2024)
        assert all(d.count == 0 for d in days)


class TestGoalProgress:
    def test_partial_progress(self):
        assert goal_progress(2, 3) == 66.67

    def test_not_clamped_above_goal(self):
        assert goal_progress(4, 3) == 133.33

    def test_goal_met(self):
        assert goal_progress(3, 3) == 100.0

    def test_nothing_done(self):
        assert goal_progress(0, 5) == 0.0

    @pytest.mark.parametrize("goal", [0, -1, True, 2.5])
    def test_invalid_goal_rejected(self, goal):
        with pytest.raises(InvalidGoalError):
            goal_progress(1, goal)


class TestConsistencyPercentage:
    def test_zero_goals_yield_zero(self):
        assert consistency_percentage(5, 0, 1) == 0.0

    def test_zero_periods_yield_zero(self):
        assert consistency_percentage(5, 3, 0) == 0.0

    def test_scales_goal_by_periods(self):
        # 6 of 3 per week over 4 weeks
        assert consistency_percentage(6, 3, 4) == 50.0

    def test_rounds_to_two_decimals(self):
        assert consistency_percentage(1, 3, 1) == 33.33


class TestPeriodsInRange:
    def test_days(self, utc_calendar: ReferenceCalendar):
        assert periods_in_range(Period.DAY, FIRST_WEEK_2024, utc_calendar) == 7

    def test_single_full_week(self, utc_calendar: ReferenceCalendar):
        week = DateRange(date(2024, 6, 2), date(2024, 6, 8))
        assert periods_in_range(Period.WEEK, week, utc_calendar) == 1

    def test_partial_weeks_count(self, utc_calendar: ReferenceCalendar):
        # June 2024 starts on a Saturday and ends on a Sunday
        june = DateRange(date(2024, 6, 1), date(2024, 6, 30))
        assert periods_in_range(Period.WEEK, june, utc_calendar) == 6

    def test_months(self, utc_calendar: ReferenceCalendar):
        r = DateRange(date(2024, 1, 15), date(2024, 3, 1))
        assert periods_in_range(Period.MONTH, r, utc_calendar) == 3

    def test_months_across_year(self, utc_calendar: ReferenceCalendar):
        r = DateRange(date(2023, 12, 31), date(2024, 1, 1))
        assert periods_in_range(Period.MONTH, r, utc_calendar) == 2


class TestSummarizePeriod:
    def test_week_summary(self, utc_calendar: ReferenceCalendar):
        week = DateRange(date(2024, 6, 2), date(2024, 6, 8))
        records = [
            _record(1, date(2024, 6, 2)),
            _record(1, date(2024, 6, 3)),
            _record(2, date(2024, 6, 3)),
            _record(2, date(2024, 6, 4), done=False),
        ]
        summary = summarize_period(records, [3, 4], week, utc_calendar)
        assert summary.date_range == week
        assert summary.done_count == 3
        assert summary.expected_count == 7
        assert summary.consistency == 42.86

    def test_no_habits(self, utc_calendar: ReferenceCalendar):
        summary = summarize_period([], [], FIRST_WEEK_2024, utc_calendar)
        assert summary.done_count == 0
        assert summary.expected_count == 0
        assert summary.consistency == 0.0

    def test_zero_goals(self, utc_calendar: ReferenceCalendar):
        records = [_record(1, date(2024, 1, 2))]
        summary = summarize_period(records, [0, 0], FIRST_WEEK_2024, utc_calendar)
        assert summary.consistency == 0.0

    def test_over_achievement_exceeds_hundred(self, utc_calendar: ReferenceCalendar):
        week = DateRange(date(2024, 6, 2), date(2024, 6, 8))
        records = [_record(1, date(2024, 6, d)) for d in range(2, 6)]
        summary = summarize_period(records, [2], week, utc_calendar)
        assert summary.consistency == 200.0
