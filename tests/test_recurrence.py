"""Tests for recurrence rules, periods and deadlines."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from habitpact.domain.recurrence import (
    Period,
    RecurrenceKind,
    RecurrenceRule,
    format_weekdays,
    parse_weekdays,
)
from habitpact.errors import ConfigurationError
from tests.conftest import make_habit

UTC = timezone.utc


class TestParsing:
    def test_codes_and_names(self):
        assert parse_weekdays("Monday, wed") == frozenset({0, 2})
        assert parse_weekdays(["fri", 6]) == frozenset({4, 6})
        assert parse_weekdays("") == frozenset()

    def test_unknown_day_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            parse_weekdays("mon,funday")

    def test_format_is_sorted_codes(self):
        assert format_weekdays({4, 0}) == "mon,fri"


class TestValidation:
    def test_weekly_without_days_rejected(self):
        with pytest.raises(ConfigurationError):
            RecurrenceRule.weekly("")

    def test_n_larger_than_target_days_rejected(self):
        with pytest.raises(ConfigurationError):
            RecurrenceRule.n_per_week(4, "mon,wed,fri")

    def test_n_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            RecurrenceRule.n_per_week(0, "mon")

    def test_unknown_recurrence_on_habit(self):
        with pytest.raises(ConfigurationError):
            RecurrenceRule.from_habit(make_habit(recurrence="monthly"))

    def test_n_per_week_habit_needs_times(self):
        with pytest.raises(ConfigurationError):
            RecurrenceRule.from_habit(make_habit(recurrence="n_per_week", target_days="mon"))

    def test_from_habit(self):
        rule = RecurrenceRule.from_habit(
            make_habit(recurrence="N_PER_WEEK", target_days="mon,wed,fri", times_per_week=2)
        )
        assert rule.kind is RecurrenceKind.N_PER_WEEK
        assert rule.times_per_week == 2
        assert rule.weekdays == frozenset({0, 2, 4})


class TestPeriods:
    def test_daily_period_is_the_day(self):
        day = date(2024, 1, 10)
        assert RecurrenceRule.daily().period_for(day) == Period(day, day, day)

    def test_weekly_period_runs_from_previous_target(self):
        rule = RecurrenceRule.weekly("mon,wed,fri")
        # Thursday belongs to Friday's period
        assert rule.period_for(date(2024, 1, 11)) == Period(
            date(2024, 1, 11), date(2024, 1, 12), date(2024, 1, 12)
        )
        # Monday's period opens on Saturday
        assert rule.period_for(date(2024, 1, 8)) == Period(
            date(2024, 1, 6), date(2024, 1, 8), date(2024, 1, 8)
        )

    def test_single_day_weekly_spans_a_week(self):
        rule = RecurrenceRule.weekly("mon")
        assert rule.period_for(date(2024, 1, 10)) == Period(
            date(2024, 1, 9), date(2024, 1, 15), date(2024, 1, 15)
        )

    def test_n_per_week_period_is_iso_week(self):
        rule = RecurrenceRule.n_per_week(2, "mon,wed,fri")
        period = rule.period_for(date(2024, 1, 10))
        assert period == Period(date(2024, 1, 8), date(2024, 1, 14), date(2024, 1, 12), 2)

    def test_n_per_week_last_chance_day(self):
        rule = RecurrenceRule.n_per_week(2, "mon,wed,fri")
        period = rule.period_for(date(2024, 1, 10))
        assert rule.due_day(period, done=0) == date(2024, 1, 10)
        assert rule.due_day(period, done=1) == date(2024, 1, 12)
        assert rule.due_day(period, done=2) == date(2024, 1, 12)

    def test_previous_and_next_are_adjacent(self):
        rule = RecurrenceRule.weekly("mon,wed,fri")
        period = rule.period_for(date(2024, 1, 10))
        assert rule.previous(period).end == period.start - timedelta(days=1)
        assert rule.next(period).start == period.end + timedelta(days=1)

    def test_periods_between_counts_due_days(self):
        window = (date(2024, 1, 1), date(2024, 1, 7))
        assert len(list(RecurrenceRule.daily().periods_between(*window))) == 7
        weekly = list(RecurrenceRule.weekly("mon,wed,fri").periods_between(*window))
        assert [p.due for p in weekly] == [date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 5)]

    def test_satisfaction_counts_distinct_days(self):
        period = Period(date(2024, 1, 8), date(2024, 1, 14), date(2024, 1, 12), 2)
        assert not period.is_satisfied({date(2024, 1, 8)})
        assert period.is_satisfied({date(2024, 1, 8), date(2024, 1, 9)})
        assert not period.is_satisfied({date(2024, 1, 7), date(2024, 1, 8)})


class TestDeadlines:
    def test_end_of_day_without_target_time(self):
        rule = RecurrenceRule.daily()
        period = rule.period_for(date(2024, 1, 10))
        assert rule.deadline(period, UTC) == datetime(2024, 1, 11, tzinfo=UTC)

    def test_target_time_on_due_day(self):
        rule = RecurrenceRule.daily()
        period = rule.period_for(date(2024, 1, 10))
        assert rule.deadline(period, UTC, time(7, 30)) == datetime(2024, 1, 10, 7, 30, tzinfo=UTC)

    def test_local_midnight_in_user_timezone(self):
        tz = ZoneInfo("America/New_York")
        rule = RecurrenceRule.daily()
        deadline = rule.deadline(rule.period_for(date(2024, 1, 10)), tz)
        assert deadline == datetime(2024, 1, 11, 5, 0, tzinfo=UTC)
