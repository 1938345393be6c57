import time
from datetime import date, datetime, timedelta, timezone

import pytest

from habitpact.services.analytics import summarize
from habitpact.services.streaks import compute_streak
from tests.conftest import make_habit

UTC = timezone.utc
FIRST_DAY = datetime(2021, 1, 1, 8, tzinfo=UTC)


def _daily_history(days: int) -> list[datetime]:
    return [FIRST_DAY + timedelta(days=i) for i in range(days)]


@pytest.mark.performance
def test_streak_over_three_years_is_fast():
    """Streaks over ~3 years of daily completions stay well under a second."""

    history = _daily_history(1095)
    habit = make_habit(created_at=FIRST_DAY)
    now = history[-1] + timedelta(hours=1)

    start = time.perf_counter()
    state = compute_streak(habit, history, now)
    elapsed = time.perf_counter() - start

    assert state.current == state.best == 1095
    assert elapsed < 0.25, f"compute_streak took {elapsed:.3f}s"


@pytest.mark.performance
def test_summary_over_three_years_is_fast():
    history = _daily_history(1095)
    window_start = FIRST_DAY.date()
    window_end = window_start + timedelta(days=1094)

    start = time.perf_counter()
    summary = summarize(history, window_start, window_end, granularity="month")
    elapsed = time.perf_counter() - start

    assert summary.total_completions == 1095
    assert summary.completion_rate == 100.0
    assert summary.trend[0].label == "2021-01"
    assert summary.trend[-1].end == date(2023, 12, 31)
    assert elapsed < 0.25, f"summarize took {elapsed:.3f}s"
