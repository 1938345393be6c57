"""Windowed analytics over a habit's completion history.

Consistency score
-----------------
``consistency = 0.6 * completion_rate + 0.4 * stability`` where
``stability = 100 * L / (L + 1)`` and ``L`` is the average length of runs of
consecutive satisfied periods in the window. Both terms grow with their input,
and at a fixed completion rate more breaks mean shorter runs and a lower
score.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Iterator, Optional

from ..clock import ensure_aware, local_date, resolve_timezone
from ..domain.recurrence import WEEKDAY_NAMES, RecurrenceRule
from ..errors import InvalidArgument

GRANULARITIES = ("day", "week", "month")
RATE_WEIGHT = 0.6
STABILITY_WEIGHT = 0.4


@dataclass(frozen=True, slots=True)
class TrendBucket:
    label: str
    start: date
    end: date
    completions: int
    completion_rate: float
    longest_run: int


@dataclass(frozen=True, slots=True)
class AnalyticsSummary:
    window_start: date
    window_end: date
    total_completions: int
    total_periods: int
    satisfied_periods: int
    completion_rate: float
    average_streak_length: float
    best_day_of_week: str
    consistency_score: float
    trend: tuple[TrendBucket, ...]


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _rate(satisfied: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(_clamp(satisfied / total * 100), 2)


def _runs(flags: Iterable[bool]) -> list[int]:
    """Lengths of consecutive True runs."""

    runs: list[int] = []
    run = 0
    for flag in flags:
        if flag:
            run += 1
        elif run:
            runs.append(run)
            run = 0
    if run:
        runs.append(run)
    return runs


def consistency_score(completion_rate: float, average_streak_length: float) -> float:
    length = max(average_streak_length, 0.0)
    stability = 100 * length / (length + 1)
    score = RATE_WEIGHT * _clamp(completion_rate) + STABILITY_WEIGHT * stability
    return round(_clamp(score), 2)


def best_day_of_week(days: Iterable[date]) -> str:
    """Weekday with the most completed days; Monday wins ties and empty input."""

    counts = [0] * 7
    for day in days:
        counts[day.weekday()] += 1
    best = max(range(7), key=lambda i: (counts[i], -i))
    return WEEKDAY_NAMES[best]


def _as_date(value: date | datetime, tz) -> date:
    if isinstance(value, datetime):
        return local_date(ensure_aware(value), tz)
    return value


def _buckets(start: date, end: date, granularity: str) -> Iterator[tuple[str, date, date]]:
    cursor = start
    while cursor <= end:
        if granularity == "day":
            bucket_end = cursor
            label = cursor.isoformat()
        elif granularity == "week":
            bucket_end = cursor + timedelta(days=6 - cursor.weekday())
            year, week, _ = cursor.isocalendar()
            label = f"{year}-W{week:02d}"
        else:
            following = date(cursor.year + cursor.month // 12, cursor.month % 12 + 1, 1)
            bucket_end = following - timedelta(days=1)
            label = f"{cursor.year}-{cursor.month:02d}"
        bucket_end = min(bucket_end, end)
        yield label, cursor, bucket_end
        cursor = bucket_end + timedelta(days=1)


def summarize(
    completions: Iterable[Any],
    window_start: date | datetime,
    window_end: date | datetime,
    *,
    habit: Any = None,
    granularity: str = "day",
    timezone: Optional[str] = None,
) -> AnalyticsSummary:
    """Summarise ``completions`` (records or instants) over a window of local days.

    Periods follow the habit's recurrence rule, or one per day when no habit is
    given. Never raises for an empty history.

    Raises:
        InvalidArgument: the window is inverted or the granularity is unknown.
        ConfigurationError: the habit's rule or timezone is malformed.
    """

    if granularity not in GRANULARITIES:
        raise InvalidArgument(f"Unknown granularity {granularity!r}; use one of {GRANULARITIES}")
    tz = resolve_timezone(timezone or getattr(habit, "timezone", None))
    start = _as_date(window_start, tz)
    end = _as_date(window_end, tz)
    if start > end:
        raise InvalidArgument(f"window_start {start} is after window_end {end}")

    rule = RecurrenceRule.from_habit(habit) if habit is not None else RecurrenceRule.daily()
    record_days = [
        local_date(ensure_aware(item if isinstance(item, datetime) else item.completed_at), tz)
        for item in completions
    ]
    days = set(record_days)
    per_day = Counter(record_days)

    flags = [period.is_satisfied(days) for period in rule.periods_between(start, end)]
    runs = _runs(flags)
    rate = _rate(sum(flags), len(flags))
    average = round(sum(runs) / len(runs), 2) if runs else 0.0

    trend = []
    for label, bucket_start, bucket_end in _buckets(start, end, granularity):
        bucket_flags = [p.is_satisfied(days) for p in rule.periods_between(bucket_start, bucket_end)]
        trend.append(
            TrendBucket(
                label=label,
                start=bucket_start,
                end=bucket_end,
                completions=sum(
                    per_day[bucket_start + timedelta(days=i)]
                    for i in range((bucket_end - bucket_start).days + 1)
                ),
                completion_rate=_rate(sum(bucket_flags), len(bucket_flags)),
                longest_run=max(_runs(bucket_flags), default=0),
            )
        )

    return AnalyticsSummary(
        window_start=start,
        window_end=end,
        total_completions=sum(1 for d in record_days if start <= d <= end),
        total_periods=len(flags),
        satisfied_periods=sum(flags),
        completion_rate=rate,
        average_streak_length=average,
        best_day_of_week=best_day_of_week(days),
        consistency_score=consistency_score(rate, average),
        trend=tuple(trend),
    )


def overall_consistency(summaries: Iterable[AnalyticsSummary]) -> float:
    """Mean consistency score across habits; 0 when there are none."""

    scores = [s.consistency_score for s in summaries]
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 2)


__all__ = [
    "AnalyticsSummary",
    "GRANULARITIES",
    "TrendBucket",
    "best_day_of_week",
    "consistency_score",
    "overall_consistency",
    "summarize",
]
