"""Habit streak helpers: current and best runs, breaks and milestones."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional

from ..clock import ensure_aware, local_date, resolve_timezone
from ..domain.recurrence import RecurrenceRule
from .status import completed_days

MILESTONE_DAYS = (7, 30, 60, 100, 365)
FREEZE_MILESTONE = 30


@dataclass(frozen=True, slots=True)
class StreakState:
    """Streak figures recomputed from the completion history."""

    current: int
    best: int
    last_break_at: Optional[datetime] = None
    streak_start: Optional[date] = None
    milestones: tuple[int, ...] = field(default_factory=tuple)
    next_milestone: Optional[int] = None
    freezes: int = 0


def milestones_reached(best: int) -> tuple[int, ...]:
    return tuple(m for m in MILESTONE_DAYS if best >= m)


def next_milestone(current: int) -> Optional[int]:
    return next((m for m in MILESTONE_DAYS if m > current), None)


def freezes_earned(best: int) -> int:
    """Streak freezes granted so far: one for reaching the 30-period milestone."""

    return 1 if best >= FREEZE_MILESTONE else 0


def compute_streak(habit: Any, completions: Iterable[Any], now: datetime) -> StreakState:
    """Return the streak state of ``habit`` at ``now``.

    Walks the habit's periods backward from the current one. The current
    period does not break the streak while it can still be met; the walk stops
    at the first past period that was missed. The best streak is the longest
    run over the whole history, recomputed on every call.
    """

    rule = RecurrenceRule.from_habit(habit)
    tz = resolve_timezone(getattr(habit, "timezone", None))
    target_time = getattr(habit, "target_time", None)
    now = ensure_aware(now)
    days = completed_days(completions, tz, now)
    today_period = rule.period_for(local_date(now, tz))

    def in_progress(period) -> bool:
        return period == today_period and rule.deadline(
            period, tz, target_time, period.done(days)
        ) > now

    # Current streak: walk backwards until a missed period.
    current = 0
    streak_start: Optional[date] = None
    cursor = today_period
    if not cursor.is_satisfied(days) and in_progress(cursor):
        cursor = rule.previous(cursor)
    while cursor.is_satisfied(days):
        current += 1
        streak_start = next(d for d in cursor.days() if d in days)
        cursor = rule.previous(cursor)

    # Best streak and last break: sweep forward through every period.
    best = 0
    run = 0
    last_break_at: Optional[datetime] = None
    if days:
        period = rule.period_for(min(days))
        while period.start <= today_period.start:
            if period.is_satisfied(days):
                run += 1
                best = max(best, run)
            elif not in_progress(period):
                if run > 0:
                    last_break_at = rule.deadline(period, tz, target_time, period.done(days))
                run = 0
            period = rule.next(period)
    best = max(best, current)

    return StreakState(
        current=current,
        best=best,
        last_break_at=last_break_at,
        streak_start=streak_start,
        milestones=milestones_reached(best),
        next_milestone=next_milestone(current),
        freezes=freezes_earned(best),
    )


def is_streak_break(previous: StreakState | int, current: StreakState | int) -> bool:
    """True when a running streak dropped to zero between two evaluations."""

    before = previous.current if isinstance(previous, StreakState) else previous
    after = current.current if isinstance(current, StreakState) else current
    return before > 0 and after == 0


__all__ = [
    "MILESTONE_DAYS",
    "StreakState",
    "compute_streak",
    "freezes_earned",
    "is_streak_break",
    "milestones_reached",
    "next_milestone",
]
