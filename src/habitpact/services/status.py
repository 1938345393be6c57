"""Risk status of a habit relative to its current deadline.

Traffic-light logic:

* Safe: the current period is already met, or the deadline is more than the
  lead time away.
* AtRisk: the deadline is within the lead time and nothing is logged yet.
* Overdue: the most recent deadline passed without the period being met.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Any, Iterable, Optional

from ..clock import ensure_aware, local_date, resolve_timezone
from ..domain.recurrence import RecurrenceRule
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LEAD_TIME = timedelta(hours=12)


class RiskLevel(str, Enum):
    SAFE = "safe"
    AT_RISK = "at_risk"
    OVERDUE = "overdue"

    @property
    def priority(self) -> int:
        """Sort key for feeds: most urgent first."""
        return {RiskLevel.OVERDUE: 1, RiskLevel.AT_RISK: 2, RiskLevel.SAFE: 3}[self]


@dataclass(frozen=True, slots=True)
class DeadlineProximity:
    hours_until_deadline: float
    is_overdue: bool
    display_text: str


@dataclass(frozen=True, slots=True)
class StatusSnapshot:
    """Derived status of one habit at one instant. Never cached across days."""

    habit_id: Optional[int]
    level: RiskLevel
    next_deadline: datetime
    deadline_text: str
    eligible_for_nudge: bool
    satisfied: bool = False


def deadline_proximity(deadline: datetime, now: datetime) -> DeadlineProximity:
    """Describe how far ``deadline`` is from ``now`` ("Due in 3h", "Overdue by 2d")."""

    hours = (ensure_aware(deadline) - ensure_aware(now)).total_seconds() / 3600
    if hours < 0:
        hours_overdue = abs(hours)
        days_overdue = math.floor(hours_overdue / 24)
        if days_overdue > 0:
            text = f"Overdue by {days_overdue}d"
        else:
            text = f"Overdue by {math.floor(hours_overdue)}h"
        return DeadlineProximity(hours, True, text)

    if hours < 1:
        text = f"Due in {math.floor(hours * 60)}m"
    elif hours < 24:
        text = f"Due in {math.floor(hours)}h"
    else:
        text = f"Due in {math.floor(hours / 24)}d"
    return DeadlineProximity(hours, False, text)


def _completion_instant(item: Any) -> datetime | None:
    if item is None:
        return None
    if isinstance(item, datetime):
        return ensure_aware(item)
    return ensure_aware(item.completed_at)


def completed_days(items: Iterable[Any], tz: tzinfo, now: datetime | None = None) -> set[date]:
    """Local dates with at least one completion, ignoring ones after ``now``.

    Accepts completion records or bare datetimes.
    """

    days: set[date] = set()
    for item in items:
        instant = _completion_instant(item)
        if instant is None or (now is not None and instant > now):
            continue
        days.add(local_date(instant, tz))
    return days


def _existed_before(habit: Any, deadline: datetime) -> bool:
    created_at = getattr(habit, "created_at", None)
    return created_at is None or ensure_aware(created_at) < deadline


def compute_status(
    habit: Any,
    last_completion: Any,
    now: datetime,
    *,
    history: Iterable[Any] = (),
    lead_time: timedelta | None = None,
) -> StatusSnapshot:
    """Return the risk status of ``habit`` at ``now``.

    ``last_completion`` is the latest completion record (or instant), or
    ``None``. Daily and weekly habits need nothing else; ``n_per_week`` habits
    count completions per week, so pass the current and previous weeks of
    records as ``history``.

    Raises:
        ConfigurationError: the habit's recurrence rule or timezone is malformed.
    """

    rule = RecurrenceRule.from_habit(habit)
    tz = resolve_timezone(getattr(habit, "timezone", None))
    now = ensure_aware(now)
    lead = DEFAULT_LEAD_TIME if lead_time is None else lead_time
    target_time = getattr(habit, "target_time", None)
    days = completed_days([last_completion, *history], tz, now)
    habit_id = getattr(habit, "id", None)
    shared = bool(getattr(habit, "is_shared", False))

    current = rule.period_for(local_date(now, tz))
    done = current.done(days)

    # Met at any point in the current period: safe, however late it was.
    if done >= current.required:
        upcoming = rule.deadline(rule.next(current), tz, target_time)
        return StatusSnapshot(habit_id, RiskLevel.SAFE, upcoming, "Completed", False, True)

    current_deadline = rule.deadline(current, tz, target_time, done)
    if current_deadline <= now:
        elapsed, elapsed_deadline = current, current_deadline
    else:
        elapsed = rule.previous(current)
        elapsed_deadline = rule.deadline(elapsed, tz, target_time, elapsed.done(days))

    if _existed_before(habit, elapsed_deadline) and not elapsed.is_satisfied(days):
        text = deadline_proximity(elapsed_deadline, now).display_text
        logger.debug("Habit %s overdue since %s", habit_id, elapsed_deadline.isoformat())
        return StatusSnapshot(habit_id, RiskLevel.OVERDUE, elapsed_deadline, text, shared)

    if current_deadline > now:
        next_deadline = current_deadline
    else:
        # The current deadline passed before the habit was created.
        next_deadline = rule.deadline(rule.next(current), tz, target_time)

    level = RiskLevel.AT_RISK if next_deadline - now <= lead else RiskLevel.SAFE
    text = deadline_proximity(next_deadline, now).display_text
    eligible = level is RiskLevel.AT_RISK and shared
    return StatusSnapshot(habit_id, level, next_deadline, text, eligible)


def status_or_unknown(
    habit: Any,
    last_completion: Any,
    now: datetime,
    **kwargs: Any,
) -> StatusSnapshot | None:
    """Like :func:`compute_status` but returns ``None`` for misconfigured habits.

    List screens render ``None`` as a neutral "status unknown" state; the
    configuration error is logged instead of propagated.
    """

    try:
        return compute_status(habit, last_completion, now, **kwargs)
    except ConfigurationError:
        logger.error(
            "Cannot compute status for habit %s",
            getattr(habit, "id", None),
            exc_info=True,
            extra={"habit_id": getattr(habit, "id", None)},
        )
        return None


def sort_by_urgency(snapshots: Iterable[StatusSnapshot]) -> list[StatusSnapshot]:
    """Order snapshots for a feed: overdue first, then by nearest deadline."""

    return sorted(snapshots, key=lambda s: (s.level.priority, s.next_deadline))


__all__ = [
    "DEFAULT_LEAD_TIME",
    "DeadlineProximity",
    "RiskLevel",
    "StatusSnapshot",
    "completed_days",
    "compute_status",
    "deadline_proximity",
    "sort_by_urgency",
    "status_or_unknown",
]
