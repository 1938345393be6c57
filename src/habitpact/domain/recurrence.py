"""Recurrence rules and the periods a habit is evaluated against.

A *period* is the span of local calendar days in which one commitment has to
be met:

* ``daily``: every day is its own period.
* ``weekly``: one period per target weekday. It opens the day after the
  previous target day and closes on the target day itself, so doing the habit
  early counts toward the next target day.
* ``n_per_week``: the ISO week (Monday to Sunday), met by completions on at
  least ``n`` distinct days.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Any, Iterable, Iterator

from ..clock import deadline_on
from ..errors import ConfigurationError

WEEKDAY_CODES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


class RecurrenceKind(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    N_PER_WEEK = "n_per_week"


def parse_weekday(value: Any) -> int:
    """Return the weekday index (Monday = 0) for a code, name or index."""

    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value <= 6:
            return value
        raise ConfigurationError(f"Weekday index out of range: {value}")
    token = str(value).strip().lower()
    for index, (code, name) in enumerate(zip(WEEKDAY_CODES, WEEKDAY_NAMES)):
        if token in (code, name.lower()):
            return index
    raise ConfigurationError(f"Unknown weekday: {value!r}")


def parse_weekdays(raw: str | Iterable[Any] | None) -> frozenset[int]:
    """Parse ``"mon,wed"`` or an iterable of weekday values."""

    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        items: Iterable[Any] = [part for part in raw.split(",") if part.strip()]
    else:
        items = raw
    return frozenset(parse_weekday(item) for item in items)


def format_weekdays(weekdays: Iterable[int]) -> str:
    """Inverse of :func:`parse_weekdays` for storage."""

    return ",".join(WEEKDAY_CODES[d] for d in sorted(set(weekdays)))


@dataclass(frozen=True, slots=True)
class Period:
    """Local days ``start``..``end`` (inclusive) closing on ``due``."""

    start: date
    end: date
    due: date
    required: int = 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        for offset in range((self.end - self.start).days + 1):
            yield self.start + timedelta(days=offset)

    def done(self, completed_days: Iterable[date]) -> int:
        """Number of distinct completed days falling inside the period.

        Looks up each of the period's own days, so pass a set for large
        histories.
        """

        if not isinstance(completed_days, (set, frozenset)):
            completed_days = set(completed_days)
        return sum(1 for day in self.days() if day in completed_days)

    def is_satisfied(self, completed_days: Iterable[date]) -> bool:
        return self.done(completed_days) >= self.required


@dataclass(frozen=True, slots=True)
class RecurrenceRule:
    """Validated recurrence rule of a habit."""

    kind: RecurrenceKind
    weekdays: frozenset[int] = frozenset()
    times_per_week: int = 1

    def __post_init__(self) -> None:
        if self.kind is RecurrenceKind.DAILY:
            return
        if not self.weekdays:
            raise ConfigurationError(f"{self.kind.value} habits need at least one target day")
        if any(not 0 <= d <= 6 for d in self.weekdays):
            raise ConfigurationError(f"Invalid target days: {sorted(self.weekdays)}")
        if self.kind is RecurrenceKind.N_PER_WEEK:
            if self.times_per_week < 1:
                raise ConfigurationError("n_per_week habits need n >= 1")
            if self.times_per_week > len(self.weekdays):
                raise ConfigurationError(
                    f"n={self.times_per_week} exceeds the {len(self.weekdays)} target days"
                )

    @classmethod
    def daily(cls) -> "RecurrenceRule":
        return cls(RecurrenceKind.DAILY)

    @classmethod
    def weekly(cls, days: str | Iterable[Any]) -> "RecurrenceRule":
        return cls(RecurrenceKind.WEEKLY, parse_weekdays(days))

    @classmethod
    def n_per_week(cls, n: int, days: str | Iterable[Any]) -> "RecurrenceRule":
        return cls(RecurrenceKind.N_PER_WEEK, parse_weekdays(days), n)

    @classmethod
    def from_habit(cls, habit: Any) -> "RecurrenceRule":
        """Build the rule stored on a habit row, raising on malformed data."""

        try:
            kind = RecurrenceKind(str(habit.recurrence).strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unknown recurrence: {habit.recurrence!r}") from exc
        weekdays = parse_weekdays(getattr(habit, "target_days", None))
        if kind is RecurrenceKind.N_PER_WEEK:
            n = getattr(habit, "times_per_week", None)
            if n is None:
                raise ConfigurationError("n_per_week habits need times_per_week")
            return cls(kind, weekdays, int(n))
        return cls(kind, weekdays)

    # -- period arithmetic -------------------------------------------------

    def period_for(self, day: date) -> Period:
        """The period containing the local date ``day``."""

        if self.kind is RecurrenceKind.DAILY:
            return Period(day, day, day)
        if self.kind is RecurrenceKind.WEEKLY:
            due = self._next_target_on_or_after(day)
            previous_target = self._previous_target_before(due)
            return Period(previous_target + timedelta(days=1), due, due)
        monday = day - timedelta(days=day.weekday())
        last_target = max(self.weekdays)
        return Period(
            monday,
            monday + timedelta(days=6),
            monday + timedelta(days=last_target),
            self.times_per_week,
        )

    def previous(self, period: Period) -> Period:
        return self.period_for(period.start - timedelta(days=1))

    def next(self, period: Period) -> Period:
        return self.period_for(period.end + timedelta(days=1))

    def periods_between(self, start: date, end: date) -> Iterator[Period]:
        """Periods whose due day falls within ``start``..``end``."""

        period = self.period_for(start)
        while period.start <= end:
            if start <= period.due <= end:
                yield period
            period = self.next(period)

    def due_day(self, period: Period, done: int = 0) -> date:
        """Last day the period can still be met, given ``done`` completions.

        For ``n_per_week`` this is the last-chance target day: the remaining
        target days of the week must still be enough for the missing ones.
        """

        if self.kind is not RecurrenceKind.N_PER_WEEK:
            return period.due
        remaining = period.required - done
        if remaining <= 0:
            return period.due
        targets = sorted(self.weekdays)
        return period.start + timedelta(days=targets[len(targets) - remaining])

    def deadline(
        self,
        period: Period,
        tz: tzinfo,
        target_time: time | None = None,
        done: int = 0,
    ) -> datetime:
        """Instant at which the period is missed."""

        return deadline_on(self.due_day(period, done), tz, target_time)

    def _next_target_on_or_after(self, day: date) -> date:
        for offset in range(7):
            candidate = day + timedelta(days=offset)
            if candidate.weekday() in self.weekdays:
                return candidate
        raise ConfigurationError("Weekly habit has no target days")  # pragma: no cover

    def _previous_target_before(self, day: date) -> date:
        for offset in range(1, 8):
            candidate = day - timedelta(days=offset)
            if candidate.weekday() in self.weekdays:
                return candidate
        raise ConfigurationError("Weekly habit has no target days")  # pragma: no cover


__all__ = [
    "Period",
    "RecurrenceKind",
    "RecurrenceRule",
    "WEEKDAY_CODES",
    "WEEKDAY_NAMES",
    "format_weekdays",
    "parse_weekday",
    "parse_weekdays",
]
