"""Clock and timezone-aware day boundary helpers."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationError


class Clock(Protocol):
    """Supplies the current instant."""

    def now(self) -> datetime:  # pragma: no cover - interface
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at a given instant; advance it explicitly."""

    def __init__(self, instant: datetime):
        self._instant = ensure_aware(instant)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = ensure_aware(instant)

    def advance(self, delta: timedelta) -> datetime:
        self._instant = self._instant + delta
        return self._instant


def ensure_aware(instant: datetime) -> datetime:
    """Return ``instant`` with tzinfo; naive values are read as UTC.

    SQLite drops tzinfo on round-trip, so naive timestamps coming back from the
    store are always UTC.
    """

    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def resolve_timezone(name: str | None, default: str = "UTC") -> tzinfo:
    """Look up an IANA timezone, raising ConfigurationError for unknown names."""

    key = (name or default).strip()
    if key.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown timezone: {key!r}") from exc


def local_date(instant: datetime, tz: tzinfo) -> date:
    """Calendar date of ``instant`` as seen in ``tz``."""

    return ensure_aware(instant).astimezone(tz).date()


def start_of_day(day: date, tz: tzinfo) -> datetime:
    """Local midnight opening ``day``."""

    return datetime.combine(day, time.min, tzinfo=tz)


def deadline_on(day: date, tz: tzinfo, target_time: time | None = None) -> datetime:
    """Deadline instant for a period due on ``day``.

    The target time of day when one is set, otherwise the local midnight that
    closes the day.
    """

    if target_time is not None:
        return datetime.combine(day, target_time.replace(tzinfo=None), tzinfo=tz)
    return start_of_day(day + timedelta(days=1), tz)


__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "deadline_on",
    "ensure_aware",
    "local_date",
    "resolve_timezone",
    "start_of_day",
]
