"""Timestamp normalisation for storage."""

from __future__ import annotations

from datetime import datetime, timezone

from ...clock import ensure_aware


def to_utc(instant: datetime) -> datetime:
    """UTC instant for storage and comparisons; SQLite keeps no offset."""

    return ensure_aware(instant).astimezone(timezone.utc)
