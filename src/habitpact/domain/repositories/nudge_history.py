"""Nudge history protocol: delivered nudges per sender and recipient."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.social import NudgeRecord


class NudgeHistoryRepository(Protocol):
    """Append-only log of delivered nudges."""

    def record(self, entry: NudgeRecord) -> NudgeRecord:
        """Persist a delivered nudge."""
        ...

    def sent_by(self, user_id: int, since: datetime, limit: Optional[int] = None) -> list[NudgeRecord]:
        """Nudges ``user_id`` sent at or after ``since``, newest first."""
        ...

    def received_by(
        self, user_id: int, since: datetime, limit: Optional[int] = None
    ) -> list[NudgeRecord]:
        """Nudges about ``user_id``'s habits at or after ``since``, newest first."""
        ...
