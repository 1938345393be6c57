"""Cooldown store protocol for nudge rate limiting."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional, Protocol


class CooldownRepository(Protocol):
    """Keeps the last nudge time per (sender, habit)."""

    def get(self, sender_id: Any, habit_id: Any) -> Optional[Any]:
        """Return the cooldown entry (anything with ``last_sent``) or None."""
        ...

    def claim(self, sender_id: Any, habit_id: Any, now: datetime, window: timedelta) -> bool:
        """Atomically set ``last_sent = now`` unless a live cooldown exists.

        Returns True when this call recorded the nudge.
        """
        ...

    def restore(self, sender_id: Any, habit_id: Any, last_sent: Optional[datetime]) -> None:
        """Undo a claim: put back ``last_sent`` (or drop the entry when None)."""
        ...
