"""Cooldown stores with an atomic check-and-set ``claim``."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, delete, update

from ...clock import ensure_aware
from ...models.social import NudgeCooldown
from ._time import to_utc


class SQLModelCooldownRepository:
    """Cooldown rows keyed by (sender, habit).

    ``claim`` is a conditional UPDATE on an expired row, or an INSERT guarded
    by the primary key for a first nudge, so concurrent claims from separate
    processes cannot both win.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, sender_id: int, habit_id: int) -> Optional[NudgeCooldown]:
        with self.session_factory() as session:
            obj = session.get(NudgeCooldown, (sender_id, habit_id))
            if obj:
                session.expunge(obj)
            return obj

    def claim(self, sender_id: int, habit_id: int, now: datetime, window: timedelta) -> bool:
        now = to_utc(now)
        with self.session_factory() as session:
            result = session.exec(
                update(NudgeCooldown)
                .where(
                    NudgeCooldown.sender_id == sender_id,
                    NudgeCooldown.habit_id == habit_id,
                    NudgeCooldown.last_sent <= now - window,
                )
                .values(last_sent=now)
            )
            if result.rowcount == 1:
                session.commit()
                return True
            if session.get(NudgeCooldown, (sender_id, habit_id)) is not None:
                return False

        try:
            with self.session_factory() as session:
                session.add(NudgeCooldown(sender_id=sender_id, habit_id=habit_id, last_sent=now))
                session.commit()
        except IntegrityError:
            return False
        return True

    def restore(self, sender_id: int, habit_id: int, last_sent: Optional[datetime]) -> None:
        with self.session_factory() as session:
            if last_sent is None:
                session.exec(
                    delete(NudgeCooldown).where(
                        NudgeCooldown.sender_id == sender_id,
                        NudgeCooldown.habit_id == habit_id,
                    )
                )
            else:
                session.exec(
                    update(NudgeCooldown)
                    .where(
                        NudgeCooldown.sender_id == sender_id,
                        NudgeCooldown.habit_id == habit_id,
                    )
                    .values(last_sent=to_utc(last_sent))
                )
            session.commit()


class InMemoryCooldownRepository:
    """Process-local cooldown store for single-instance hosts and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[tuple[Any, Any], NudgeCooldown] = {}

    def get(self, sender_id: Any, habit_id: Any) -> Optional[NudgeCooldown]:
        with self._lock:
            return self._entries.get((sender_id, habit_id))

    def claim(self, sender_id: Any, habit_id: Any, now: datetime, window: timedelta) -> bool:
        now = ensure_aware(now)
        with self._lock:
            entry = self._entries.get((sender_id, habit_id))
            if entry is not None and now - ensure_aware(entry.last_sent) < window:
                return False
            self._entries[(sender_id, habit_id)] = NudgeCooldown(
                sender_id=sender_id, habit_id=habit_id, last_sent=now
            )
            return True

    def restore(self, sender_id: Any, habit_id: Any, last_sent: Optional[datetime]) -> None:
        with self._lock:
            if last_sent is None:
                self._entries.pop((sender_id, habit_id), None)
            else:
                self._entries[(sender_id, habit_id)] = NudgeCooldown(
                    sender_id=sender_id, habit_id=habit_id, last_sent=last_sent
                )

    def __len__(self) -> int:
        return len(self._entries)
