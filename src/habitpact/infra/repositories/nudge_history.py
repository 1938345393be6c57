"""Stores for the log of delivered nudges."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, Optional

from sqlmodel import Session, select

from ...clock import ensure_aware
from ...models.social import NudgeRecord
from ._time import to_utc


class SQLModelNudgeHistoryRepository:
    """SQLModel-based nudge history."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def record(self, entry: NudgeRecord) -> NudgeRecord:
        with self.session_factory() as session:
            entry.sent_at = to_utc(entry.sent_at)
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
            return entry

    def _since(self, column, user_id: int, since: datetime, limit: Optional[int]) -> list[NudgeRecord]:
        with self.session_factory() as session:
            statement = (
                select(NudgeRecord)
                .where(column == user_id, NudgeRecord.sent_at >= to_utc(since))
                .order_by(NudgeRecord.sent_at.desc(), NudgeRecord.id.desc())  # type: ignore
            )
            if limit is not None:
                statement = statement.limit(limit)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def sent_by(self, user_id: int, since: datetime, limit: Optional[int] = None) -> list[NudgeRecord]:
        return self._since(NudgeRecord.sender_id, user_id, since, limit)

    def received_by(
        self, user_id: int, since: datetime, limit: Optional[int] = None
    ) -> list[NudgeRecord]:
        return self._since(NudgeRecord.recipient_id, user_id, since, limit)


class InMemoryNudgeHistoryRepository:
    """Process-local nudge history for single-instance hosts and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[NudgeRecord] = []

    def record(self, entry: NudgeRecord) -> NudgeRecord:
        with self._lock:
            entry.id = len(self._entries) + 1
            entry.sent_at = ensure_aware(entry.sent_at)
            self._entries.append(entry)
            return entry

    def _since(self, attr: str, user_id: int, since: datetime, limit: Optional[int]) -> list[NudgeRecord]:
        since = ensure_aware(since)
        with self._lock:
            rows = [
                e for e in self._entries if getattr(e, attr) == user_id and e.sent_at >= since
            ]
        rows.sort(key=lambda e: (e.sent_at, e.id), reverse=True)
        return rows if limit is None else rows[:limit]

    def sent_by(self, user_id: int, since: datetime, limit: Optional[int] = None) -> list[NudgeRecord]:
        return self._since("sender_id", user_id, since, limit)

    def received_by(
        self, user_id: int, since: datetime, limit: Optional[int] = None
    ) -> list[NudgeRecord]:
        return self._since("recipient_id", user_id, since, limit)
