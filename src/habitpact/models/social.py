"""Accountability state shared between friends."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class NudgeCooldown(SQLModel, table=True):
    """Last successful nudge a sender made about a habit.

    Rows are refreshed in place and only removed when the send after a first
    claim fails. An entry is expired once the cooldown window has elapsed
    since ``last_sent``.
    """

    __tablename__: ClassVar[str] = "nudge_cooldown"

    sender_id: int = Field(foreign_key="user.id", primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", primary_key=True)
    last_sent: datetime = Field(nullable=False)


class HabitRiskState(SQLModel, table=True):
    """Risk level recorded at the previous evaluation of a habit."""

    __tablename__: ClassVar[str] = "habit_risk_state"

    habit_id: int = Field(foreign_key="habit.id", primary_key=True)
    previous_level: str = Field(nullable=False, max_length=16)
    updated_at: datetime = Field(nullable=False)


class NudgeRecord(SQLModel, table=True):
    """A nudge that was delivered, kept for sent/received history."""

    __tablename__: ClassVar[str] = "nudge_record"

    id: Optional[int] = Field(default=None, primary_key=True)
    sender_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    recipient_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False)
    sent_at: datetime = Field(nullable=False, index=True)
