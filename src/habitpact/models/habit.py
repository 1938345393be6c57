"""Habit definitions and their completion history."""

from __future__ import annotations

from datetime import datetime, time, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Habit(SQLModel, table=True):
    """A recurring commitment owned by a user.

    ``recurrence`` is one of ``daily``, ``weekly`` or ``n_per_week``;
    ``target_days`` holds comma separated weekday codes (``mon,wed,fri``) and
    ``times_per_week`` the ``n`` of an ``n_per_week`` rule.
    """

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    description: str = Field(nullable=False, max_length=255)
    recurrence: str = Field(default="daily", nullable=False, max_length=16)
    target_days: str = Field(default="", max_length=64)
    times_per_week: Optional[int] = Field(default=None)
    target_time: Optional[time] = Field(default=None)
    difficulty: str = Field(default="medium", nullable=False, max_length=16)
    timezone: str = Field(default="UTC", nullable=False, max_length=64)
    is_shared: bool = Field(default=True, nullable=False)
    is_active: bool = Field(default=True, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class CompletionRecord(SQLModel, table=True):
    """One completion of a habit. Append-only."""

    __tablename__: ClassVar[str] = "habit_completion"

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    completed_at: datetime = Field(nullable=False, index=True)
    note: Optional[str] = Field(default=None, max_length=500)
