"""SQLModel implementation of the habit repository."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.habit import CompletionRecord, Habit
from ._time import to_utc


class SQLModelHabitRepository:
    """SQLModel-based habit and completion history repository."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.get(Habit, habit_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_for_user(self, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """List a user's habits, optionally including inactive ones."""
        with self.session_factory() as session:
            statement = (
                select(Habit).where(Habit.user_id == user_id).order_by(Habit.id)  # type: ignore
            )
            if not include_inactive:
                statement = statement.where(Habit.is_active == True)  # noqa: E712

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_active(self) -> list[Habit]:
        """List active habits across all users."""
        with self.session_factory() as session:
            statement = (
                select(Habit).where(Habit.is_active == True).order_by(Habit.id)  # type: ignore  # noqa: E712
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            habit.created_at = to_utc(habit.created_at)
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def add_completion(self, record: CompletionRecord) -> CompletionRecord:
        """Append a completion record."""
        with self.session_factory() as session:
            record.completed_at = to_utc(record.completed_at)
            session.add(record)
            session.commit()
            session.refresh(record)
            session.expunge(record)
            return record

    def latest_completion(self, habit_id: int) -> Optional[CompletionRecord]:
        """Most recent completion of a habit."""
        with self.session_factory() as session:
            statement = (
                select(CompletionRecord)
                .where(CompletionRecord.habit_id == habit_id)
                .order_by(CompletionRecord.completed_at.desc())  # type: ignore
                .limit(1)
            )
            obj = session.exec(statement).first()
            if obj:
                session.expunge(obj)
            return obj

    def completions_for_habit(
        self,
        habit_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[CompletionRecord]:
        """Completions within [start, end], oldest first."""
        with self.session_factory() as session:
            statement = select(CompletionRecord).where(CompletionRecord.habit_id == habit_id)
            if start is not None:
                statement = statement.where(CompletionRecord.completed_at >= to_utc(start))
            if end is not None:
                statement = statement.where(CompletionRecord.completed_at <= to_utc(end))
            statement = statement.order_by(CompletionRecord.completed_at)  # type: ignore

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows
