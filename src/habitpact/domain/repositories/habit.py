"""Habit store protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.habit import CompletionRecord, Habit


class HabitRepository(Protocol):
    """Repository for habits and their completion history."""

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_for_user(self, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """List a user's habits, optionally including inactive ones."""
        ...

    def list_active(self) -> list[Habit]:
        """List active habits of every user."""
        ...

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        ...

    # Completion history (append-only)
    def add_completion(self, record: CompletionRecord) -> CompletionRecord:
        """Append a completion record."""
        ...

    def latest_completion(self, habit_id: int) -> Optional[CompletionRecord]:
        """Most recent completion of a habit, if any."""
        ...

    def completions_for_habit(
        self,
        habit_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[CompletionRecord]:
        """Completions within [start, end], oldest first; open bounds when None."""
        ...
