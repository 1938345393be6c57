"""Score store protocol: shame scores and previous risk levels."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.user import User


class ScoreRepository(Protocol):
    """Persists shame scores and the risk level seen at the last evaluation."""

    def get_user(self, user_id: int) -> Optional[User]:
        """Retrieve a user by ID."""
        ...

    def list_users(self) -> list[User]:
        """All users, for leaderboards."""
        ...

    def create_user(self, user: User) -> User:
        """Persist a new user."""
        ...

    def get_previous_level(self, habit_id: int) -> Optional[str]:
        """Risk level stored at the previous evaluation, None if never evaluated."""
        ...

    def record_transition(
        self,
        *,
        user_id: int,
        habit_id: int,
        expected_level: Optional[str],
        new_level: str,
        delta: int,
        at: datetime,
    ) -> Optional[int]:
        """Compare-and-set the stored level and add ``delta`` in one transaction.

        The write only happens while the stored level still equals
        ``expected_level`` (``None``: no level stored yet). Returns the user's
        score after the update, or None when the level changed underneath and
        nothing was written.
        """
        ...

    def adjust_score(self, user_id: int, delta: int) -> int:
        """Add ``delta`` (possibly negative) to a score, never going below zero."""
        ...
