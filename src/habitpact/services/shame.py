"""Shame score bookkeeping for missed commitments."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from ..clock import ensure_aware
from ..domain.repositories import ScoreRepository
from ..errors import ConflictError, InvalidArgument, NotFound
from ..locks import KeyedLocks
from .status import RiskLevel

logger = logging.getLogger(__name__)

DEFAULT_SHAME_DELTA = 1
MAX_WRITE_ATTEMPTS = 5


def _as_level(value: Any) -> Optional[RiskLevel]:
    if value is None or isinstance(value, RiskLevel):
        return value
    return RiskLevel(str(value))


def on_status_transition(
    habit_id: Any,
    previous_level: RiskLevel | str | None,
    new_level: RiskLevel | str,
    *,
    delta: int = DEFAULT_SHAME_DELTA,
) -> int:
    """Score delta for one evaluation: positive only on entering Overdue.

    ``previous_level`` is ``None`` for a habit that was never evaluated.
    Overdue to Overdue and recoveries out of Overdue yield zero.
    """

    previous = _as_level(previous_level)
    new = _as_level(new_level)
    if previous is not RiskLevel.OVERDUE and new is RiskLevel.OVERDUE:
        logger.debug("Habit %s entered overdue", habit_id)
        return delta
    return 0


class ShameLedger:
    """Applies edge-triggered shame increments against a score store."""

    def __init__(
        self,
        store: ScoreRepository,
        *,
        delta: int = DEFAULT_SHAME_DELTA,
        locks: KeyedLocks | None = None,
    ):
        if delta <= 0:
            raise InvalidArgument("Shame delta must be positive")
        self.store = store
        self.delta = delta
        self._locks = locks or KeyedLocks()
        self.max_attempts = MAX_WRITE_ATTEMPTS

    def record_evaluation(
        self,
        user_id: int,
        habit_id: int,
        new_level: RiskLevel,
        at: datetime,
    ) -> int:
        """Persist ``new_level`` for the habit and return the delta applied.

        The habit's lock serialises evaluations within this process. The
        store write is conditional on the level read beforehand, so when
        another process got there first the read is repeated and the delta
        recomputed against its level; duplicate evaluations never double count.

        Raises:
            ConflictError: the level changed underneath on every attempt.
        """

        at = ensure_aware(at)
        with self._locks.hold(habit_id):
            for _ in range(self.max_attempts):
                previous = self.store.get_previous_level(habit_id)
                delta = on_status_transition(habit_id, previous, new_level, delta=self.delta)
                score = self.store.record_transition(
                    user_id=user_id,
                    habit_id=habit_id,
                    expected_level=previous,
                    new_level=RiskLevel(new_level).value,
                    delta=delta,
                    at=at,
                )
                if score is not None:
                    break
                logger.debug("Risk level of habit %s changed concurrently, retrying", habit_id)
            else:
                raise ConflictError(
                    f"Risk level of habit {habit_id} kept changing after {self.max_attempts} attempts"
                )
        if delta:
            logger.info(
                "Shame score increased",
                extra={"user_id": user_id, "habit_id": habit_id, "delta": delta, "score": score},
            )
        return delta

    def score_for(self, user_id: int) -> int:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user.shame_score

    def apply_recovery(self, user_id: int, amount: int) -> int:
        """Lower a user's score by ``amount`` (never below zero); returns the new score."""

        if amount < 0:
            raise InvalidArgument("Recovery amount must be non-negative")
        if self.store.get_user(user_id) is None:
            raise NotFound(f"User {user_id} not found")
        with self._locks.hold(("user", user_id)):
            score = self.store.adjust_score(user_id, -amount)
        logger.info("Shame score recovered", extra={"user_id": user_id, "amount": amount})
        return score


def rank_by_shame(users: Iterable[Any]) -> list[Any]:
    """Order users for a leaderboard: highest score first, then by username."""

    return sorted(users, key=lambda u: (-u.shame_score, u.username))


__all__ = [
    "DEFAULT_SHAME_DELTA",
    "ShameLedger",
    "on_status_transition",
    "rank_by_shame",
]
