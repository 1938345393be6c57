"""Host-facing facade wiring the clock, stores and policy together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from .clock import Clock, SystemClock
from .config import BaseConfig
from .domain.repositories import (
    CooldownRepository,
    HabitRepository,
    NudgeHistoryRepository,
    ScoreRepository,
)
from .errors import ConfigurationError, InvalidArgument, NotFound
from .infra.repositories import InMemoryNudgeHistoryRepository
from .locks import KeyedLocks
from .models.habit import Habit
from .models.social import NudgeRecord
from .services.analytics import AnalyticsSummary, overall_consistency, summarize
from .services.nudges import NudgeDecision, NudgeGatekeeper
from .services.scoring import HabitScore, calculate_habit_score
from .services.shame import ShameLedger
from .services.status import StatusSnapshot, compute_status, sort_by_urgency, status_or_unknown
from .services.streaks import StreakState, compute_streak

logger = logging.getLogger(__name__)

NUDGE_DIRECTIONS = ("sent", "received")
NUDGE_HISTORY_LIMIT = 100


@dataclass(frozen=True, slots=True)
class HabitView:
    """Everything a habit screen shows, computed at one instant."""

    habit: Habit
    status: StatusSnapshot
    streak: StreakState
    score: HabitScore


@dataclass(frozen=True, slots=True)
class HabitStatusRow:
    habit: Habit
    status: Optional[StatusSnapshot]  # None renders as "status unknown"


@dataclass(frozen=True, slots=True)
class Evaluation:
    status: StatusSnapshot
    shame_delta: int


class AccountabilityEngine:
    """Entry point for hosts: status, streaks, nudges, shame and analytics."""

    def __init__(
        self,
        habits: HabitRepository,
        scores: ScoreRepository,
        cooldowns: CooldownRepository,
        *,
        config: BaseConfig | None = None,
        clock: Clock | None = None,
        history: NudgeHistoryRepository | None = None,
    ):
        self.config = config or BaseConfig()
        self.clock = clock or SystemClock()
        self.habits = habits
        self.scores = scores
        self.history = history if history is not None else InMemoryNudgeHistoryRepository()
        locks = KeyedLocks()
        self.gatekeeper = NudgeGatekeeper(cooldowns, window=self.config.nudge_cooldown, locks=locks)
        self.ledger = ShameLedger(scores, delta=self.config.SHAME_DELTA, locks=locks)

    def _habit(self, habit_id: int) -> Habit:
        habit = self.habits.get_by_id(habit_id)
        if habit is None:
            raise NotFound(f"Habit {habit_id} not found")
        return habit

    def _status(self, habit: Habit, history: list, now: datetime) -> StatusSnapshot:
        last = history[-1] if history else None
        return compute_status(
            habit, last, now, history=history, lead_time=self.config.at_risk_lead_time
        )

    def habit_view(self, habit_id: int) -> HabitView:
        now = self.clock.now()
        habit = self._habit(habit_id)
        history = self.habits.completions_for_habit(habit_id, end=now)
        status = self._status(habit, history, now)
        streak = compute_streak(habit, history, now)
        return HabitView(habit, status, streak, calculate_habit_score(habit, streak, len(history)))

    def list_statuses(self, user_id: int) -> list[HabitStatusRow]:
        """A user's active habits, most urgent first; misconfigured ones last."""

        now = self.clock.now()
        known: dict[int, Habit] = {}
        snapshots: list[StatusSnapshot] = []
        unknown: list[HabitStatusRow] = []
        for habit in self.habits.list_for_user(user_id):
            history = self.habits.completions_for_habit(habit.id, end=now)
            snapshot = status_or_unknown(
                habit,
                history[-1] if history else None,
                now,
                history=history,
                lead_time=self.config.at_risk_lead_time,
            )
            if snapshot is None:
                unknown.append(HabitStatusRow(habit, None))
            else:
                known[habit.id] = habit
                snapshots.append(snapshot)
        rows = [HabitStatusRow(known[s.habit_id], s) for s in sort_by_urgency(snapshots)]
        return rows + unknown

    def evaluate(self, habit_id: int) -> Evaluation:
        """Compute the status and feed it to the shame ledger."""

        now = self.clock.now()
        habit = self._habit(habit_id)
        history = self.habits.completions_for_habit(habit_id, end=now)
        status = self._status(habit, history, now)
        delta = self.ledger.record_evaluation(habit.user_id, habit.id, status.level, now)
        logger.debug(
            "Habit evaluated",
            extra={"habit_id": habit.id, "level": status.level.value, "shame_delta": delta},
        )
        return Evaluation(status, delta)

    def nudge(self, sender_id: int, habit_id: int, send: Callable[[], Any]) -> NudgeDecision:
        """Gate a nudge, call ``send`` only when it is allowed and log it to the history."""

        now = self.clock.now()
        habit = self._habit(habit_id)
        history = self.habits.completions_for_habit(habit_id, end=now)
        status = self._status(habit, history, now)
        decision = self.gatekeeper.nudge(sender_id, habit, status, now, send)
        if decision.allowed:
            self.history.record(
                NudgeRecord(
                    sender_id=sender_id,
                    recipient_id=habit.user_id,
                    habit_id=habit.id,
                    sent_at=now,
                )
            )
            logger.info(
                "Nudge recorded",
                extra={"sender_id": sender_id, "recipient_id": habit.user_id, "habit_id": habit.id},
            )
        return decision

    def nudge_history(self, user_id: int, direction: str = "sent", days: int = 7) -> list[NudgeRecord]:
        """Nudges a user sent or received over the last ``days`` days, newest first."""

        if days <= 0:
            raise InvalidArgument(f"days must be positive, got {days}")
        since = self.clock.now() - timedelta(days=days)
        if direction == "sent":
            return self.history.sent_by(user_id, since, limit=NUDGE_HISTORY_LIMIT)
        if direction == "received":
            return self.history.received_by(user_id, since, limit=NUDGE_HISTORY_LIMIT)
        raise InvalidArgument(f"Unknown direction {direction!r}; use one of {NUDGE_DIRECTIONS}")

    def analytics(
        self,
        habit_id: int,
        start: date | datetime,
        end: date | datetime,
        granularity: str = "day",
    ) -> AnalyticsSummary:
        habit = self._habit(habit_id)
        history = self.habits.completions_for_habit(habit_id, end=self.clock.now())
        return summarize(history, start, end, habit=habit, granularity=granularity)

    def summarize_many(
        self,
        user_id: int,
        start: date | datetime,
        end: date | datetime,
        granularity: str = "day",
    ) -> dict[int, AnalyticsSummary]:
        """Summaries of a user's active habits keyed by habit id.

        Habits whose rule or timezone cannot be evaluated are logged and left
        out; window and granularity errors still propagate.
        """

        now = self.clock.now()
        summaries: dict[int, AnalyticsSummary] = {}
        for habit in self.habits.list_for_user(user_id):
            history = self.habits.completions_for_habit(habit.id, end=now)
            try:
                summaries[habit.id] = summarize(
                    history, start, end, habit=habit, granularity=granularity
                )
            except ConfigurationError as exc:
                logger.warning(f"Skipping analytics for habit {habit.id}: {exc}")
        return summaries

    def overall_consistency(self, user_id: int, start: date | datetime, end: date | datetime) -> float:
        """Mean consistency score over the user's habits that could be analysed."""

        return overall_consistency(self.summarize_many(user_id, start, end).values())


__all__ = ["AccountabilityEngine", "Evaluation", "HabitStatusRow", "HabitView"]
