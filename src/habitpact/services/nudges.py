"""Nudge gatekeeping: who may remind whom, and how often."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional

from ..clock import ensure_aware
from ..domain.repositories import CooldownRepository
from ..errors import InvalidArgument
from ..locks import KeyedLocks
from .status import StatusSnapshot

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(minutes=60)


class NudgeDenial(str, Enum):
    SELF_NUDGE = "self_nudge"
    NOT_AT_RISK = "not_at_risk"
    ON_COOLDOWN = "on_cooldown"


@dataclass(frozen=True, slots=True)
class Cooldown:
    """Last successful nudge for a (sender, habit) pair."""

    last_sent: datetime
    window: timedelta = DEFAULT_COOLDOWN


@dataclass(frozen=True, slots=True)
class NudgeDecision:
    allowed: bool
    reason: Optional[NudgeDenial] = None
    remaining_cooldown: int = 0  # whole minutes, rounded up


def cooldown_remaining(cooldown: Any, now: datetime, window: timedelta = DEFAULT_COOLDOWN) -> timedelta:
    """Time left before ``cooldown`` expires; zero once expired or absent.

    ``cooldown`` is any object with ``last_sent``; a ``window`` attribute on it
    takes precedence over the ``window`` argument.
    """

    if cooldown is None:
        return timedelta(0)
    length = getattr(cooldown, "window", None) or window
    elapsed = ensure_aware(now) - ensure_aware(cooldown.last_sent)
    return max(length - elapsed, timedelta(0))


def can_nudge(
    sender_id: Any,
    habit: Any,
    status: StatusSnapshot,
    cooldown: Any,
    now: datetime,
    *,
    window: timedelta = DEFAULT_COOLDOWN,
) -> NudgeDecision:
    """Decide whether ``sender_id`` may nudge the owner of ``habit`` right now.

    Rules are applied in order: no self-nudges, only habits eligible for a
    nudge (shared and at risk or overdue), and one nudge per cooldown window
    per (sender, habit).
    """

    if sender_id is None or sender_id == "":
        raise InvalidArgument("sender_id is required")
    if sender_id == habit.user_id:
        return NudgeDecision(False, NudgeDenial.SELF_NUDGE)
    if not status.eligible_for_nudge:
        return NudgeDecision(False, NudgeDenial.NOT_AT_RISK)
    remaining = cooldown_remaining(cooldown, now, window)
    if remaining > timedelta(0):
        minutes = math.ceil(remaining.total_seconds() / 60)
        return NudgeDecision(False, NudgeDenial.ON_COOLDOWN, minutes)
    return NudgeDecision(True)


class NudgeGatekeeper:
    """Checks and records nudges atomically per (sender, habit).

    The in-process lock serialises concurrent attempts from one host; the
    store's conditional ``claim`` keeps separate processes sharing a database
    from both succeeding.
    """

    def __init__(
        self,
        store: CooldownRepository,
        *,
        window: timedelta = DEFAULT_COOLDOWN,
        locks: KeyedLocks | None = None,
    ):
        self.store = store
        self.window = window
        self._locks = locks or KeyedLocks()

    def check(self, sender_id: Any, habit: Any, status: StatusSnapshot, now: datetime) -> NudgeDecision:
        """Read-only preview, e.g. to enable a nudge button."""

        cooldown = self.store.get(sender_id, habit.id)
        return can_nudge(sender_id, habit, status, cooldown, now, window=self.window)

    def nudge(
        self,
        sender_id: Any,
        habit: Any,
        status: StatusSnapshot,
        now: datetime,
        send: Callable[[], Any],
    ) -> NudgeDecision:
        """Gate, record the cooldown and then call ``send``.

        If ``send`` raises, the previous cooldown is restored before the error
        propagates, so a failed delivery does not burn the window.
        """

        now = ensure_aware(now)
        with self._locks.hold((sender_id, habit.id)):
            previous = self.store.get(sender_id, habit.id)
            decision = can_nudge(sender_id, habit, status, previous, now, window=self.window)
            if not decision.allowed:
                logger.debug(
                    "Nudge denied",
                    extra={"sender_id": sender_id, "habit_id": habit.id, "reason": decision.reason},
                )
                return decision

            if not self.store.claim(sender_id, habit.id, now, self.window):
                # Another process recorded a nudge between our read and write.
                latest = self.store.get(sender_id, habit.id)
                remaining = cooldown_remaining(latest, now, self.window)
                minutes = max(1, math.ceil(remaining.total_seconds() / 60))
                return NudgeDecision(False, NudgeDenial.ON_COOLDOWN, minutes)

            try:
                send()
            except Exception:
                self.store.restore(
                    sender_id, habit.id, previous.last_sent if previous is not None else None
                )
                raise

        logger.info("Nudge sent", extra={"sender_id": sender_id, "habit_id": habit.id})
        return decision


__all__ = [
    "Cooldown",
    "DEFAULT_COOLDOWN",
    "NudgeDecision",
    "NudgeDenial",
    "NudgeGatekeeper",
    "can_nudge",
    "cooldown_remaining",
]
