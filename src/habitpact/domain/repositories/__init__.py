"""Repository protocol definitions for the domain layer."""

from .cooldown import CooldownRepository
from .habit import HabitRepository
from .nudge_history import NudgeHistoryRepository
from .score import ScoreRepository

__all__ = [
    "CooldownRepository",
    "HabitRepository",
    "NudgeHistoryRepository",
    "ScoreRepository",
]
