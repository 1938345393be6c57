"""Concrete repository implementations using SQLModel."""

from .cooldown import InMemoryCooldownRepository, SQLModelCooldownRepository
from .habit import SQLModelHabitRepository
from .nudge_history import InMemoryNudgeHistoryRepository, SQLModelNudgeHistoryRepository
from .score import SQLModelScoreRepository

__all__ = [
    "InMemoryCooldownRepository",
    "InMemoryNudgeHistoryRepository",
    "SQLModelCooldownRepository",
    "SQLModelHabitRepository",
    "SQLModelNudgeHistoryRepository",
    "SQLModelScoreRepository",
]
