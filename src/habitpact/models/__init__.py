"""SQLModel table exports."""

from .habit import CompletionRecord, Habit
from .social import HabitRiskState, NudgeCooldown, NudgeRecord
from .user import User

__all__ = [
    "CompletionRecord",
    "Habit",
    "HabitRiskState",
    "NudgeCooldown",
    "NudgeRecord",
    "User",
]
