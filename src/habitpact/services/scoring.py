"""Difficulty-weighted habit scores and recognition levels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..errors import ConfigurationError, InvalidArgument

DIFFICULTY_MULTIPLIERS = {"easy": 1.0, "medium": 1.5, "hard": 2.0}
HARD_HABIT_THRESHOLD_FACTOR = 0.8

# Highest first.
RECOGNITION_THRESHOLDS = (
    ("diamond", 1000),
    ("platinum", 500),
    ("gold", 250),
    ("silver", 100),
    ("bronze", 50),
)


@dataclass(frozen=True, slots=True)
class HabitScore:
    habit_id: Optional[int]
    raw_score: int
    adjusted_score: int
    difficulty: str
    multiplier: float
    streak_length: int
    total_completions: int


@dataclass(frozen=True, slots=True)
class Recognition:
    level: str
    threshold: float
    is_hard_habit_bonus: bool


def difficulty_multiplier(difficulty: str) -> float:
    try:
        return DIFFICULTY_MULTIPLIERS[str(difficulty).lower()]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown difficulty: {difficulty!r}") from exc


def calculate_habit_score(habit: Any, streak: Any, total_completions: int = 0) -> HabitScore:
    """Score a habit from its streak: 10 per current day, 2 per completion, 5 per best day."""

    if total_completions < 0:
        raise InvalidArgument("total_completions must be non-negative")
    difficulty = str(getattr(habit, "difficulty", "easy")).lower()
    multiplier = difficulty_multiplier(difficulty)
    raw = streak.current * 10 + total_completions * 2 + streak.best * 5
    return HabitScore(
        habit_id=getattr(habit, "id", None),
        raw_score=raw,
        adjusted_score=round(raw * multiplier),
        difficulty=difficulty,
        multiplier=multiplier,
        streak_length=streak.current,
        total_completions=total_completions,
    )


def recognition_level(score: HabitScore) -> Optional[Recognition]:
    """Highest recognition the adjusted score reaches; hard habits need 20% less."""

    hard = score.difficulty == "hard"
    factor = HARD_HABIT_THRESHOLD_FACTOR if hard else 1.0
    for level, base in RECOGNITION_THRESHOLDS:
        threshold = base * factor
        if score.adjusted_score >= threshold:
            return Recognition(level, threshold, hard)
    return None


__all__ = [
    "DIFFICULTY_MULTIPLIERS",
    "HabitScore",
    "Recognition",
    "calculate_habit_score",
    "difficulty_multiplier",
    "recognition_level",
]
