"""Motivational messages and guidance after a broken streak.

Everything here is presentational: the functions return fresh objects and
never touch scores or streaks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import InvalidArgument

MORNING_HABITS = ("exercise", "meditation", "reading", "journaling")
EVENING_HABITS = ("reflection", "planning", "stretching")


@dataclass(frozen=True, slots=True)
class Guidance:
    type: str
    title: str
    description: str
    action_steps: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RecoveryAdvice:
    message_type: str
    title: str
    message: str
    target_streak: Optional[int] = None
    guidance: Optional[Guidance] = None
    action_text: Optional[str] = None
    reminder_offered: bool = False
    reminder_time: Optional[str] = None


_GUIDANCE: dict[int, Guidance] = {
    2: Guidance(
        "habit_stacking",
        "Try Habit Stacking",
        "Link your new habit to an existing routine you already do consistently.",
        (
            "Choose a habit you never miss (like brushing teeth)",
            "Do your new habit immediately after the existing one",
            "Start with just 2 minutes to build the connection",
            "Gradually increase duration once the link is strong",
        ),
    ),
    3: Guidance(
        "easier_goals",
        "Start Smaller",
        "Sometimes we aim too high too fast. Build momentum with easier wins.",
        (
            "Reduce your habit to the smallest possible version",
            "Focus on consistency over intensity",
            "Celebrate small wins to build confidence",
            "Gradually increase difficulty after 2 weeks of consistency",
        ),
    ),
    4: Guidance(
        "schedule_adjustment",
        "Optimize Your Timing",
        "Your schedule might be working against you. Find your optimal time.",
        (
            "Track when you have the most energy and motivation",
            "Schedule habits during your peak performance times",
            "Prepare everything the night before",
            "Set up environmental cues to trigger the habit",
        ),
    ),
    5: Guidance(
        "accountability_partner",
        "Get Support",
        "Sometimes we need external accountability to stay on track.",
        (
            "Share your goals with friends or family",
            "Find an accountability partner with similar goals",
            "Join online communities focused on your habit",
            "Consider working with a coach or mentor",
        ),
    ),
}

# (title, message template); indexed by break count, last entry repeats.
_MESSAGES: tuple[tuple[str, str], ...] = (
    (
        "Beat Your Record!",
        "Your best streak with {habit} was {best} days. You've done it before, "
        "now aim for {target} days and set a new personal record!",
    ),
    (
        "Level Up Challenge",
        "Time to level up! Your {best}-day streak with {habit} was impressive. "
        "Can you push it to {target} days this time?",
    ),
    (
        "Progress, Not Perfection",
        "You built a {best}-day streak with {habit}. One missed day doesn't erase "
        "that. Your next goal: {target} days.",
    ),
    (
        "Comeback Time!",
        "The best comeback stories start with a single step. {habit} is waiting, "
        "and {target} days is within reach.",
    ),
    (
        "Resilience in Action",
        "Building habits is like growing a garden: sometimes you replant. "
        "Grow {habit} again, one day at a time, toward {target} days.",
    ),
)


def _check_count(name: str, value: int) -> None:
    if value < 0:
        raise InvalidArgument(f"{name} must be non-negative, got {value}")


def guidance_for(break_count: int) -> list[Guidance]:
    """All strategies unlocked at ``break_count`` breaks, in escalation order."""

    _check_count("break_count", break_count)
    return [g for threshold, g in sorted(_GUIDANCE.items()) if break_count >= threshold]


def advise_on_break(habit_name: str, break_count: int, best_streak: int) -> RecoveryAdvice:
    """Advice for a habit whose streak broke ``break_count`` times.

    The target is always one more than the best streak. A first break gets
    plain encouragement; repeated breaks add the strategy matching the count.
    """

    _check_count("break_count", break_count)
    _check_count("best_streak", best_streak)
    target = best_streak + 1
    title, template = _MESSAGES[min(break_count, len(_MESSAGES) - 1)]
    message = template.format(habit=habit_name, best=best_streak, target=target)

    if break_count <= 1:
        return RecoveryAdvice(
            "restart_encouragement",
            title,
            message,
            target_streak=target,
            action_text=f"Aim for {target} Days",
        )
    guidance = _GUIDANCE[min(break_count, 5)]
    return RecoveryAdvice(
        "multiple_breaks",
        title,
        message,
        target_streak=target,
        guidance=guidance,
        action_text=guidance.title,
    )


def achievement_preservation(
    habit_name: str, best_streak: int, total_completions: int
) -> RecoveryAdvice:
    _check_count("best_streak", best_streak)
    _check_count("total_completions", total_completions)
    return RecoveryAdvice(
        "achievement_preservation",
        "Your Progress Still Counts!",
        f"Remember: you've completed {habit_name} {total_completions} times and "
        f"achieved a {best_streak}-day streak. One missed day doesn't erase that.",
        action_text="View My Achievements",
    )


def suggest_reminder_time(habit_name: str) -> str:
    """HH:MM reminder suggestion based on keywords in the habit name."""

    lowered = habit_name.lower()
    if any(word in lowered for word in MORNING_HABITS):
        return "08:00"
    if any(word in lowered for word in EVENING_HABITS):
        return "20:00"
    return "10:00"


def restart_reminder_offer(habit_name: str) -> RecoveryAdvice:
    return RecoveryAdvice(
        "restart_reminder",
        "Set a Restart Reminder?",
        f"Would you like a reminder tomorrow to restart your {habit_name} habit?",
        action_text="Set Reminder",
        reminder_offered=True,
        reminder_time=suggest_reminder_time(habit_name),
    )


__all__ = [
    "Guidance",
    "RecoveryAdvice",
    "achievement_preservation",
    "advise_on_break",
    "guidance_for",
    "restart_reminder_offer",
    "suggest_reminder_time",
]
