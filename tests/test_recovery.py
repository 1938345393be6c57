"""Tests for streak recovery advice."""

from __future__ import annotations

import pytest

from habitpact.errors import InvalidArgument
from habitpact.services.recovery import (
    achievement_preservation,
    advise_on_break,
    guidance_for,
    restart_reminder_offer,
    suggest_reminder_time,
)


class TestAdviseOnBreak:
    @pytest.mark.parametrize("breaks", [0, 1])
    def test_first_break_is_encouragement(self, breaks):
        advice = advise_on_break("Reading", breaks, 10)
        assert advice.message_type == "restart_encouragement"
        assert advice.target_streak == 11
        assert advice.guidance is None
        assert "Reading" in advice.message

    @pytest.mark.parametrize(
        ("breaks", "guidance_type"),
        [
            (2, "habit_stacking"),
            (3, "easier_goals"),
            (4, "schedule_adjustment"),
            (5, "accountability_partner"),
            (12, "accountability_partner"),
        ],
    )
    def test_repeated_breaks_escalate(self, breaks, guidance_type):
        advice = advise_on_break("Running", breaks, 4)
        assert advice.message_type == "multiple_breaks"
        assert advice.target_streak == 5
        assert advice.guidance.type == guidance_type
        assert advice.guidance.title
        assert advice.guidance.description
        assert len(advice.guidance.action_steps) >= 1

    def test_deterministic(self):
        assert advise_on_break("Yoga", 3, 7) == advise_on_break("Yoga", 3, 7)

    def test_target_from_zero_best(self):
        assert advise_on_break("Yoga", 1, 0).target_streak == 1

    def test_negative_inputs_rejected(self):
        with pytest.raises(InvalidArgument):
            advise_on_break("Yoga", -1, 3)
        with pytest.raises(InvalidArgument):
            advise_on_break("Yoga", 1, -3)


def test_guidance_accumulates():
    assert guidance_for(1) == []
    assert [g.type for g in guidance_for(3)] == ["habit_stacking", "easier_goals"]
    assert len(guidance_for(9)) == 4


def test_achievement_preservation():
    advice = achievement_preservation("Journaling", 12, 40)
    assert advice.message_type == "achievement_preservation"
    assert "40 times" in advice.message
    assert "12-day" in advice.message


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Morning Exercise", "08:00"),
        ("Evening reflection", "20:00"),
        ("Drink water", "10:00"),
    ],
)
def test_suggest_reminder_time(name, expected):
    assert suggest_reminder_time(name) == expected


def test_restart_reminder_offer():
    advice = restart_reminder_offer("Meditation")
    assert advice.message_type == "restart_reminder"
    assert advice.reminder_offered
    assert advice.reminder_time == "08:00"
