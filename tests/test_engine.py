"""End-to-end tests of the accountability engine over SQLite."""

from __future__ import annotations

import logging
from datetime import date, timedelta

import pytest

from habitpact.clock import ensure_aware
from habitpact.errors import InvalidArgument, NotFound
from habitpact.services.nudges import NudgeDenial
from habitpact.services.status import RiskLevel
from tests.conftest import at


@pytest.fixture
def reading(habit_factory, completion_factory):
    habit = habit_factory(description="Read 20 pages")
    for day in (7, 8, 9):
        completion_factory(habit, at(day))
    return habit


class TestDailyScenario:
    def test_in_progress_day(self, engine, reading):
        view = engine.habit_view(reading.id)
        assert view.status.level is RiskLevel.SAFE
        assert view.streak.current == 3
        assert view.score.raw_score == 3 * 10 + 3 * 2 + 3 * 5

    def test_missed_deadline_increments_shame_once(self, engine, clock, reading, score_repo):
        assert engine.evaluate(reading.id).shame_delta == 0

        clock.set(at(11, 3))
        first = engine.evaluate(reading.id)
        assert first.status.level is RiskLevel.OVERDUE
        assert first.shame_delta == 1
        assert engine.evaluate(reading.id).shame_delta == 0
        assert score_repo.get_user(reading.user_id).shame_score == 1

        view = engine.habit_view(reading.id)
        assert view.streak.current == 0
        assert view.streak.best == 3

    def test_completion_clears_overdue(self, engine, clock, reading, completion_factory):
        clock.set(at(11, 3))
        engine.evaluate(reading.id)
        completion_factory(reading, at(11, 2))
        assert engine.evaluate(reading.id).status.level is RiskLevel.SAFE

    def test_evaluation_is_logged(self, engine, clock, reading, caplog):
        clock.set(at(11, 3))
        with caplog.at_level(logging.DEBUG, logger="habitpact.engine"):
            engine.evaluate(reading.id)

        record = next(r for r in caplog.records if r.getMessage() == "Habit evaluated")
        assert record.habit_id == reading.id
        assert record.level == "overdue"
        assert record.shame_delta == 1


class TestNudges:
    def test_cooldown_through_engine(self, engine, clock, reading, user_factory):
        friend = user_factory("friend")
        clock.set(at(11, 3))
        sent = []

        assert engine.nudge(friend.id, reading.id, lambda: sent.append(clock.now())).allowed

        clock.advance(timedelta(minutes=30))
        denied = engine.nudge(friend.id, reading.id, lambda: sent.append(clock.now()))
        assert denied.reason is NudgeDenial.ON_COOLDOWN
        assert denied.remaining_cooldown == 30

        clock.set(at(11, 4, 1))
        assert engine.nudge(friend.id, reading.id, lambda: sent.append(clock.now())).allowed
        assert len(sent) == 2

    def test_safe_habit_cannot_be_nudged(self, engine, reading, user_factory):
        friend = user_factory("friend")
        decision = engine.nudge(friend.id, reading.id, lambda: None)
        assert decision.reason is NudgeDenial.NOT_AT_RISK

    def test_owner_cannot_nudge_self(self, engine, clock, reading):
        clock.set(at(11, 3))
        assert engine.nudge(reading.user_id, reading.id, lambda: None).reason is NudgeDenial.SELF_NUDGE

    def test_delivered_nudges_are_kept_in_history(self, engine, clock, reading, user_factory):
        friend = user_factory("friend")
        clock.set(at(11, 3))
        engine.nudge(friend.id, reading.id, lambda: None)
        engine.nudge(friend.id, reading.id, lambda: None)
        clock.set(at(11, 4, 1))
        engine.nudge(friend.id, reading.id, lambda: None)

        sent = engine.nudge_history(friend.id, "sent")
        assert [ensure_aware(r.sent_at) for r in sent] == [at(11, 4, 1), at(11, 3)]
        assert {r.recipient_id for r in sent} == {reading.user_id}

        received = engine.nudge_history(reading.user_id, "received")
        assert [r.sender_id for r in received] == [friend.id, friend.id]
        assert engine.nudge_history(reading.user_id, "sent") == []

    def test_recorded_nudge_is_logged(self, engine, clock, reading, user_factory, caplog):
        friend = user_factory("friend")
        clock.set(at(11, 3))
        with caplog.at_level(logging.INFO, logger="habitpact.engine"):
            engine.nudge(friend.id, reading.id, lambda: None)
            engine.nudge(friend.id, reading.id, lambda: None)

        recorded = [r for r in caplog.records if r.getMessage() == "Nudge recorded"]
        assert len(recorded) == 1
        assert recorded[0].sender_id == friend.id
        assert recorded[0].recipient_id == reading.user_id

    def test_history_window(self, engine, clock, reading, user_factory):
        friend = user_factory("friend")
        clock.set(at(11, 3))
        engine.nudge(friend.id, reading.id, lambda: None)

        clock.set(at(19, 3))
        assert engine.nudge_history(friend.id, days=7) == []
        assert len(engine.nudge_history(friend.id, days=9)) == 1

    def test_failed_send_leaves_no_history(self, engine, clock, reading, user_factory):
        friend = user_factory("friend")
        clock.set(at(11, 3))

        def broken():
            raise RuntimeError("push service down")

        with pytest.raises(RuntimeError):
            engine.nudge(friend.id, reading.id, broken)
        assert engine.nudge_history(friend.id) == []

    def test_history_validation(self, engine, user):
        with pytest.raises(InvalidArgument):
            engine.nudge_history(user.id, days=0)
        with pytest.raises(InvalidArgument):
            engine.nudge_history(user.id, "both")


class TestListStatuses:
    def test_orders_by_urgency_and_flags_unknown(self, engine, clock, user, habit_factory, completion_factory):
        done = habit_factory(description="Done today")
        completion_factory(done, at(10, 7))
        overdue = habit_factory(description="Missed yesterday")
        broken = habit_factory(description="Broken rule", recurrence="weekly", target_days="")

        rows = engine.list_statuses(user.id)
        assert [r.habit.id for r in rows] == [overdue.id, done.id, broken.id]
        assert rows[0].status.level is RiskLevel.OVERDUE
        assert rows[-1].status is None


class TestRollUp:
    def test_summarize_many_skips_unanalysable_habits(self, engine, user, reading, habit_factory):
        idle = habit_factory(description="Idle")
        broken = habit_factory(description="Broken rule", recurrence="weekly", target_days="")

        summaries = engine.summarize_many(user.id, date(2024, 1, 7), date(2024, 1, 9))
        assert set(summaries) == {reading.id, idle.id}
        assert broken.id not in summaries
        assert summaries[reading.id].consistency_score == 90.0
        assert summaries[idle.id].consistency_score == 0.0

    def test_overall_consistency_is_the_mean(self, engine, user, reading, habit_factory):
        habit_factory(description="Idle")
        habit_factory(description="Broken rule", recurrence="weekly", target_days="")
        assert engine.overall_consistency(user.id, date(2024, 1, 7), date(2024, 1, 9)) == 45.0

    def test_user_without_habits(self, engine, user_factory):
        loner = user_factory("loner")
        assert engine.summarize_many(loner.id, date(2024, 1, 7), date(2024, 1, 9)) == {}
        assert engine.overall_consistency(loner.id, date(2024, 1, 7), date(2024, 1, 9)) == 0.0

    def test_inverted_window_is_not_skipped(self, engine, user, reading):
        with pytest.raises(InvalidArgument):
            engine.summarize_many(user.id, date(2024, 1, 9), date(2024, 1, 7))


def test_analytics(engine, reading):
    summary = engine.analytics(reading.id, date(2024, 1, 7), date(2024, 1, 9))
    assert summary.completion_rate == 100.0
    assert summary.total_completions == 3


def test_missing_habit(engine):
    with pytest.raises(NotFound):
        engine.habit_view(404)
    with pytest.raises(NotFound):
        engine.evaluate(404)
