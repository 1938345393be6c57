"""Pytest configuration and shared fixtures for HabitPact tests.

Provides an isolated SQLite database per test, repository fixtures, a frozen
clock and factories for users, habits and completions.
"""

from __future__ import annotations

import tempfile
from datetime import datetime, time, timezone
from pathlib import Path

import pytest
from sqlmodel import SQLModel, create_engine

from habitpact import models  # noqa: F401  (registers tables)
from habitpact.clock import FixedClock
from habitpact.config import TestConfig
from habitpact.engine import AccountabilityEngine
from habitpact.infra.database import create_session_factory
from habitpact.infra.repositories import (
    SQLModelCooldownRepository,
    SQLModelHabitRepository,
    SQLModelNudgeHistoryRepository,
    SQLModelScoreRepository,
)
from habitpact.models import CompletionRecord, Habit, User

UTC = timezone.utc

# Wednesday 2024-01-10, 09:00 UTC
NOW = datetime(2024, 1, 10, 9, 0, tzinfo=UTC)
CREATED = datetime(2024, 1, 1, tzinfo=UTC)


def at(day: int, hour: int = 8, minute: int = 0, month: int = 1, year: int = 2024) -> datetime:
    """UTC instant helper for readable test data."""
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


def make_habit(**overrides) -> Habit:
    """Unsaved habit with test defaults (daily, shared, UTC, created 2024-01-01)."""

    fields = dict(
        id=1,
        user_id=1,
        description="Read 20 pages",
        recurrence="daily",
        target_days="",
        times_per_week=None,
        target_time=None,
        difficulty="medium",
        timezone="UTC",
        is_shared=True,
        is_active=True,
        created_at=CREATED,
    )
    fields.update(overrides)
    return Habit(**fields)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the one repositories receive in production."""
    return create_session_factory(db_engine)


@pytest.fixture
def config(tmp_path) -> TestConfig:
    return TestConfig(data_dir=tmp_path)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def habit_repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


@pytest.fixture
def score_repo(session_factory) -> SQLModelScoreRepository:
    return SQLModelScoreRepository(session_factory)


@pytest.fixture
def cooldown_repo(session_factory) -> SQLModelCooldownRepository:
    return SQLModelCooldownRepository(session_factory)


@pytest.fixture
def history_repo(session_factory) -> SQLModelNudgeHistoryRepository:
    return SQLModelNudgeHistoryRepository(session_factory)


@pytest.fixture
def engine(habit_repo, score_repo, cooldown_repo, history_repo, config, clock) -> AccountabilityEngine:
    return AccountabilityEngine(
        habit_repo, score_repo, cooldown_repo, config=config, clock=clock, history=history_repo
    )


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(score_repo):
    """Factory for creating persisted users."""

    def _create_user(username: str = "tester", timezone: str = "UTC") -> User:
        return score_repo.create_user(User(username=username, timezone=timezone))

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """Default owner for habits."""
    return user_factory("owner")


@pytest.fixture
def habit_factory(habit_repo, user):
    """Factory for creating persisted habits.

    Defaults to a shared daily habit created on 2024-01-01 (UTC).
    """

    def _create_habit(
        description: str = "Read 20 pages",
        recurrence: str = "daily",
        target_days: str = "",
        times_per_week: int | None = None,
        target_time: time | None = None,
        difficulty: str = "medium",
        timezone: str = "UTC",
        is_shared: bool = True,
        is_active: bool = True,
        created_at: datetime = CREATED,
        owner: User | None = None,
    ) -> Habit:
        owner = owner or user
        return habit_repo.create(
            Habit(
                user_id=owner.id,
                description=description,
                recurrence=recurrence,
                target_days=target_days,
                times_per_week=times_per_week,
                target_time=target_time,
                difficulty=difficulty,
                timezone=timezone,
                is_shared=is_shared,
                is_active=is_active,
                created_at=created_at,
            )
        )

    return _create_habit


@pytest.fixture
def completion_factory(habit_repo):
    """Factory for appending completions to a habit."""

    def _complete(habit: Habit, completed_at: datetime, note: str | None = None) -> CompletionRecord:
        return habit_repo.add_completion(
            CompletionRecord(
                habit_id=habit.id,
                user_id=habit.user_id,
                completed_at=completed_at,
                note=note,
            )
        )

    return _complete
