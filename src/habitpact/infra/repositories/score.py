"""SQLModel implementation of the score repository."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import case
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, update

from ...errors import NotFound
from ...models.social import HabitRiskState
from ...models.user import User
from ._time import to_utc


class SQLModelScoreRepository:
    """Shame scores on the user row, previous risk levels in ``habit_risk_state``."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_user(self, user_id: int) -> Optional[User]:
        with self.session_factory() as session:
            obj = session.get(User, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_users(self) -> list[User]:
        with self.session_factory() as session:
            rows = list(session.exec(select(User).order_by(User.id)).all())  # type: ignore
            session.expunge_all()
            return rows

    def create_user(self, user: User) -> User:
        with self.session_factory() as session:
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user

    def get_previous_level(self, habit_id: int) -> Optional[str]:
        with self.session_factory() as session:
            state = session.get(HabitRiskState, habit_id)
            return state.previous_level if state else None

    def record_transition(
        self,
        *,
        user_id: int,
        habit_id: int,
        expected_level: Optional[str],
        new_level: str,
        delta: int,
        at: datetime,
    ) -> Optional[int]:
        """Conditional level write plus score increment in a single transaction.

        An existing row is only updated while it still holds
        ``expected_level``; a first row is an INSERT guarded by the primary
        key. Either guard failing rolls the score increment back too.
        """
        with self.session_factory() as session:
            bumped = session.exec(
                update(User)
                .where(User.id == user_id)
                .values(shame_score=User.shame_score + delta)
            )
            if bumped.rowcount == 0:
                raise NotFound(f"User {user_id} not found")

            if expected_level is None:
                session.add(
                    HabitRiskState(habit_id=habit_id, previous_level=new_level, updated_at=to_utc(at))
                )
                try:
                    session.flush()
                except IntegrityError:
                    session.rollback()
                    return None
            else:
                swapped = session.exec(
                    update(HabitRiskState)
                    .where(
                        HabitRiskState.habit_id == habit_id,
                        HabitRiskState.previous_level == expected_level,
                    )
                    .values(previous_level=new_level, updated_at=to_utc(at))
                )
                if swapped.rowcount != 1:
                    session.rollback()
                    return None

            score = session.exec(select(User.shame_score).where(User.id == user_id)).one()
            session.commit()
            return score

    def adjust_score(self, user_id: int, delta: int) -> int:
        """Add ``delta`` to the score, clamping at zero inside the UPDATE."""
        with self.session_factory() as session:
            raised = User.shame_score + delta
            result = session.exec(
                update(User)
                .where(User.id == user_id)
                .values(shame_score=case((raised < 0, 0), else_=raised))
            )
            if result.rowcount == 0:
                raise NotFound(f"User {user_id} not found")
            session.commit()
            user = session.get(User, user_id)
            return user.shame_score
