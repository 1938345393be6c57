"""Command line interface for inspecting habits against a local database."""

from __future__ import annotations

from datetime import time, timedelta

import click
from sqlalchemy.exc import IntegrityError

from .clock import SystemClock, local_date, resolve_timezone
from .config import BaseConfig
from .domain.recurrence import RecurrenceRule, format_weekdays
from .engine import AccountabilityEngine
from .errors import HabitPactError
from .infra.database import bootstrap_database
from .infra.repositories import (
    SQLModelCooldownRepository,
    SQLModelHabitRepository,
    SQLModelNudgeHistoryRepository,
    SQLModelScoreRepository,
)
from .logging_config import setup_logging
from .models.habit import CompletionRecord, Habit
from .models.user import User
from .services.analytics import GRANULARITIES, overall_consistency


def _engine(ctx: click.Context) -> AccountabilityEngine:
    obj = ctx.obj
    if "engine" not in obj:
        _, session_factory = bootstrap_database(obj["config"])
        obj["engine"] = AccountabilityEngine(
            SQLModelHabitRepository(session_factory),
            SQLModelScoreRepository(session_factory),
            SQLModelCooldownRepository(session_factory),
            config=obj["config"],
            clock=obj.get("clock") or SystemClock(),
            history=SQLModelNudgeHistoryRepository(session_factory),
        )
    return obj["engine"]


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """HabitPact accountability tools."""

    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        ctx.obj["config"] = BaseConfig()
    setup_logging(ctx.obj["config"])


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database schema."""

    config = ctx.obj["config"]
    bootstrap_database(config)
    click.echo(f"Database ready: {config.DATABASE_URL}")


@cli.command("add-user")
@click.argument("username")
@click.option("--timezone", "tz", default=None, help="IANA timezone of the user")
@click.pass_context
def add_user(ctx: click.Context, username: str, tz: str | None) -> None:
    """Register a user."""

    engine = _engine(ctx)
    tz = tz or ctx.obj["config"].DEFAULT_TIMEZONE
    try:
        resolve_timezone(tz)
    except HabitPactError as exc:
        raise click.BadParameter(str(exc), param_hint="--timezone") from exc
    try:
        user = engine.scores.create_user(User(username=username, timezone=tz))
    except IntegrityError as exc:
        raise click.BadParameter(f"User {username!r} already exists", param_hint="USERNAME") from exc
    click.echo(f"User {user.id}: {user.username}")


@cli.command("add-habit")
@click.argument("user_id", type=int)
@click.argument("description")
@click.option(
    "--recurrence",
    type=click.Choice(["daily", "weekly", "n_per_week"]),
    default="daily",
    show_default=True,
)
@click.option("--days", default="", help="Target days, e.g. mon,wed,fri")
@click.option("--times", type=int, default=None, help="n for n_per_week habits")
@click.option("--at", "target_time", default=None, help="Target time of day, HH:MM")
@click.option("--difficulty", type=click.Choice(["easy", "medium", "hard"]), default="medium")
@click.option("--private", is_flag=True, default=False, help="Hide from friends")
@click.pass_context
def add_habit(
    ctx: click.Context,
    user_id: int,
    description: str,
    recurrence: str,
    days: str,
    times: int | None,
    target_time: str | None,
    difficulty: str,
    private: bool,
) -> None:
    """Create a habit for USER_ID."""

    engine = _engine(ctx)
    user = engine.scores.get_user(user_id)
    if user is None:
        raise click.ClickException(f"User {user_id} not found")
    try:
        at = time.fromisoformat(target_time) if target_time else None
    except ValueError as exc:
        raise click.BadParameter(f"{target_time!r} is not a time of day (HH:MM)", param_hint="--at") from exc
    habit = Habit(
        user_id=user_id,
        description=description,
        recurrence=recurrence,
        target_days=days,
        times_per_week=times,
        target_time=at,
        difficulty=difficulty,
        timezone=user.timezone,
        is_shared=not private,
    )
    try:
        rule = RecurrenceRule.from_habit(habit)
    except HabitPactError as exc:
        raise click.ClickException(str(exc)) from exc
    habit.target_days = format_weekdays(rule.weekdays)
    habit = engine.habits.create(habit)
    click.echo(f"Habit {habit.id}: {habit.description} ({recurrence})")


@cli.command("complete")
@click.argument("habit_id", type=int)
@click.option("--note", default=None)
@click.pass_context
def complete(ctx: click.Context, habit_id: int, note: str | None) -> None:
    """Log a completion of HABIT_ID now."""

    engine = _engine(ctx)
    habit = engine.habits.get_by_id(habit_id)
    if habit is None:
        raise click.ClickException(f"Habit {habit_id} not found")
    engine.habits.add_completion(
        CompletionRecord(
            habit_id=habit_id,
            user_id=habit.user_id,
            completed_at=engine.clock.now(),
            note=note,
        )
    )
    click.echo(f"Completed habit {habit_id}")


@cli.command("status")
@click.argument("habit_id", type=int)
@click.pass_context
def status(ctx: click.Context, habit_id: int) -> None:
    """Show the risk status of HABIT_ID and record it for the shame ledger."""

    engine = _engine(ctx)
    try:
        evaluation = engine.evaluate(habit_id)
    except HabitPactError as exc:
        raise click.ClickException(str(exc)) from exc
    snapshot = evaluation.status
    click.echo(f"Status: {snapshot.level.value}")
    click.echo(f"Deadline: {snapshot.deadline_text} ({snapshot.next_deadline.isoformat()})")
    click.echo(f"Nudge eligible: {'yes' if snapshot.eligible_for_nudge else 'no'}")
    if evaluation.shame_delta:
        click.echo(f"Shame score +{evaluation.shame_delta}")


@cli.command("streak")
@click.argument("habit_id", type=int)
@click.pass_context
def streak(ctx: click.Context, habit_id: int) -> None:
    """Show current and best streaks of HABIT_ID."""

    engine = _engine(ctx)
    try:
        view = engine.habit_view(habit_id)
    except HabitPactError as exc:
        raise click.ClickException(str(exc)) from exc
    state = view.streak
    click.echo(f"Current streak: {state.current}")
    click.echo(f"Best streak: {state.best}")
    if state.next_milestone:
        click.echo(f"Next milestone: {state.next_milestone}")
    click.echo(f"Score: {view.score.adjusted_score}")


@cli.command("analytics")
@click.argument("habit_id", type=int)
@click.option("--days", type=click.IntRange(min=1), default=30, show_default=True)
@click.option("--granularity", type=click.Choice(GRANULARITIES), default="day", show_default=True)
@click.pass_context
def analytics(ctx: click.Context, habit_id: int, days: int, granularity: str) -> None:
    """Summarise the last DAYS days of HABIT_ID."""

    engine = _engine(ctx)
    habit = engine.habits.get_by_id(habit_id)
    if habit is None:
        raise click.ClickException(f"Habit {habit_id} not found")
    try:
        end = local_date(engine.clock.now(), resolve_timezone(habit.timezone))
        summary = engine.analytics(habit_id, end - timedelta(days=days - 1), end, granularity)
    except HabitPactError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Completions: {summary.total_completions}")
    click.echo(f"Completion rate: {summary.completion_rate:.2f}%")
    click.echo(f"Average streak: {summary.average_streak_length:.2f}")
    click.echo(f"Consistency: {summary.consistency_score:.2f}")
    click.echo(f"Best day: {summary.best_day_of_week}")
    for bucket in summary.trend:
        click.echo(f"  {bucket.label}: {bucket.completions}")


@cli.command("overview")
@click.argument("user_id", type=int)
@click.option("--days", type=click.IntRange(min=1), default=30, show_default=True)
@click.pass_context
def overview(ctx: click.Context, user_id: int, days: int) -> None:
    """Consistency of every active habit of USER_ID over the last DAYS days."""

    engine = _engine(ctx)
    user = engine.scores.get_user(user_id)
    if user is None:
        raise click.ClickException(f"User {user_id} not found")
    end = local_date(engine.clock.now(), resolve_timezone(user.timezone))
    start = end - timedelta(days=days - 1)
    summaries = engine.summarize_many(user_id, start, end)
    for habit in engine.habits.list_for_user(user_id):
        summary = summaries.get(habit.id)
        shown = f"{summary.consistency_score:.2f}" if summary else "unknown"
        click.echo(f"  {habit.id} {habit.description}: {shown}")
    click.echo(f"Overall consistency: {overall_consistency(summaries.values()):.2f}")


@cli.command("nudge")
@click.argument("sender_id", type=int)
@click.argument("habit_id", type=int)
@click.pass_context
def nudge(ctx: click.Context, sender_id: int, habit_id: int) -> None:
    """Nudge the owner of HABIT_ID on behalf of SENDER_ID."""

    engine = _engine(ctx)
    try:
        decision = engine.nudge(
            sender_id, habit_id, lambda: click.echo(f"Nudge sent for habit {habit_id}")
        )
    except HabitPactError as exc:
        raise click.ClickException(str(exc)) from exc
    if not decision.allowed:
        detail = f" ({decision.remaining_cooldown}m left)" if decision.remaining_cooldown else ""
        raise click.ClickException(f"Nudge denied: {decision.reason.value}{detail}")


@cli.command("nudges")
@click.argument("user_id", type=int)
@click.option("--received", is_flag=True, default=False, help="Show nudges received instead of sent")
@click.option("--days", type=click.IntRange(min=1), default=7, show_default=True)
@click.pass_context
def nudges(ctx: click.Context, user_id: int, received: bool, days: int) -> None:
    """List nudges USER_ID sent (or received) over the last DAYS days."""

    engine = _engine(ctx)
    direction = "received" if received else "sent"
    records = engine.nudge_history(user_id, direction, days)
    click.echo(f"{len(records)} nudge(s) {direction} in the last {days} day(s)")
    for record in records:
        other = record.recipient_id if direction == "sent" else record.sender_id
        click.echo(f"  {record.sent_at.isoformat()} habit {record.habit_id} user {other}")


def main() -> None:  # pragma: no cover - console entry point
    cli(obj={})


__all__ = ["cli", "main"]
