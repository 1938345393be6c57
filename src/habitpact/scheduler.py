"""Nightly analytics roll-up on a background scheduler."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .clock import Clock, SystemClock, local_date, resolve_timezone
from .config import BaseConfig
from .domain.repositories import HabitRepository
from .errors import HabitPactError
from .models.habit import Habit
from .services.analytics import AnalyticsSummary, summarize

logger = logging.getLogger("habitpact.scheduler")

JOB_ID = "nightly_analytics"
DEFAULT_WINDOW_DAYS = 30

SummarySink = Callable[[Habit, AnalyticsSummary], None]


class AnalyticsScheduler:
    """Runs ``summarize`` for every active habit once a night."""

    def __init__(
        self,
        habits: HabitRepository,
        sink: SummarySink,
        *,
        config: BaseConfig | None = None,
        clock: Clock | None = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ):
        """
        Args:
            habits: Habit store to read active habits and history from
            sink: Called with each habit and its summary
            config: Supplies the hour of the nightly run
            clock: Source of "today"
            window_days: Length of the trailing window, today included
        """
        self.habits = habits
        self.sink = sink
        self.config = config or BaseConfig()
        self.clock = clock or SystemClock()
        self.window_days = window_days
        self.scheduler: Optional[BackgroundScheduler] = None

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = BackgroundScheduler(timezone=resolve_timezone(self.config.DEFAULT_TIMEZONE))
        self.scheduler.add_job(
            func=self._run_job,
            trigger=CronTrigger(hour=self.config.ANALYTICS_HOUR, minute=0),
            id=JOB_ID,
            name="Nightly Habit Analytics",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Scheduled nightly analytics at %02d:00", self.config.ANALYTICS_HOUR)

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def run_now(self) -> int:
        """Summarise every active habit immediately; returns how many were summarised.

        Misconfigured habits are logged and skipped.
        """
        now = self.clock.now()
        count = 0
        for habit in self.habits.list_active():
            try:
                end = local_date(now, resolve_timezone(habit.timezone))
                start = end - timedelta(days=self.window_days - 1)
                history = self.habits.completions_for_habit(habit.id, end=now)
                summary = summarize(history, start, end, habit=habit)
            except HabitPactError as exc:
                logger.error(f"Analytics skipped for habit {habit.id}: {exc}")
                continue
            self.sink(habit, summary)
            count += 1
        logger.info("Analytics computed for %d habits", count)
        return count

    def _run_job(self) -> None:
        try:
            self.run_now()
        except Exception as exc:
            logger.error(f"Nightly analytics failed: {exc}", exc_info=True)


__all__ = ["AnalyticsScheduler", "DEFAULT_WINDOW_DAYS", "JOB_ID"]
