"""Service module exports."""

from . import analytics, nudges, recovery, scoring, shame, status, streaks

__all__ = [
    "analytics",
    "nudges",
    "recovery",
    "scoring",
    "shame",
    "status",
    "streaks",
]
