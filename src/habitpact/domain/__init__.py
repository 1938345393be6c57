"""Domain layer: recurrence rules and store protocols."""

from .recurrence import Period, RecurrenceKind, RecurrenceRule

__all__ = ["Period", "RecurrenceKind", "RecurrenceRule"]
