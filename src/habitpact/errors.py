"""Error taxonomy shared by the accountability engine."""

from __future__ import annotations


class HabitPactError(Exception):
    """Base class for errors raised by the engine."""


class ConfigurationError(HabitPactError, ValueError):
    """A habit or policy is configured in a way the engine cannot evaluate.

    Raised for malformed recurrence rules (empty target-day set, ``n`` larger
    than the number of target days, unknown weekday codes) and invalid policy
    values. Always surfaced to the caller, never corrected silently.
    """


class InvalidArgument(HabitPactError, ValueError):
    """A required argument is missing or out of range."""


class NotFound(HabitPactError, LookupError):
    """A habit or user does not exist in the backing store."""


class ConflictError(HabitPactError):
    """Stored state kept changing under a conditional write until retries ran out."""


__all__ = ["ConfigurationError", "ConflictError", "HabitPactError", "InvalidArgument", "NotFound"]
