"""HabitPact habit accountability engine."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .engine import AccountabilityEngine

__all__ = ["AccountabilityEngine", "BaseConfig", "DevConfig"]
