"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_positive(name: str, default: float) -> float:
    """Read a strictly positive number from the environment."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitPact"
    DB_FILENAME = "habitpact.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("HABITPACT_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("HABITPACT_DATABASE_URL", self._build_sqlite_url())
        self.DEFAULT_TIMEZONE = os.getenv("HABITPACT_DEFAULT_TIMEZONE", "UTC")

        # Accountability policy
        self.AT_RISK_LEAD_HOURS = _env_positive("HABITPACT_AT_RISK_LEAD_HOURS", 12)
        self.NUDGE_COOLDOWN_MINUTES = _env_positive("HABITPACT_NUDGE_COOLDOWN_MINUTES", 60)
        self.SHAME_DELTA = int(_env_positive("HABITPACT_SHAME_DELTA", 1))
        self.ANALYTICS_HOUR = int(os.getenv("HABITPACT_ANALYTICS_HOUR", "3"))
        if not 0 <= self.ANALYTICS_HOUR <= 23:
            raise ConfigurationError("HABITPACT_ANALYTICS_HOUR must be between 0 and 23.")

    @property
    def at_risk_lead_time(self) -> timedelta:
        return timedelta(hours=self.AT_RISK_LEAD_HOURS)

    @property
    def nudge_cooldown(self) -> timedelta:
        return timedelta(minutes=self.NUDGE_COOLDOWN_MINUTES)

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("HABITPACT_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration for the test-suite: isolated data directory, quiet console."""

    __test__ = False  # keep pytest from collecting this class

    DEBUG = False
    TESTING = True

    def __init__(self, data_dir: Path | str | None = None) -> None:
        self._data_dir_override = Path(data_dir) if data_dir is not None else None
        super().__init__()
        self.DATABASE_URL = self._build_sqlite_url()
        self.DEV_MODE = False

    def _resolve_data_dir(self) -> Path:
        if self._data_dir_override is None:
            return super()._resolve_data_dir()
        self._data_dir_override.mkdir(parents=True, exist_ok=True)
        return self._data_dir_override
