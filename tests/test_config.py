"""Tests for environment-driven configuration."""

from __future__ import annotations

from datetime import timedelta

import pytest

from habitpact.config import BaseConfig, TestConfig
from habitpact.errors import ConfigurationError

ENV_VARS = (
    "HABITPACT_DATA_DIR",
    "HABITPACT_DATABASE_URL",
    "HABITPACT_DEV_MODE",
    "HABITPACT_AT_RISK_LEAD_HOURS",
    "HABITPACT_NUDGE_COOLDOWN_MINUTES",
    "HABITPACT_SHAME_DELTA",
    "HABITPACT_DEFAULT_TIMEZONE",
    "HABITPACT_ANALYTICS_HOUR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HABITPACT_DATA_DIR", str(tmp_path / "data"))


def test_defaults(tmp_path):
    config = BaseConfig()
    assert config.DATA_DIR == (tmp_path / "data").resolve()
    assert config.DATABASE_URL.endswith("habitpact.db")
    assert config.DEV_MODE is True
    assert config.at_risk_lead_time == timedelta(hours=12)
    assert config.nudge_cooldown == timedelta(minutes=60)
    assert config.SHAME_DELTA == 1
    assert config.ANALYTICS_HOUR == 3
    assert config.DEFAULT_TIMEZONE == "UTC"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("HABITPACT_AT_RISK_LEAD_HOURS", "6")
    monkeypatch.setenv("HABITPACT_NUDGE_COOLDOWN_MINUTES", "240")
    monkeypatch.setenv("HABITPACT_DEV_MODE", "off")
    monkeypatch.setenv("HABITPACT_DATABASE_URL", "sqlite:///:memory:")

    config = BaseConfig()
    assert config.at_risk_lead_time == timedelta(hours=6)
    assert config.nudge_cooldown == timedelta(minutes=240)
    assert config.DEV_MODE is False
    assert config.DATABASE_URL == "sqlite:///:memory:"
    assert config.sqlalchemy_engine_options()["connect_args"] == {"check_same_thread": False}


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("HABITPACT_NUDGE_COOLDOWN_MINUTES", "0"),
        ("HABITPACT_AT_RISK_LEAD_HOURS", "-1"),
        ("HABITPACT_SHAME_DELTA", "lots"),
        ("HABITPACT_ANALYTICS_HOUR", "24"),
    ],
)
def test_invalid_policy_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        BaseConfig()


def test_test_config_uses_given_directory(tmp_path):
    config = TestConfig(data_dir=tmp_path / "isolated")
    assert config.DATA_DIR == tmp_path / "isolated"
    assert config.DATABASE_URL == f"sqlite:///{tmp_path / 'isolated' / 'habitpact.db'}"
    assert config.DEV_MODE is False
