"""
tests/unit/test_config.py — Unit tests for config.py and the app factory's
config selection.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from settleup import config
from settleup.app import create_app
from settleup.config import (
    _first_non_empty_env,
    _parse_int_env,
    config_by_name,
    validate_production_config,
)


def _fake_app(**values):
    return SimpleNamespace(config=values)


def test_first_non_empty_env_skips_blank(monkeypatch):
    monkeypatch.setenv("SETTLEUP_A", "")
    monkeypatch.setenv("SETTLEUP_B", "value")

    assert _first_non_empty_env("SETTLEUP_A", "SETTLEUP_B", default="x") == "value"


def test_first_non_empty_env_default(monkeypatch):
    monkeypatch.delenv("SETTLEUP_MISSING", raising=False)
    assert _first_non_empty_env("SETTLEUP_MISSING", default="fallback") == "fallback"


def test_parse_int_env(monkeypatch):
    monkeypatch.setenv("SETTLEUP_INT", "250000")
    assert _parse_int_env("SETTLEUP_INT", default=1) == 250000

    monkeypatch.setenv("SETTLEUP_INT", "lots")
    assert _parse_int_env("SETTLEUP_INT", default=7) == 7


def test_testing_config_pins_defaults():
    assert config.TestingConfig.BIOMETRIC_THRESHOLD_PAISA == 500000
    assert config.TestingConfig.DEFAULT_CURRENCY == "INR"
    assert config.TestingConfig.TESTING is True


def test_config_by_name():
    assert set(config_by_name) == {"development", "testing", "production"}


def test_validate_production_config_accepts_defaults():
    validate_production_config(_fake_app(BIOMETRIC_THRESHOLD_PAISA=500000, DEFAULT_CURRENCY="INR"))


@pytest.mark.parametrize("threshold", [0, -1])
def test_validate_production_config_rejects_threshold(threshold):
    with pytest.raises(ValueError, match="BIOMETRIC_THRESHOLD_PAISA"):
        validate_production_config(
            _fake_app(BIOMETRIC_THRESHOLD_PAISA=threshold, DEFAULT_CURRENCY="INR"),
        )


def test_validate_production_config_rejects_currency():
    with pytest.raises(ValueError, match="DEFAULT_CURRENCY"):
        validate_production_config(
            _fake_app(BIOMETRIC_THRESHOLD_PAISA=500000, DEFAULT_CURRENCY="XYZ"),
        )


def test_create_app_testing():
    app = create_app("testing")

    assert app.config["TESTING"] is True
    assert app.config["BIOMETRIC_THRESHOLD_PAISA"] == 500000
    assert "balances" in app.blueprints
    assert "settlements" in app.blueprints
