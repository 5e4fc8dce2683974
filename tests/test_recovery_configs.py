"""Tests for recovery settings and saved preferences."""

import json

import pytest

from base_types import TriggerType, RecoveryStrategy, EffortLevel
from errors import ValidationError
from recovery_configs import (RecoveryConfigs, RecoverySettings, SeverityThresholds,
                              EffortThresholds, safe_minimum_for, save_settings, load_settings)


def test_safe_minimums():
    assert safe_minimum_for("female") == 1200
    assert safe_minimum_for("Male") == 1500
    with pytest.raises(ValidationError):
        safe_minimum_for("other")


@pytest.mark.parametrize("kwargs", [
    {"min_excess": -1},
    {"moderate": 1200, "severe": 1000},
    {"reference_target": 0},
    {"min_excess": 600, "moderate": 500},
])
def test_invalid_thresholds(kwargs):
    with pytest.raises(ValidationError):
        SeverityThresholds(**kwargs)


def test_effort_fractions():
    effort = EffortThresholds()
    assert effort.effort_for(99, 2000) == EffortLevel.MINIMAL
    assert effort.effort_for(100, 2000) == EffortLevel.MODERATE
    assert effort.effort_for(300, 2000) == EffortLevel.MODERATE
    assert effort.effort_for(301, 2000) == EffortLevel.CHALLENGING


@pytest.mark.parametrize("trigger_type,excess,strategy", [
    (TriggerType.MILD, 300, RecoveryStrategy.GENTLE_REBALANCING),
    (TriggerType.MODERATE, 700, RecoveryStrategy.GENTLE_REBALANCING),
    (TriggerType.MODERATE, 701, RecoveryStrategy.MODERATE_CORRECTION),
    (TriggerType.SEVERE, 1200, RecoveryStrategy.MAINTENANCE_WEEK),
])
def test_strategy_for(trigger_type, excess, strategy):
    assert RecoveryConfigs.strategy_for(RecoverySettings(), trigger_type, excess) == strategy


def test_thresholds_for_target():
    assert RecoveryConfigs.thresholds_for_target(RecoverySettings(), 3000) == SeverityThresholds()
    scaled = RecoveryConfigs.thresholds_for_target(RecoverySettings(scale_to_target=True), 1500)
    assert scaled.min_excess == 150


def test_settings_round_trip(tmp_path):
    path = tmp_path / "prefs.json"
    settings = RecoverySettings(
        enable_recovery_mode=False,
        severity=SeverityThresholds(min_excess=150, moderate=400, severe=900),
        week_starts_on=6
    )
    save_settings(settings, path)
    assert load_settings(path) == settings


def test_partial_preferences_merge_over_defaults(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text(json.dumps({"severity": {"severe": 1500}}))

    settings = load_settings(path)
    assert settings.severity.severe == 1500
    assert settings.severity.min_excess == 200
    assert settings.enable_recovery_mode is True


def test_missing_or_corrupt_preferences_use_defaults(tmp_path, caplog):
    assert load_settings(tmp_path / "missing.json") == RecoverySettings()

    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json")
    assert load_settings(corrupt) == RecoverySettings()
    assert "Could not read recovery preferences" in caplog.text


@pytest.mark.parametrize("contents", [
    {"severity": {"moderate": 900, "severe": 100}},
    {"severity": {"bogus": 1}},
    [1, 2],
    {"success_streak_minimum": "abc"},
    {"severity": {"min_excess": 800}},
])
def test_invalid_preferences_use_defaults(tmp_path, caplog, contents):
    path = tmp_path / "prefs.json"
    path.write_text(json.dumps(contents))

    assert load_settings(path) == RecoverySettings()
    assert "recovery preferences" in caplog.text
