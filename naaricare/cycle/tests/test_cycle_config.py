"""Tests for cycle_config.yaml loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from naaricare.cycle.config_loader import (
    ConfigValidationError,
    CycleEngineConfig,
    _validate_and_build,
    get_cycle_config,
    load_cycle_config,
    reload_cycle_config,
)


class TestConfigLoading:
    """Tests for loading the bundled cycle_config.yaml."""

    def test_load_default_config(self, cycle_config: CycleEngineConfig) -> None:
        assert cycle_config.version == "1.0"
        assert cycle_config.max_records == 12
        assert cycle_config.default_cycle_length == 28
        assert cycle_config.default_period_length == 5

    def test_averaging(self, cycle_config: CycleEngineConfig) -> None:
        assert cycle_config.averaging.recency_decay == 0.8
        assert cycle_config.averaging.min_completed_cycles == 2

    def test_risk_thresholds(self, cycle_config: CycleEngineConfig) -> None:
        rk = cycle_config.risk
        assert rk.long_cycle_days == 35
        assert rk.high_variability_days == 7.0
        assert rk.flag_threshold == 40
        assert rk.long_cycle_points + rk.high_variability_points >= rk.flag_threshold

    def test_notification_offsets(self, cycle_config: CycleEngineConfig) -> None:
        assert cycle_config.notifications.default_reminder_days == [3, 2, 1]
        assert cycle_config.notifications.irregular_reminder_days == [5, 3, 1]

    def test_bundled_file_matches_dataclass_defaults(self, cycle_config: CycleEngineConfig) -> None:
        """The YAML and the code defaults should not drift apart."""
        defaults = CycleEngineConfig()
        assert cycle_config.risk == defaults.risk
        assert cycle_config.consultation == defaults.consultation
        assert cycle_config.correlation == defaults.correlation
        assert cycle_config.prediction == defaults.prediction

    def test_singleton(self) -> None:
        assert get_cycle_config() is get_cycle_config()


class TestConfigValidation:
    """Tests for config validation logic."""

    def test_empty_config_uses_defaults(self) -> None:
        config = _validate_and_build({})
        assert config.default_cycle_length == 28
        assert config.notifications.default_reminder_days == [3, 2, 1]

    def test_decay_out_of_range(self) -> None:
        with pytest.raises(ConfigValidationError, match="out of range"):
            _validate_and_build({"averaging": {"recency_decay": 1.5}})

    def test_min_completed_cycles_zero_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="min_completed_cycles must be at least 1"):
            _validate_and_build({"averaging": {"min_completed_cycles": 0}})

    def test_min_completed_cycles_negative_reported_once(self) -> None:
        with pytest.raises(ConfigValidationError, match="1 validation error"):
            _validate_and_build({"averaging": {"min_completed_cycles": -1}})

    def test_non_numeric_threshold(self) -> None:
        with pytest.raises(ConfigValidationError, match="risk.flag_threshold"):
            _validate_and_build({"risk": {"flag_threshold": "high"}})

    def test_negative_value(self) -> None:
        with pytest.raises(ConfigValidationError, match="must not be negative"):
            _validate_and_build({"consultation": {"missed_period_gap_days": -1}})

    def test_flag_threshold_above_max(self) -> None:
        with pytest.raises(ConfigValidationError, match="exceeds"):
            _validate_and_build({"risk": {"flag_threshold": 120}})

    def test_bad_reminder_offsets(self) -> None:
        with pytest.raises(ConfigValidationError, match="invalid offset"):
            _validate_and_build({"notifications": {"irregular_reminder_days": [5, 0]}})

    def test_section_must_be_mapping(self) -> None:
        with pytest.raises(ConfigValidationError, match="'risk' must be a mapping"):
            _validate_and_build({"risk": [1, 2, 3]})

    def test_errors_are_collected(self) -> None:
        raw = {
            "averaging": {"recency_decay": 0},
            "consultation": {"normal_min_days": 45},
            "history": {"max_records": 0},
        }
        with pytest.raises(ConfigValidationError, match="3 validation error"):
            _validate_and_build(raw)

    def test_hot_reload(self, tmp_path: Path) -> None:
        """reload_cycle_config() should replace the global singleton."""
        config_file = tmp_path / "cycle_config.yaml"
        config_file.write_text(
            'version: "2.0-test"\n'
            "defaults:\n"
            "  cycle_length_days: 30\n"
        )
        try:
            new_config = reload_cycle_config(path=config_file)
            assert new_config.version == "2.0-test"
            assert get_cycle_config().default_cycle_length == 30
        finally:
            reload_cycle_config()

    def test_reload_keeps_old_config_on_error(self, tmp_path: Path) -> None:
        before = get_cycle_config()
        config_file = tmp_path / "cycle_config.yaml"
        config_file.write_text("risk:\n  flag_threshold: nope\n")
        with pytest.raises(ConfigValidationError):
            reload_cycle_config(path=config_file)
        assert get_cycle_config() is before

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "cycle_config.yaml"
        config_file.write_text("risk: [unclosed\n")
        with pytest.raises(ConfigValidationError, match="YAML parse error"):
            load_cycle_config(path=config_file)

    def test_load_nonexistent_file_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_cycle_config(path=Path("/nonexistent/path/cycle_config.yaml"))
