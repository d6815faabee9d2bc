"""Load and validate the cycle analytics configuration.

The config lives in ``cycle_config.yaml`` alongside this module.  It is
loaded once and cached.  Call ``reload_cycle_config()`` to re-read it from
disk without restarting the API.

Usage::

    from naaricare.cycle.config_loader import get_cycle_config

    config = get_cycle_config()
    config.risk.flag_threshold            # 40
    config.correlation.min_qualifying     # 3
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger("naaricare.cycle.config")

_CONFIG_PATH = Path(__file__).parent / "cycle_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class AveragingConfig:
    """Weighted cycle-length averaging."""

    recency_decay: float = 0.8
    min_completed_cycles: int = 2


@dataclass
class RiskConfig:
    """Additive pattern-risk heuristic (non-diagnostic)."""

    long_cycle_days: int = 35
    long_cycle_min_count: int = 3
    long_cycle_points: int = 30
    high_variability_days: float = 7.0
    high_variability_points: int = 20
    symptom_min_count: int = 3
    acne_points: int = 15
    fatigue_points: int = 10
    flag_threshold: int = 40
    max_score: int = 100


@dataclass
class ConsultationConfig:
    """Rules that add a 'talk to a doctor' reason."""

    normal_min_days: int = 21
    normal_max_days: int = 40
    out_of_range_min_count: int = 2
    missed_period_gap_days: int = 60
    min_reasons: int = 2


@dataclass
class CorrelationConfig:
    """Stress / sleep vs. cycle length correlation thresholds."""

    min_qualifying: int = 3
    min_matching: int = 2
    delay_margin_days: float = 3.0
    high_stress_level: int = 4
    low_sleep_hours: float = 6.0


@dataclass
class PredictionConfig:
    """Confidence tier cut-offs (number of completed cycles)."""

    high_confidence_cycles: int = 6
    medium_confidence_cycles: int = 3


@dataclass
class NotificationConfig:
    """Reminder offsets in days before the predicted start."""

    default_reminder_days: list[int] = field(default_factory=lambda: [3, 2, 1])
    irregular_reminder_days: list[int] = field(default_factory=lambda: [5, 3, 1])


@dataclass
class CycleEngineConfig:
    """Complete, validated cycle analytics configuration.

    This is the single in-memory representation of cycle_config.yaml.  The
    insight, prediction and notification engines all read from it.

    Attributes:
        version:              Config schema version string.
        max_records:          History window the API loads per user.
        default_cycle_length: Cycle length reported on insufficient data.
        default_period_length: Period length reported when none is logged.
        regular_max_std_days: Variability strictly below this is regular.
        common_symptom_min_count: Occurrences needed to list a symptom.
    """

    version: str = "1.0"
    max_records: int = 12
    default_cycle_length: int = 28
    default_period_length: int = 5
    regular_max_std_days: float = 4.0
    common_symptom_min_count: int = 2
    averaging: AveragingConfig = field(default_factory=AveragingConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    consultation: ConsultationConfig = field(default_factory=ConsultationConfig)
    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)
    prediction: PredictionConfig = field(default_factory=PredictionConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when cycle_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    import yaml  # pyyaml

    if not path.exists():
        raise FileNotFoundError(f"Cycle config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> CycleEngineConfig:
    """Validate the raw YAML dict and construct a CycleEngineConfig.

    Missing keys fall back to the dataclass defaults.  Every type or range
    problem is collected and reported together.

    Raises:
        ConfigValidationError: If any value is invalid.
    """
    errors: list[str] = []

    def _section(name: str) -> dict:
        value = raw.get(name) or {}
        if not isinstance(value, dict):
            errors.append(f"'{name}' must be a mapping")
            return {}
        return value

    def _number(d: dict, key: str, section: str, default: Any, cast: type = int) -> Any:
        if key not in d:
            return default
        try:
            value = cast(d[key])
        except (TypeError, ValueError):
            errors.append(f"{section}.{key} must be a number, got {d[key]!r}")
            return default
        if value < 0:
            errors.append(f"{section}.{key} = {value} must not be negative")
        return value

    def _day_list(d: dict, key: str, section: str, default: list[int]) -> list[int]:
        if key not in d:
            return list(default)
        value = d[key]
        if not isinstance(value, list) or not value:
            errors.append(f"{section}.{key} must be a non-empty list of day offsets")
            return list(default)
        days: list[int] = []
        for item in value:
            if isinstance(item, bool) or not isinstance(item, int) or item < 1:
                errors.append(f"{section}.{key} contains invalid offset {item!r}")
                continue
            days.append(item)
        return days

    version = str(raw.get("version", "1.0"))

    # ── History / defaults ──
    history = _section("history")
    defaults = _section("defaults")
    max_records = _number(history, "max_records", "history", 12)
    if max_records == 0:
        errors.append("history.max_records must be at least 1")

    # ── Averaging ──
    av_raw = _section("averaging")
    averaging = AveragingConfig(
        recency_decay=_number(av_raw, "recency_decay", "averaging", 0.8, float),
        min_completed_cycles=_number(av_raw, "min_completed_cycles", "averaging", 2),
    )
    if not (0.0 < averaging.recency_decay <= 1.0):
        errors.append(
            f"averaging.recency_decay = {averaging.recency_decay} is out of range (0.0, 1.0]"
        )
    if averaging.min_completed_cycles == 0:
        errors.append("averaging.min_completed_cycles must be at least 1")

    # ── Risk ──
    rk_raw = _section("risk")
    risk = RiskConfig(
        long_cycle_days=_number(rk_raw, "long_cycle_days", "risk", 35),
        long_cycle_min_count=_number(rk_raw, "long_cycle_min_count", "risk", 3),
        long_cycle_points=_number(rk_raw, "long_cycle_points", "risk", 30),
        high_variability_days=_number(rk_raw, "high_variability_days", "risk", 7.0, float),
        high_variability_points=_number(rk_raw, "high_variability_points", "risk", 20),
        symptom_min_count=_number(rk_raw, "symptom_min_count", "risk", 3),
        acne_points=_number(rk_raw, "acne_points", "risk", 15),
        fatigue_points=_number(rk_raw, "fatigue_points", "risk", 10),
        flag_threshold=_number(rk_raw, "flag_threshold", "risk", 40),
        max_score=_number(rk_raw, "max_score", "risk", 100),
    )
    if risk.flag_threshold > risk.max_score:
        errors.append(
            f"risk.flag_threshold ({risk.flag_threshold}) exceeds risk.max_score ({risk.max_score})"
        )

    # ── Consultation ──
    cs_raw = _section("consultation")
    consultation = ConsultationConfig(
        normal_min_days=_number(cs_raw, "normal_min_days", "consultation", 21),
        normal_max_days=_number(cs_raw, "normal_max_days", "consultation", 40),
        out_of_range_min_count=_number(cs_raw, "out_of_range_min_count", "consultation", 2),
        missed_period_gap_days=_number(cs_raw, "missed_period_gap_days", "consultation", 60),
        min_reasons=_number(cs_raw, "min_reasons", "consultation", 2),
    )
    if consultation.normal_min_days >= consultation.normal_max_days:
        errors.append("consultation.normal_min_days must be below normal_max_days")

    # ── Correlation ──
    cr_raw = _section("correlation")
    correlation = CorrelationConfig(
        min_qualifying=_number(cr_raw, "min_qualifying", "correlation", 3),
        min_matching=_number(cr_raw, "min_matching", "correlation", 2),
        delay_margin_days=_number(cr_raw, "delay_margin_days", "correlation", 3.0, float),
        high_stress_level=_number(cr_raw, "high_stress_level", "correlation", 4),
        low_sleep_hours=_number(cr_raw, "low_sleep_hours", "correlation", 6.0, float),
    )

    # ── Prediction ──
    pr_raw = _section("prediction")
    prediction = PredictionConfig(
        high_confidence_cycles=_number(pr_raw, "high_confidence_cycles", "prediction", 6),
        medium_confidence_cycles=_number(pr_raw, "medium_confidence_cycles", "prediction", 3),
    )

    # ── Notifications ──
    nt_raw = _section("notifications")
    notifications = NotificationConfig(
        default_reminder_days=_day_list(
            nt_raw, "default_reminder_days", "notifications", [3, 2, 1]
        ),
        irregular_reminder_days=_day_list(
            nt_raw, "irregular_reminder_days", "notifications", [5, 3, 1]
        ),
    )

    sy_raw = _section("symptoms")
    regularity = _section("regularity")

    config = CycleEngineConfig(
        version=version,
        max_records=max_records,
        default_cycle_length=_number(defaults, "cycle_length_days", "defaults", 28),
        default_period_length=_number(defaults, "period_length_days", "defaults", 5),
        regular_max_std_days=_number(regularity, "max_std_days", "regularity", 4.0, float),
        common_symptom_min_count=_number(sy_raw, "common_min_count", "symptoms", 2),
        averaging=averaging,
        risk=risk,
        consultation=consultation,
        correlation=correlation,
        prediction=prediction,
        notifications=notifications,
        _raw=raw,
    )

    if config.default_cycle_length == 0 or config.default_period_length == 0:
        errors.append("defaults.cycle_length_days and period_length_days must be positive")

    if errors:
        raise ConfigValidationError(
            f"cycle_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return config


def load_cycle_config(path: Path | None = None) -> CycleEngineConfig:
    """Load and validate the cycle config from disk.

    Args:
        path: Override path to YAML. Uses the bundled cycle_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded cycle config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with reload support
# ---------------------------------------------------------------------------

_config: CycleEngineConfig | None = None
_config_lock = threading.Lock()


def get_cycle_config() -> CycleEngineConfig:
    """Return the global CycleEngineConfig, loading it on first call."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_cycle_config()
    return _config


def reload_cycle_config(path: Path | None = None) -> CycleEngineConfig:
    """Reload the cycle config from disk and replace the global singleton.

    If validation fails the old config is retained and the error re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_cycle_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded cycle config: %s → %s", old_version, new_config.version)
    return new_config
