"""Cycle records and per-user cycle settings as seen by the engine.

These are plain dataclasses so the analytics code stays independent of the
database driver and of the API schemas.  ``from_row`` accepts anything
mapping-like (``asyncpg.Record``, ``dict``) with the ``cycle_logs`` /
``user_cycle_settings`` column names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

# Allowed vocabularies for ordinal / categorical symptom fields
FLOW_LEVELS = ("light", "moderate", "heavy", "very_heavy")
SEVERITY_LEVELS = ("none", "mild", "moderate", "severe")
MOODS = ("happy", "neutral", "sad", "irritable", "anxious")

_SEVERITY_FIELDS = ("cramps", "acne", "fatigue", "bloating", "headache", "breast_tenderness")

# Only these keys may be written by period / symptom logging
SYMPTOM_FIELDS: tuple[str, ...] = (
    "flow_intensity",
    "cramps",
    "mood",
    "acne",
    "fatigue",
    "bloating",
    "headache",
    "breast_tenderness",
    "stress_level",
    "sleep_hours",
    "notes",
)

# Preference fields a user may change directly; the cached averages are not among them
PREFERENCE_FIELDS: tuple[str, ...] = (
    "notification_enabled",
    "reminder_days",
    "notification_time",
    "hide_notification_text",
    "allow_advanced_analysis",
)

DEFAULT_REMINDER_DAYS = [3, 2, 1]
DEFAULT_NOTIFICATION_TIME = time(9, 0)


def parse_day(value: date | datetime | str | None) -> date | None:
    """Coerce a date-like value to ``date``; return None if it cannot be parsed."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _as_float(value: Any) -> float | None:
    return None if value is None else float(value)


@dataclass
class CycleRecord:
    """One logged period start (or a symptom-only day).

    Attributes:
        record_id:      Row id in ``cycle_logs`` (None before insert).
        start_date:     Period start / log date.  Kept as given so a row with
                        a malformed date still reaches the engine.
        end_date:       Last day of bleeding, once the user ends the period.
        cycle_length:   Days since the previous record's start date.
        period_length:  ``end_date - start_date + 1``.
    """

    record_id: UUID | None
    start_date: date | str
    end_date: date | None = None
    cycle_length: int | None = None
    period_length: int | None = None
    flow_intensity: str | None = None
    cramps: str | None = None
    mood: str | None = "neutral"
    acne: str | None = None
    fatigue: str | None = None
    bloating: str | None = None
    headache: str | None = None
    breast_tenderness: str | None = None
    stress_level: int | None = None
    sleep_hours: float | None = None
    notes: str | None = None

    @property
    def start_day(self) -> date | None:
        return parse_day(self.start_date)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> CycleRecord:
        return cls(
            record_id=row.get("id"),
            start_date=row["start_date"],
            end_date=parse_day(row.get("end_date")),
            cycle_length=row.get("cycle_length"),
            period_length=row.get("period_length"),
            flow_intensity=row.get("flow_intensity"),
            cramps=row.get("cramps"),
            mood=row.get("mood"),
            acne=row.get("acne"),
            fatigue=row.get("fatigue"),
            bloating=row.get("bloating"),
            headache=row.get("headache"),
            breast_tenderness=row.get("breast_tenderness"),
            stress_level=row.get("stress_level"),
            sleep_hours=_as_float(row.get("sleep_hours")),
            notes=row.get("notes"),
        )


@dataclass
class CycleSettings:
    """Per-user notification preferences plus cached engine outputs."""

    user_id: UUID | None = None
    notification_enabled: bool = True
    reminder_days: list[int] | None = field(default_factory=lambda: list(DEFAULT_REMINDER_DAYS))
    notification_time: time | None = DEFAULT_NOTIFICATION_TIME
    hide_notification_text: bool = False
    allow_advanced_analysis: bool = True
    average_cycle_length: int | None = None
    average_period_length: int | None = None
    cycle_variability: float | None = None
    pcos_risk_flag: bool = False
    pcos_risk_score: int | None = None
    last_calculated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> CycleSettings:
        return cls(
            user_id=row.get("user_id"),
            notification_enabled=bool(row.get("notification_enabled", True)),
            reminder_days=list(row["reminder_days"]) if row.get("reminder_days") is not None else None,
            notification_time=row.get("notification_time"),
            hide_notification_text=bool(row.get("hide_notification_text") or False),
            allow_advanced_analysis=bool(row.get("allow_advanced_analysis", True)),
            average_cycle_length=row.get("average_cycle_length"),
            average_period_length=row.get("average_period_length"),
            cycle_variability=_as_float(row.get("cycle_variability")),
            pcos_risk_flag=bool(row.get("pcos_risk_flag") or False),
            pcos_risk_score=row.get("pcos_risk_score"),
            last_calculated_at=row.get("last_calculated_at"),
        )


def symptom_problems(fields: Mapping[str, Any]) -> list[str]:
    """Return a list of problems with whitelisted symptom values (empty if valid)."""
    problems: list[str] = []
    for key, value in fields.items():
        if value is None:
            continue
        if key == "flow_intensity" and value not in FLOW_LEVELS:
            problems.append(f"flow_intensity must be one of {', '.join(FLOW_LEVELS)}")
        elif key in _SEVERITY_FIELDS and value not in SEVERITY_LEVELS:
            problems.append(f"{key} must be one of {', '.join(SEVERITY_LEVELS)}")
        elif key == "mood" and value not in MOODS:
            problems.append(f"mood must be one of {', '.join(MOODS)}")
        elif key == "stress_level":
            if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
                problems.append("stress_level must be an integer between 1 and 5")
        elif key == "sleep_hours":
            if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)) or not 0 <= value <= 12:
                problems.append("sleep_hours must be between 0 and 12")
        elif key == "notes" and not isinstance(value, str):
            problems.append("notes must be text")
    return problems


def clean_symptoms(fields: Mapping[str, Any] | None) -> dict[str, Any]:
    """Keep only whitelisted symptom keys; unknown keys are dropped silently."""
    if not fields:
        return {}
    return {key: fields[key] for key in SYMPTOM_FIELDS if key in fields}
