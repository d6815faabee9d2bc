"""Pydantic models for cycle logging, settings and derived analytics."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from enum import Enum

from pydantic import Field

from naaricare.models.base import NaariCareBase


# ---------- Enums ----------

class FlowIntensity(str, Enum):
    light = "light"
    moderate = "moderate"
    heavy = "heavy"
    very_heavy = "very_heavy"


class SymptomSeverity(str, Enum):
    none = "none"
    mild = "mild"
    moderate = "moderate"
    severe = "severe"


class Mood(str, Enum):
    happy = "happy"
    neutral = "neutral"
    sad = "sad"
    irritable = "irritable"
    anxious = "anxious"


class ConfidenceLevel(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class CyclePhaseName(str, Enum):
    menstrual = "menstrual"
    follicular = "follicular"
    ovulation = "ovulation"
    luteal = "luteal"


# ---------- Logging ----------

class SymptomFields(NaariCareBase):
    flow_intensity: FlowIntensity | None = None
    cramps: SymptomSeverity | None = None
    mood: Mood | None = None
    acne: SymptomSeverity | None = None
    fatigue: SymptomSeverity | None = None
    bloating: SymptomSeverity | None = None
    headache: SymptomSeverity | None = None
    breast_tenderness: SymptomSeverity | None = None
    stress_level: int | None = Field(default=None, ge=1, le=5)
    sleep_hours: float | None = Field(default=None, ge=0, le=12)
    notes: str | None = Field(default=None, max_length=2000)


class PeriodStartCreate(SymptomFields):
    start_date: date


class PeriodEnd(NaariCareBase):
    end_date: date


class SymptomLogCreate(SymptomFields):
    log_date: date


class CycleLogRead(SymptomFields):
    record_id: uuid.UUID | None
    start_date: date
    end_date: date | None = None
    cycle_length: int | None = None
    period_length: int | None = None


# ---------- Settings ----------

class CycleSettingsRead(NaariCareBase):
    notification_enabled: bool
    reminder_days: list[int] | None = None
    notification_time: time | None = None
    hide_notification_text: bool
    allow_advanced_analysis: bool
    average_cycle_length: int | None = None
    average_period_length: int | None = None
    cycle_variability: float | None = None
    pcos_risk_flag: bool
    pcos_risk_score: int | None = None
    last_calculated_at: datetime | None = None


class CycleSettingsUpdate(NaariCareBase):
    notification_enabled: bool | None = None
    reminder_days: list[int] | None = Field(default=None, min_length=1, max_length=7)
    notification_time: time | None = None
    hide_notification_text: bool | None = None
    allow_advanced_analysis: bool | None = None


# ---------- Derived ----------

class InsightsRead(NaariCareBase):
    average_cycle_length: int
    average_period_length: int
    cycle_variability: float
    is_regular: bool
    pcos_risk_flag: bool
    pcos_risk_score: int
    stress_correlation: str | None = None
    sleep_correlation: str | None = None
    common_symptoms: list[str] = Field(default_factory=list)
    needs_doctor_consultation: bool
    consultation_reasons: list[str] = Field(default_factory=list)
    health_score: int
    cycle_count: int


class CyclePhaseRead(NaariCareBase):
    name: CyclePhaseName
    day_of_cycle: int
    cycle_progress: float
    next_phase_date: date


class PredictionRead(NaariCareBase):
    predicted_start_date: date
    predicted_end_date: date
    confidence_level: ConfidenceLevel
    days_until: int
    based_on_cycles: int


class PredictionResponse(NaariCareBase):
    prediction: PredictionRead | None = None
    current_phase: CyclePhaseRead | None = None


class MLPredictionResponse(NaariCareBase):
    prediction: PredictionRead | None = None
    used_api: bool
    error: str | None = None


class NotificationRead(NaariCareBase):
    notify_date: date = Field(alias="date")
    message: str
    days_before: int
    display_text: str
