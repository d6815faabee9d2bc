"""Pydantic models for PCOS and menopause screening."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, model_validator

from naaricare.models.base import NaariCareBase


class PCOSSeverity(str, Enum):
    none = "none"
    low = "low"
    medium = "medium"
    high = "high"


class MenopauseStage(str, Enum):
    pre = "Pre-Menopause"
    peri = "Peri-Menopause"
    post = "Post-Menopause"


class AssessmentKind(str, Enum):
    pcos = "pcos"
    menopause = "menopause"


# ---------- Requests ----------

class PCOSAssessmentCreate(NaariCareBase):
    age: float = Field(ge=10, le=100)
    height: float = Field(gt=0, le=250, description="cm")
    weight: float = Field(gt=0, le=400, description="kg")
    bmi: float | None = Field(default=None, gt=0, description="Derived from height/weight if omitted")
    cycle_regular: bool
    cycle_length: int = Field(ge=0, le=365)
    weight_gain: bool = False
    hair_growth: bool = False
    skin_darkening: bool = False
    hair_loss: bool = False
    pimples: bool = False
    fast_food: bool = False
    regular_exercise: bool = False
    follicle_left: int = Field(default=0, ge=0)
    follicle_right: int = Field(default=0, ge=0)
    endometrium: float = Field(default=0.0, ge=0)
    lh: float = Field(default=0.0, ge=0)
    fsh: float = Field(default=0.0, ge=0)
    testosterone: float = Field(default=0.0, ge=0)
    insulin: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def _fill_bmi(self) -> PCOSAssessmentCreate:
        if self.bmi is None:
            self.bmi = round(self.weight / (self.height / 100) ** 2, 1)
        return self


class MenopauseAssessmentCreate(NaariCareBase):
    age: float = Field(ge=10, le=100)
    estrogen_level: float = Field(ge=0, description="pg/mL")
    fsh_level: float = Field(ge=0, description="mIU/mL")
    years_since_last_period: float = Field(default=0.0, ge=0)
    irregular_periods: bool = False
    missed_periods: bool = False
    hot_flashes: bool = False
    night_sweats: bool = False
    sleep_problems: bool = False
    vaginal_dryness: bool = False
    joint_pain: bool = False


# ---------- Responses ----------

class RecommendationsRead(NaariCareBase):
    diet: list[str]
    exercise: list[str]
    lifestyle: list[str]
    needs_doctor: bool


class PCOSBreakdownRead(NaariCareBase):
    cycle_score: float
    hormonal_score: float
    ultrasound_score: float
    metabolic_score: float


class MenopauseBreakdownRead(NaariCareBase):
    age_score: float
    hormone_score: float
    symptom_score: float
    period_score: float


class PCOSAssessmentRead(NaariCareBase):
    has_pcos: bool
    risk_percentage: int
    severity: PCOSSeverity
    breakdown: PCOSBreakdownRead
    recommendations: RecommendationsRead
    used_api: bool
    error: str | None = None
    assessment_id: uuid.UUID | None = None


class MenopauseAssessmentRead(NaariCareBase):
    stage: MenopauseStage
    risk_percentage: int
    has_menopause_symptoms: bool
    breakdown: MenopauseBreakdownRead
    recommendations: RecommendationsRead
    used_api: bool
    error: str | None = None
    assessment_id: uuid.UUID | None = None


class AssessmentRecordRead(NaariCareBase):
    assessment_id: uuid.UUID | None
    assessment_type: str
    kind: str
    used_api: bool
    risk_score: float | None = None
    risk_category: str | None = None
    responses: dict[str, Any] | None = None
    recommendations: dict[str, Any] | None = None
    created_at: datetime | None = None
