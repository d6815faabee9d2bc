"""PCOS / menopause screening orchestration.

Scores a questionnaire through the remote model (local rules on fallback)
and saves the outcome to ``health_assessments``.  The row's
``assessment_type`` records which path produced it (``pcos_ml_api`` vs
``pcos_ml_local``); the dashboard reads the latest row of either kind.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping, Protocol
from uuid import UUID

from naaricare.screening.scoring import (
    MenopauseInput,
    MenopauseResult,
    PCOSInput,
    PCOSResult,
)

if TYPE_CHECKING:
    from naaricare.services.ml_predict import MLPredictionClient, MLPredictionMeta

logger = logging.getLogger("naaricare.screening")

ASSESSMENT_KINDS = ("pcos", "menopause")

# risk_category values the dashboard maps back to a stage
_STAGE_CATEGORIES = {
    "Pre-Menopause": "low",
    "Peri-Menopause": "medium",
    "Post-Menopause": "high",
}


def _json_field(value: Any) -> dict[str, Any] | None:
    # asyncpg hands jsonb back as text unless a codec is registered
    if isinstance(value, str):
        value = json.loads(value)
    return value if isinstance(value, dict) else None


@dataclass
class AssessmentRecord:
    """One saved screening result (a ``health_assessments`` row)."""

    assessment_id: UUID | None
    assessment_type: str
    risk_score: float | None = None
    risk_category: str | None = None
    responses: dict[str, Any] | None = None
    recommendations: dict[str, Any] | None = None
    created_at: datetime | None = None

    @property
    def kind(self) -> str:
        return self.assessment_type.split("_ml_", 1)[0]

    @property
    def used_api(self) -> bool:
        return self.assessment_type.endswith("_ml_api")

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> AssessmentRecord:
        score = row.get("risk_score")
        return cls(
            assessment_id=row.get("id"),
            assessment_type=row["assessment_type"],
            risk_score=float(score) if score is not None else None,
            risk_category=row.get("risk_category"),
            responses=_json_field(row.get("responses")),
            recommendations=_json_field(row.get("recommendations")),
            created_at=row.get("created_at"),
        )


class AssessmentStore(Protocol):
    """Persistence the screening service depends on (see ``services.assessment_store``)."""

    async def insert_assessment(
        self, user_id: UUID, record: AssessmentRecord
    ) -> AssessmentRecord: ...

    async def latest_assessment(self, user_id: UUID, kind: str) -> AssessmentRecord | None:
        """Newest row whose type is ``{kind}_ml_api`` or ``{kind}_ml_local``."""
        ...

    async def list_assessments(self, user_id: UUID, limit: int) -> list[AssessmentRecord]: ...


@dataclass
class ScreeningOutcome:
    result: PCOSResult | MenopauseResult
    meta: MLPredictionMeta
    record: AssessmentRecord | None = None


def assessment_record(
    kind: str,
    answers: PCOSInput | MenopauseInput,
    result: PCOSResult | MenopauseResult,
    used_api: bool,
) -> AssessmentRecord:
    if isinstance(result, PCOSResult):
        category = result.severity
    else:
        category = _STAGE_CATEGORIES[result.stage]
    return AssessmentRecord(
        assessment_id=None,
        assessment_type=f"{kind}_ml_{'api' if used_api else 'local'}",
        risk_score=float(result.risk_percentage),
        risk_category=category,
        responses=asdict(answers),
        recommendations=asdict(result.recommendations),
    )


class ScreeningService:
    """Run PCOS and menopause screenings and keep their history.

    Usage::

        service = ScreeningService(MLPredictionClient(), SupabaseAssessmentStore())
        outcome = await service.assess_pcos(user_id, PCOSInput(age=27, ...))
        print(outcome.result.severity, outcome.meta.used_api)
    """

    def __init__(self, ml: MLPredictionClient, store: AssessmentStore) -> None:
        self._ml = ml
        self._store = store

    async def assess_pcos(
        self, user_id: UUID, answers: PCOSInput, save: bool = True
    ) -> ScreeningOutcome:
        result, meta = await self._ml.predict_pcos(answers)
        return await self._finish(user_id, "pcos", answers, result, meta, save)

    async def assess_menopause(
        self, user_id: UUID, answers: MenopauseInput, save: bool = True
    ) -> ScreeningOutcome:
        result, meta = await self._ml.predict_menopause(answers)
        return await self._finish(user_id, "menopause", answers, result, meta, save)

    async def latest(self, user_id: UUID, kind: str) -> AssessmentRecord | None:
        if kind not in ASSESSMENT_KINDS:
            raise ValueError(f"Unknown assessment kind: {kind}")
        return await self._store.latest_assessment(user_id, kind)

    async def history(self, user_id: UUID, limit: int = 10) -> list[AssessmentRecord]:
        return await self._store.list_assessments(user_id, limit)

    async def _finish(
        self,
        user_id: UUID,
        kind: str,
        answers: PCOSInput | MenopauseInput,
        result: PCOSResult | MenopauseResult,
        meta: MLPredictionMeta,
        save: bool,
    ) -> ScreeningOutcome:
        record = None
        if save:
            record = await self._store.insert_assessment(
                user_id, assessment_record(kind, answers, result, meta.used_api)
            )
            logger.info(
                "Saved %s assessment for user %s (used_api=%s)", kind, user_id, meta.used_api
            )
        return ScreeningOutcome(result=result, meta=meta, record=record)
