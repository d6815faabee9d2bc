"""PCOS and menopause screening endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from naaricare.dependencies import CurrentUser, Screening
from naaricare.models.assessments import (
    AssessmentKind,
    AssessmentRecordRead,
    MenopauseAssessmentCreate,
    MenopauseAssessmentRead,
    PCOSAssessmentCreate,
    PCOSAssessmentRead,
)
from naaricare.models.base import ErrorDetail
from naaricare.screening.scoring import MenopauseInput, PCOSInput
from naaricare.screening.service import ScreeningOutcome

router = APIRouter(prefix="/assessments", tags=["screening"])


def _outcome_body(outcome: ScreeningOutcome) -> dict[str, Any]:
    return {
        **asdict(outcome.result),
        "used_api": outcome.meta.used_api,
        "error": outcome.meta.error,
        "assessment_id": outcome.record.assessment_id if outcome.record else None,
    }


@router.post("/pcos", response_model=PCOSAssessmentRead)
async def assess_pcos(
    user: CurrentUser,
    screening: Screening,
    body: PCOSAssessmentCreate,
    save: bool = Query(default=True, description="Keep the result in the assessment history"),
) -> Any:
    """Screen for PCOS with the remote model, falling back to the local score."""
    outcome = await screening.assess_pcos(
        user.user_id, PCOSInput(**body.model_dump()), save=save
    )
    return PCOSAssessmentRead(**_outcome_body(outcome))


@router.post("/menopause", response_model=MenopauseAssessmentRead)
async def assess_menopause(
    user: CurrentUser,
    screening: Screening,
    body: MenopauseAssessmentCreate,
    save: bool = Query(default=True, description="Keep the result in the assessment history"),
) -> Any:
    outcome = await screening.assess_menopause(
        user.user_id, MenopauseInput(**body.model_dump()), save=save
    )
    return MenopauseAssessmentRead(**_outcome_body(outcome))


@router.get("", response_model=list[AssessmentRecordRead])
async def list_assessments(
    user: CurrentUser,
    screening: Screening,
    limit: int = Query(default=10, ge=1, le=100),
) -> Any:
    records = await screening.history(user.user_id, limit)
    return [AssessmentRecordRead.model_validate(r) for r in records]


@router.get(
    "/{kind}/latest",
    response_model=AssessmentRecordRead,
    responses={404: {"model": ErrorDetail}},
)
async def latest_assessment(kind: AssessmentKind, user: CurrentUser, screening: Screening) -> Any:
    record = await screening.latest(user.user_id, kind.value)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No {kind.value} assessment yet")
    return AssessmentRecordRead.model_validate(record)
