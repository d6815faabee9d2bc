"""Cycle tracking endpoints: logging, settings, insights, prediction, reminders."""

from __future__ import annotations

import uuid
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from naaricare.cycle.notifications import display_text
from naaricare.cycle.prediction import current_phase, health_score
from naaricare.cycle.service import (
    CycleInputError,
    CycleRecordNotFound,
    DuplicateCycleRecord,
)
from naaricare.dependencies import CurrentUser, CycleService, MLClient
from naaricare.models.base import ErrorDetail
from naaricare.models.cycle import (
    CycleLogRead,
    CycleSettingsRead,
    CycleSettingsUpdate,
    InsightsRead,
    MLPredictionResponse,
    NotificationRead,
    PeriodEnd,
    PeriodStartCreate,
    PredictionResponse,
    SymptomLogCreate,
)

router = APIRouter(prefix="/cycle", tags=["cycle tracking"])

_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorDetail},
    404: {"model": ErrorDetail},
    409: {"model": ErrorDetail},
}


# ---------- Logs ----------

@router.get("/logs", response_model=list[CycleLogRead])
async def list_logs(
    user: CurrentUser,
    service: CycleService,
    limit: int = Query(default=12, ge=1, le=365),
) -> Any:
    return await service.list_records(user.user_id, limit)


@router.post("/periods", response_model=CycleLogRead, status_code=201, responses=_ERRORS)
async def log_period(user: CurrentUser, service: CycleService, body: PeriodStartCreate) -> Any:
    symptoms = body.model_dump(exclude_unset=True, exclude={"start_date"}, mode="json")
    try:
        return await service.log_period(user.user_id, body.start_date, symptoms)
    except DuplicateCycleRecord as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except CycleInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/periods/{record_id}/end", response_model=CycleLogRead, responses=_ERRORS)
async def end_period(
    record_id: uuid.UUID, user: CurrentUser, service: CycleService, body: PeriodEnd
) -> Any:
    try:
        return await service.end_period(user.user_id, record_id, body.end_date)
    except CycleRecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except CycleInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.put("/symptoms", response_model=CycleLogRead, responses=_ERRORS)
async def log_symptoms(user: CurrentUser, service: CycleService, body: SymptomLogCreate) -> Any:
    symptoms = body.model_dump(exclude_unset=True, exclude={"log_date"}, mode="json")
    try:
        return await service.log_symptoms(user.user_id, body.log_date, symptoms)
    except CycleInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/data", status_code=204)
async def delete_all_data(user: CurrentUser, service: CycleService) -> None:
    """Permanently remove every cycle entry and the settings row."""
    await service.delete_all_data(user.user_id)


# ---------- Settings ----------

@router.get("/settings", response_model=CycleSettingsRead)
async def get_settings(user: CurrentUser, service: CycleService) -> Any:
    return await service.ensure_settings(user.user_id)


@router.patch("/settings", response_model=CycleSettingsRead, responses=_ERRORS)
async def update_settings(
    user: CurrentUser, service: CycleService, body: CycleSettingsUpdate
) -> Any:
    updates = body.model_dump(exclude_unset=True, exclude_none=True)
    try:
        return await service.update_preferences(user.user_id, updates)
    except CycleInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


# ---------- Derived ----------

@router.get("/insights", response_model=InsightsRead)
async def get_insights(user: CurrentUser, service: CycleService) -> Any:
    analysis = await service.analyze_user(user.user_id)
    insights = analysis.insights
    return InsightsRead(
        **asdict(insights),
        health_score=health_score(insights),
        cycle_count=len(analysis.records),
    )


@router.get("/prediction", response_model=PredictionResponse)
async def get_prediction(user: CurrentUser, service: CycleService) -> Any:
    analysis = await service.analyze_user(user.user_id)
    phase = None
    last_start = analysis.records[0].start_day if analysis.records else None
    if last_start is not None:
        phase = current_phase(
            last_start,
            analysis.insights.average_cycle_length,
            analysis.insights.average_period_length,
        )
    return PredictionResponse(
        prediction=asdict(analysis.prediction) if analysis.prediction else None,
        current_phase=asdict(phase) if phase else None,
    )


@router.get("/prediction/ml", response_model=MLPredictionResponse)
async def get_ml_prediction(user: CurrentUser, service: CycleService, ml: MLClient) -> Any:
    """Remote model prediction, silently falling back to the local engine."""
    analysis = await service.analyze_user(user.user_id)
    prediction, meta = await ml.predict_cycle(analysis.records, analysis.prediction)
    return MLPredictionResponse(
        prediction=asdict(prediction) if prediction else None,
        used_api=meta.used_api,
        error=meta.error,
    )


@router.get("/notifications", response_model=list[NotificationRead])
async def get_notifications(user: CurrentUser, service: CycleService) -> Any:
    analysis = await service.analyze_user(user.user_id)
    return [
        NotificationRead(
            notify_date=entry.date,
            message=entry.message,
            days_before=entry.days_before,
            display_text=display_text(entry, analysis.settings),
        )
        for entry in analysis.notifications
    ]
