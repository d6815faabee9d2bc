"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from naaricare.config import Settings, get_settings
from naaricare.cycle.service import CycleTrackingService
from naaricare.screening.service import ScreeningService
from naaricare.services.assessment_store import SupabaseAssessmentStore
from naaricare.services.cycle_store import SupabaseCycleStore
from naaricare.services.health_chat import HealthChatClient
from naaricare.services.ml_predict import MLPredictionClient
from naaricare.services.roles import RoleCache


@dataclass(frozen=True)
class AuthContext:
    """Authenticated user context extracted from the Supabase JWT."""

    user_id: uuid.UUID  # auth.users.id (JWT "sub")
    email: str | None = None
    session_id: str | None = None


async def get_current_user(request: Request) -> AuthContext:
    """Extract the authenticated user from the request state.

    The Supabase auth middleware sets ``request.state.auth`` before routes run.
    """
    auth: AuthContext | None = getattr(request.state, "auth", None)
    if auth is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return auth


def get_cycle_service(settings: Annotated[Settings, Depends(get_settings)]) -> CycleTrackingService:
    return CycleTrackingService(
        SupabaseCycleStore(), history_limit=settings.cycle_history_limit
    )


def get_ml_client(settings: Annotated[Settings, Depends(get_settings)]) -> MLPredictionClient:
    return MLPredictionClient(settings)


def get_screening_service(
    ml: Annotated[MLPredictionClient, Depends(get_ml_client)],
) -> ScreeningService:
    return ScreeningService(ml, SupabaseAssessmentStore())


def get_chat_client(settings: Annotated[Settings, Depends(get_settings)]) -> HealthChatClient:
    return HealthChatClient(settings)


def get_role_cache(request: Request) -> RoleCache:
    return request.app.state.role_cache


# Annotated shortcuts for route signatures
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
AppSettings = Annotated[Settings, Depends(get_settings)]
CycleService = Annotated[CycleTrackingService, Depends(get_cycle_service)]
MLClient = Annotated[MLPredictionClient, Depends(get_ml_client)]
Screening = Annotated[ScreeningService, Depends(get_screening_service)]
ChatClient = Annotated[HealthChatClient, Depends(get_chat_client)]
AppRoleCache = Annotated[RoleCache, Depends(get_role_cache)]
