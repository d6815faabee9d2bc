"""Pydantic models for service status."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from naaricare.models.base import NaariCareBase


class ServiceStatus(str, Enum):
    healthy = "healthy"
    degraded = "degraded"


class ComponentCheck(NaariCareBase):
    name: str
    ok: bool
    latency_ms: float | None = None
    detail: str | None = None


class HealthRead(NaariCareBase):
    status: ServiceStatus
    service: str
    version: str
    environment: str
    checks: list[ComponentCheck]
    checked_at: datetime
