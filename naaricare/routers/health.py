"""Service status endpoint. Public, no auth required.

Reports one entry per dependency: the Postgres pool with the round-trip
time of ``SELECT 1``, the cycle engine thresholds file, and whether remote
scoring is configured.  Any failed check makes the service ``degraded``.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter

from naaricare.config import Settings, get_settings
from naaricare.cycle.config_loader import ConfigValidationError, get_cycle_config
from naaricare.models.system import ComponentCheck, HealthRead, ServiceStatus
from naaricare.services.supabase import get_pool

router = APIRouter(tags=["system"])
logger = logging.getLogger("naaricare.health")


async def _check_database() -> ComponentCheck:
    started = time.perf_counter()
    try:
        async with get_pool().acquire() as conn:
            await conn.fetchval("SELECT 1")
    except Exception as exc:
        logger.warning("Database check failed: %s", exc)
        return ComponentCheck(name="database", ok=False, detail=type(exc).__name__)
    elapsed = (time.perf_counter() - started) * 1000
    return ComponentCheck(name="database", ok=True, latency_ms=round(elapsed, 2))


def _check_cycle_config() -> ComponentCheck:
    try:
        config = get_cycle_config()
    except (ConfigValidationError, OSError) as exc:
        logger.warning("Cycle engine config unusable: %s", exc)
        return ComponentCheck(name="cycle_config", ok=False, detail=str(exc).splitlines()[0])
    return ComponentCheck(name="cycle_config", ok=True, detail=f"v{config.version}")


def _check_ml(settings: Settings) -> ComponentCheck:
    if settings.ml_api_url:
        return ComponentCheck(name="ml_scoring", ok=True, detail="remote")
    return ComponentCheck(name="ml_scoring", ok=True, detail="local fallback only")


@router.get("/health", response_model=HealthRead)
async def health_check() -> HealthRead:
    settings = get_settings()
    checks = [await _check_database(), _check_cycle_config(), _check_ml(settings)]
    return HealthRead(
        status=ServiceStatus.healthy if all(c.ok for c in checks) else ServiceStatus.degraded,
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        checks=checks,
        checked_at=datetime.now(timezone.utc),
    )
