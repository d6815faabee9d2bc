"""NaariCare API: FastAPI application entry point.

Run locally:
    uvicorn naaricare.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from naaricare.config import get_settings
from naaricare.middleware.supabase_auth import SupabaseAuthMiddleware
from naaricare.routers import assessments, chat, cycle, health, users
from naaricare.services.roles import RoleCache
from naaricare.services.supabase import close_pool, init_pool

# ---------- Logging ----------

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("naaricare")


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logger.info(
        "Starting %s API v%s [%s]",
        settings.app_name,
        settings.app_version,
        settings.environment,
    )
    app.state.role_cache = RoleCache(ttl_seconds=settings.role_cache_ttl_seconds)
    await init_pool(settings)
    yield
    await close_pool()
    logger.info("%s API shut down", settings.app_name)


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="NaariCare API",
        description=(
            "Menstrual cycle tracking: period and symptom logging, cycle insights, "
            "next-period prediction, reminders, PCOS / menopause screening and a "
            "health assistant."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ---------- Middleware (outermost first) ----------

    # Supabase JWT authentication
    app.add_middleware(SupabaseAuthMiddleware, settings=settings)

    # CORS is innermost so it can answer preflight requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After"],
    )

    # ---------- Health check (always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"

    app.include_router(users.router, prefix=v1_prefix)
    app.include_router(cycle.router, prefix=v1_prefix)
    app.include_router(assessments.router, prefix=v1_prefix)
    app.include_router(chat.router, prefix=v1_prefix)

    return app


app = create_app()
