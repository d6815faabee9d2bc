"""Supabase Postgres access with RLS context.

Every request gets a connection inside a transaction where the JWT claims
Supabase's ``auth.uid()`` reads (``request.jwt.claims``) are set with
``set_config(..., true)``, so Row-Level Security policies on ``cycle_logs``
and ``user_cycle_settings`` see the calling user.

Uses ``asyncpg`` for direct database access; the Supabase REST client
cannot scope settings to a transaction.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import asyncpg

from naaricare.config import Settings, get_settings

logger = logging.getLogger("naaricare.db")

# Module-level connection pool, initialized once at app startup
_pool: asyncpg.Pool | None = None


async def init_pool(settings: Settings | None = None) -> asyncpg.Pool:
    """Create the asyncpg connection pool. Call once at app startup."""
    global _pool
    s = settings or get_settings()
    _pool = await asyncpg.create_pool(
        s.supabase_db_url,
        min_size=1,
        max_size=10,
        command_timeout=30,
    )
    logger.info("Database pool initialized (min=1, max=10)")
    return _pool


async def close_pool() -> None:
    """Drain the pool. Call at app shutdown."""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None
        logger.info("Database pool closed")


def get_pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("Database pool not initialized; call init_pool() first")
    return _pool


@asynccontextmanager
async def get_connection(
    user_id: uuid.UUID | None = None,
) -> AsyncGenerator[asyncpg.Connection, None]:
    """Acquire a connection with the caller's JWT claims set for RLS.

    Usage::

        async with get_connection(user_id=user.user_id) as conn:
            rows = await conn.fetch("SELECT * FROM cycle_logs WHERE user_id = $1", user.user_id)

    The settings are transaction-local, so they disappear when the
    connection goes back to the pool.
    """
    pool = get_pool()
    async with pool.acquire() as conn:
        async with conn.transaction():
            if user_id:
                claims = json.dumps({"sub": str(user_id), "role": "authenticated"})
                await conn.execute(
                    "SELECT set_config('request.jwt.claims', $1, true)", claims
                )
                await conn.execute("SET LOCAL ROLE authenticated")
            yield conn


async def execute(query: str, *args: Any, user_id: uuid.UUID | None = None) -> str:
    """Execute a single statement with RLS context and return status."""
    async with get_connection(user_id=user_id) as conn:
        return await conn.execute(query, *args)


async def fetch(
    query: str, *args: Any, user_id: uuid.UUID | None = None
) -> list[asyncpg.Record]:
    """Fetch rows with RLS context."""
    async with get_connection(user_id=user_id) as conn:
        return await conn.fetch(query, *args)


async def fetchrow(
    query: str, *args: Any, user_id: uuid.UUID | None = None
) -> asyncpg.Record | None:
    """Fetch a single row with RLS context."""
    async with get_connection(user_id=user_id) as conn:
        return await conn.fetchrow(query, *args)


async def fetchval(query: str, *args: Any, user_id: uuid.UUID | None = None) -> Any:
    """Fetch a single value with RLS context."""
    async with get_connection(user_id=user_id) as conn:
        return await conn.fetchval(query, *args)
