"""Admin role lookup with a short-lived per-application cache."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Awaitable, Callable

from naaricare.services.supabase import fetchval

logger = logging.getLogger("naaricare.auth.roles")


class RoleCache:
    """Time-boxed ``user_id → is_admin`` cache.

    Owned by the application instance (``app.state.role_cache``), not a
    module global.  Expiry is checked on lookup, and every write drops all
    entries that have already expired.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[bool, float]] = {}

    def get(self, user_id: uuid.UUID | str) -> bool | None:
        key = str(user_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at >= self._ttl:
            del self._entries[key]
            return None
        return value

    def set(self, user_id: uuid.UUID | str, value: bool) -> None:
        now = self._clock()
        self._prune(now)
        self._entries[str(user_id)] = (value, now)

    def invalidate(self, user_id: uuid.UUID | str) -> None:
        self._entries.pop(str(user_id), None)

    def __len__(self) -> int:
        return len(self._entries)

    def _prune(self, now: float) -> None:
        expired = [k for k, (_, stored_at) in self._entries.items() if now - stored_at >= self._ttl]
        for key in expired:
            del self._entries[key]


async def _query_has_role(user_id: uuid.UUID) -> bool:
    return bool(
        await fetchval("SELECT public.has_role($1, 'admin')", user_id, user_id=user_id)
    )


async def is_admin(
    user_id: uuid.UUID,
    cache: RoleCache,
    lookup: Callable[[uuid.UUID], Awaitable[bool]] = _query_has_role,
) -> bool:
    """Return whether ``user_id`` holds the admin role, using ``cache`` first.

    Failed lookups count as "not admin" and are not cached.
    """
    cached = cache.get(user_id)
    if cached is not None:
        return cached
    try:
        result = await lookup(user_id)
    except Exception as exc:
        logger.warning("Admin role lookup failed for %s: %s", user_id, exc)
        return False
    cache.set(user_id, result)
    return result
