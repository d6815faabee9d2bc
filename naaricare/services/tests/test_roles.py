"""Tests for the admin role cache."""

from __future__ import annotations

from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from naaricare.services.roles import RoleCache, is_admin

USER_ID = UUID("12345678-1234-5678-1234-567812345678")


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestRoleCache:
    def test_miss(self) -> None:
        assert RoleCache().get(USER_ID) is None

    def test_hit_within_ttl(self) -> None:
        clock = FakeClock()
        cache = RoleCache(ttl_seconds=300, clock=clock)
        cache.set(USER_ID, True)
        clock.now += 299
        assert cache.get(USER_ID) is True

    def test_expired_entry_is_evicted(self) -> None:
        clock = FakeClock()
        cache = RoleCache(ttl_seconds=300, clock=clock)
        cache.set(USER_ID, False)
        clock.now += 300
        assert cache.get(USER_ID) is None
        assert len(cache) == 0

    def test_write_drops_expired_entries_of_other_users(self) -> None:
        clock = FakeClock()
        cache = RoleCache(ttl_seconds=1, clock=clock)
        for i in range(1000):
            cache.set(f"user-{i}", False)
        assert len(cache) == 1000
        clock.now += 10_000
        cache.set(USER_ID, True)
        assert len(cache) == 1
        assert cache.get(USER_ID) is True

    def test_write_keeps_live_entries(self) -> None:
        clock = FakeClock()
        cache = RoleCache(ttl_seconds=300, clock=clock)
        cache.set("first", True)
        clock.now += 100
        cache.set(USER_ID, False)
        assert len(cache) == 2
        assert cache.get("first") is True

    def test_string_and_uuid_keys_match(self) -> None:
        cache = RoleCache()
        cache.set(str(USER_ID), True)
        assert cache.get(USER_ID) is True
        cache.invalidate(USER_ID)
        assert cache.get(USER_ID) is None


class TestIsAdmin:
    @pytest.mark.asyncio
    async def test_lookup_result_is_cached(self) -> None:
        cache = RoleCache()
        lookup = AsyncMock(return_value=True)
        assert await is_admin(USER_ID, cache, lookup=lookup) is True
        assert await is_admin(USER_ID, cache, lookup=lookup) is True
        lookup.assert_awaited_once_with(USER_ID)

    @pytest.mark.asyncio
    async def test_failed_lookup_is_not_admin_and_not_cached(self) -> None:
        cache = RoleCache()
        lookup = AsyncMock(side_effect=ConnectionError("db down"))
        assert await is_admin(USER_ID, cache, lookup=lookup) is False
        assert cache.get(USER_ID) is None
