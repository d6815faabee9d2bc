"""Shared fixtures and an in-memory store for the cycle engine tests."""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date, timedelta
from typing import Any, Mapping
from uuid import UUID

import pytest

from naaricare.cycle.config_loader import CycleEngineConfig, load_cycle_config
from naaricare.cycle.records import CycleRecord, CycleSettings
from naaricare.cycle.service import CycleTrackingService

# Canonical test user ID
TEST_USER_ID = UUID("12345678-1234-5678-1234-567812345678")
OTHER_USER_ID = UUID("87654321-4321-8765-4321-876543218765")
TEST_DATE = date(2024, 1, 1)


def make_history(lengths: list[int], start: date = TEST_DATE, **symptoms: Any) -> list[CycleRecord]:
    """Build a newest-first history whose cycle lengths, oldest first, are ``lengths``.

    The first record is the oldest and has no cycle length of its own.
    """
    records = [CycleRecord(record_id=uuid.uuid4(), start_date=start, **symptoms)]
    current = start
    for length in lengths:
        current = current + timedelta(days=length)
        records.append(
            CycleRecord(
                record_id=uuid.uuid4(),
                start_date=current,
                cycle_length=length,
                **symptoms,
            )
        )
    return list(reversed(records))


def record(cycle_length: int | None = None, start_date: date | str = TEST_DATE, **fields: Any) -> CycleRecord:
    return CycleRecord(
        record_id=uuid.uuid4(),
        start_date=start_date,
        cycle_length=cycle_length,
        **fields,
    )


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryCycleStore:
    """Dict-backed stand-in for the Supabase store, scoped per user."""

    def __init__(self) -> None:
        self.records: dict[UUID, list[CycleRecord]] = {}
        self.settings: dict[UUID, CycleSettings] = {}
        self.settings_writes: list[dict[str, Any]] = []

    async def list_cycle_records(self, user_id: UUID, limit: int) -> list[CycleRecord]:
        rows = sorted(
            self.records.get(user_id, []),
            key=lambda r: r.start_day or date.min,
            reverse=True,
        )
        return rows[:limit]

    async def get_record(self, user_id: UUID, record_id: UUID) -> CycleRecord | None:
        for r in self.records.get(user_id, []):
            if r.record_id == record_id:
                return r
        return None

    async def get_record_by_date(self, user_id: UUID, day: date) -> CycleRecord | None:
        for r in self.records.get(user_id, []):
            if r.start_day == day:
                return r
        return None

    async def insert_record(self, user_id: UUID, fields: Mapping[str, Any]) -> CycleRecord:
        new = CycleRecord(record_id=uuid.uuid4(), **fields)
        self.records.setdefault(user_id, []).append(new)
        return new

    async def update_record(
        self, user_id: UUID, record_id: UUID, fields: Mapping[str, Any]
    ) -> None:
        rows = self.records.get(user_id, [])
        for i, r in enumerate(rows):
            if r.record_id == record_id:
                rows[i] = replace(r, **fields)

    async def get_settings(self, user_id: UUID) -> CycleSettings | None:
        return self.settings.get(user_id)

    async def create_default_settings(self, user_id: UUID) -> CycleSettings:
        settings = CycleSettings(user_id=user_id)
        self.settings[user_id] = settings
        return settings

    async def update_settings(self, user_id: UUID, fields: Mapping[str, Any]) -> None:
        self.settings_writes.append(dict(fields))
        current = self.settings.get(user_id) or CycleSettings(user_id=user_id)
        self.settings[user_id] = replace(current, **fields)

    async def delete_all_for_user(self, user_id: UUID) -> None:
        self.records.pop(user_id, None)
        self.settings.pop(user_id, None)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cycle_config() -> CycleEngineConfig:
    """Load the real cycle config for tests."""
    return load_cycle_config()


@pytest.fixture
def store() -> InMemoryCycleStore:
    return InMemoryCycleStore()


@pytest.fixture
def service(store: InMemoryCycleStore, cycle_config: CycleEngineConfig) -> CycleTrackingService:
    return CycleTrackingService(store, config=cycle_config)


@pytest.fixture
def regular_history() -> list[CycleRecord]:
    """Four starts 28 days apart beginning 2024-01-01, newest first."""
    return make_history([28, 28, 28])
