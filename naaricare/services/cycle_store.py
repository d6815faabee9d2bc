"""Supabase-backed implementation of the cycle store."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, Mapping

from naaricare.cycle.records import SYMPTOM_FIELDS, CycleRecord, CycleSettings
from naaricare.services.supabase import execute, fetch, fetchrow, get_connection

logger = logging.getLogger("naaricare.db.cycle")

# Columns the service is allowed to write; keys are interpolated into SQL
_RECORD_COLUMNS = frozenset(
    ("start_date", "end_date", "cycle_length", "period_length", *SYMPTOM_FIELDS)
)
_SETTINGS_COLUMNS = frozenset(
    (
        "notification_enabled",
        "reminder_days",
        "notification_time",
        "hide_notification_text",
        "allow_advanced_analysis",
        "average_cycle_length",
        "average_period_length",
        "cycle_variability",
        "pcos_risk_flag",
        "pcos_risk_score",
        "last_calculated_at",
    )
)


def _checked(fields: Mapping[str, Any], allowed: frozenset[str], table: str) -> dict[str, Any]:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown {table} column(s): {', '.join(sorted(unknown))}")
    return dict(fields)


class SupabaseCycleStore:
    """CRUD on ``cycle_logs`` and ``user_cycle_settings`` scoped to one user."""

    async def list_cycle_records(self, user_id: uuid.UUID, limit: int) -> list[CycleRecord]:
        rows = await fetch(
            "SELECT * FROM cycle_logs WHERE user_id = $1 ORDER BY start_date DESC LIMIT $2",
            user_id, limit,
            user_id=user_id,
        )
        return [CycleRecord.from_row(dict(r)) for r in rows]

    async def get_record(
        self, user_id: uuid.UUID, record_id: uuid.UUID
    ) -> CycleRecord | None:
        row = await fetchrow(
            "SELECT * FROM cycle_logs WHERE id = $1 AND user_id = $2",
            record_id, user_id,
            user_id=user_id,
        )
        return CycleRecord.from_row(dict(row)) if row else None

    async def get_record_by_date(self, user_id: uuid.UUID, day: date) -> CycleRecord | None:
        row = await fetchrow(
            "SELECT * FROM cycle_logs WHERE user_id = $1 AND start_date = $2",
            user_id, day,
            user_id=user_id,
        )
        return CycleRecord.from_row(dict(row)) if row else None

    async def insert_record(
        self, user_id: uuid.UUID, fields: Mapping[str, Any]
    ) -> CycleRecord:
        values = _checked(fields, _RECORD_COLUMNS, "cycle_logs")
        columns = ["user_id", *values]
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        row = await fetchrow(
            f"INSERT INTO cycle_logs ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
            user_id, *values.values(),
            user_id=user_id,
        )
        return CycleRecord.from_row(dict(row))

    async def update_record(
        self, user_id: uuid.UUID, record_id: uuid.UUID, fields: Mapping[str, Any]
    ) -> None:
        updates = _checked(fields, _RECORD_COLUMNS, "cycle_logs")
        if not updates:
            return
        set_clauses = [f"{key} = ${i}" for i, key in enumerate(updates, start=3)]
        set_clauses.append("updated_at = NOW()")
        await execute(
            f"UPDATE cycle_logs SET {', '.join(set_clauses)} WHERE id = $1 AND user_id = $2",
            record_id, user_id, *updates.values(),
            user_id=user_id,
        )

    async def get_settings(self, user_id: uuid.UUID) -> CycleSettings | None:
        row = await fetchrow(
            "SELECT * FROM user_cycle_settings WHERE user_id = $1",
            user_id,
            user_id=user_id,
        )
        return CycleSettings.from_row(dict(row)) if row else None

    async def create_default_settings(self, user_id: uuid.UUID) -> CycleSettings:
        row = await fetchrow(
            """
            INSERT INTO user_cycle_settings (user_id) VALUES ($1)
            ON CONFLICT (user_id) DO UPDATE SET user_id = EXCLUDED.user_id
            RETURNING *
            """,
            user_id,
            user_id=user_id,
        )
        return CycleSettings.from_row(dict(row))

    async def update_settings(self, user_id: uuid.UUID, fields: Mapping[str, Any]) -> None:
        updates = _checked(fields, _SETTINGS_COLUMNS, "user_cycle_settings")
        if not updates:
            return
        set_clauses = [f"{key} = ${i}" for i, key in enumerate(updates, start=2)]
        set_clauses.append("updated_at = NOW()")
        await execute(
            f"UPDATE user_cycle_settings SET {', '.join(set_clauses)} WHERE user_id = $1",
            user_id, *updates.values(),
            user_id=user_id,
        )

    async def delete_all_for_user(self, user_id: uuid.UUID) -> None:
        async with get_connection(user_id=user_id) as conn:
            await conn.execute("DELETE FROM cycle_logs WHERE user_id = $1", user_id)
            await conn.execute("DELETE FROM cycle_predictions WHERE user_id = $1", user_id)
            await conn.execute("DELETE FROM user_cycle_settings WHERE user_id = $1", user_id)
        logger.info("Wiped cycle tables for user %s", user_id)
