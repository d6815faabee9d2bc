"""Supabase-backed storage for saved screening results."""

from __future__ import annotations

import json
import uuid

from naaricare.screening.service import AssessmentRecord
from naaricare.services.supabase import fetch, fetchrow


class SupabaseAssessmentStore:
    """Insert and read ``health_assessments`` rows for one user."""

    async def insert_assessment(
        self, user_id: uuid.UUID, record: AssessmentRecord
    ) -> AssessmentRecord:
        row = await fetchrow(
            """
            INSERT INTO health_assessments
                (user_id, assessment_type, risk_score, risk_category, responses, recommendations)
            VALUES ($1, $2, $3, $4, $5::jsonb, $6::jsonb)
            RETURNING *
            """,
            user_id,
            record.assessment_type,
            record.risk_score,
            record.risk_category,
            json.dumps(record.responses) if record.responses is not None else None,
            json.dumps(record.recommendations) if record.recommendations is not None else None,
            user_id=user_id,
        )
        return AssessmentRecord.from_row(dict(row))

    async def latest_assessment(
        self, user_id: uuid.UUID, kind: str
    ) -> AssessmentRecord | None:
        row = await fetchrow(
            """
            SELECT * FROM health_assessments
            WHERE user_id = $1 AND assessment_type IN ($2, $3)
            ORDER BY created_at DESC
            LIMIT 1
            """,
            user_id, f"{kind}_ml_api", f"{kind}_ml_local",
            user_id=user_id,
        )
        return AssessmentRecord.from_row(dict(row)) if row else None

    async def list_assessments(self, user_id: uuid.UUID, limit: int) -> list[AssessmentRecord]:
        rows = await fetch(
            "SELECT * FROM health_assessments WHERE user_id = $1 ORDER BY created_at DESC LIMIT $2",
            user_id, limit,
            user_id=user_id,
        )
        return [AssessmentRecord.from_row(dict(r)) for r in rows]
