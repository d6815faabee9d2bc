"""Shared fixtures for screening tests."""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from naaricare.screening.scoring import MenopauseInput, PCOSInput
from naaricare.screening.service import AssessmentRecord

TEST_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
OTHER_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000002")

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def pcos_answers(**overrides) -> PCOSInput:
    """Answers that score zero points; override fields to add points."""
    values = {
        "age": 26,
        "height": 160,
        "weight": 56,
        "bmi": 21.9,
        "cycle_regular": True,
        "cycle_length": 28,
        "regular_exercise": True,
        "follicle_left": 4,
        "follicle_right": 4,
    }
    values.update(overrides)
    return PCOSInput(**values)


def menopause_answers(**overrides) -> MenopauseInput:
    values = {"age": 30, "estrogen_level": 80, "fsh_level": 8}
    values.update(overrides)
    return MenopauseInput(**values)


class InMemoryAssessmentStore:
    """Dict-backed ``AssessmentStore`` with increasing ``created_at``."""

    def __init__(self) -> None:
        self.rows: dict[uuid.UUID, list[AssessmentRecord]] = {}

    async def insert_assessment(
        self, user_id: uuid.UUID, record: AssessmentRecord
    ) -> AssessmentRecord:
        rows = self.rows.setdefault(user_id, [])
        saved = replace(
            record,
            assessment_id=uuid.uuid4(),
            created_at=_EPOCH + timedelta(minutes=sum(len(r) for r in self.rows.values())),
        )
        rows.append(saved)
        return saved

    async def latest_assessment(
        self, user_id: uuid.UUID, kind: str
    ) -> AssessmentRecord | None:
        types = {f"{kind}_ml_api", f"{kind}_ml_local"}
        matches = [r for r in self.rows.get(user_id, []) if r.assessment_type in types]
        return max(matches, key=lambda r: r.created_at) if matches else None

    async def list_assessments(self, user_id: uuid.UUID, limit: int) -> list[AssessmentRecord]:
        rows = sorted(self.rows.get(user_id, []), key=lambda r: r.created_at, reverse=True)
        return rows[:limit]


@pytest.fixture
def assessment_store() -> InMemoryAssessmentStore:
    return InMemoryAssessmentStore()
