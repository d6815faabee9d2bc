"""Tests for next-period prediction, phase estimation and the health score."""

from __future__ import annotations

from datetime import date

import pytest

from naaricare.cycle.config_loader import CycleEngineConfig
from naaricare.cycle.insights import CycleInsights, InsightEngine
from naaricare.cycle.prediction import CyclePredictor, current_phase, health_score
from naaricare.cycle.tests.conftest import TEST_DATE, make_history, record


class TestPrediction:
    def test_defaults_from_single_start(self, cycle_config: CycleEngineConfig) -> None:
        prediction = CyclePredictor(cycle_config).predict(
            [record(None, start_date=TEST_DATE)],
            CycleInsights(),
            as_of_date=date(2024, 1, 15),
        )
        assert prediction is not None
        assert prediction.predicted_start_date == date(2024, 1, 29)
        assert prediction.predicted_end_date == date(2024, 2, 2)
        assert prediction.days_until == 14
        assert prediction.based_on_cycles == 0
        assert prediction.confidence_level == "low"

    def test_uses_weighted_average(self, cycle_config: CycleEngineConfig) -> None:
        records = make_history([28, 28, 28])  # latest start 2024-03-25
        insights = InsightEngine(cycle_config).compute(records)
        prediction = CyclePredictor(cycle_config).predict(records, insights, date(2024, 3, 20))
        assert prediction is not None
        assert prediction.predicted_start_date == date(2024, 4, 22)
        assert prediction.based_on_cycles == 3
        assert prediction.confidence_level == "high"

    def test_overdue_prediction_has_negative_days(self, cycle_config: CycleEngineConfig) -> None:
        prediction = CyclePredictor(cycle_config).predict(
            [record(None, start_date=TEST_DATE)], CycleInsights(), as_of_date=date(2024, 2, 3)
        )
        assert prediction is not None
        assert prediction.days_until == -5

    def test_no_history(self, cycle_config: CycleEngineConfig) -> None:
        assert CyclePredictor(cycle_config).predict([], CycleInsights()) is None

    def test_unparseable_latest_start(self, cycle_config: CycleEngineConfig) -> None:
        records = [record(None, start_date="31/01/2024"), record(28)]
        assert CyclePredictor(cycle_config).predict(records, CycleInsights()) is None

    @pytest.mark.parametrize(
        ("completed", "regular", "expected"),
        [
            (6, True, "high"),
            (6, False, "medium"),
            (3, True, "high"),
            (3, False, "medium"),
            (2, True, "low"),
            (0, False, "low"),
        ],
    )
    def test_confidence_tiers(
        self, cycle_config: CycleEngineConfig, completed: int, regular: bool, expected: str
    ) -> None:
        assert CyclePredictor(cycle_config).confidence(completed, regular) == expected


class TestCurrentPhase:
    @pytest.mark.parametrize(
        ("today", "name", "day", "next_phase"),
        [
            (date(2024, 1, 3), "menstrual", 3, date(2024, 1, 6)),
            (date(2024, 1, 10), "follicular", 10, date(2024, 1, 12)),
            (date(2024, 1, 14), "ovulation", 14, date(2024, 1, 16)),
            (date(2024, 1, 20), "luteal", 20, date(2024, 1, 29)),
        ],
    )
    def test_phase_boundaries(self, today: date, name: str, day: int, next_phase: date) -> None:
        phase = current_phase(TEST_DATE, 28, 5, today=today)
        assert phase.name == name
        assert phase.day_of_cycle == day
        assert phase.next_phase_date == next_phase

    def test_progress_is_capped(self) -> None:
        phase = current_phase(TEST_DATE, 28, 5, today=date(2024, 3, 1))
        assert phase.name == "luteal"
        assert phase.cycle_progress == 100.0

    def test_progress_percentage(self) -> None:
        phase = current_phase(TEST_DATE, 28, 5, today=date(2024, 1, 14))
        assert phase.cycle_progress == pytest.approx(50.0)


class TestHealthScore:
    def test_clean_insights_score_full(self) -> None:
        assert health_score(CycleInsights()) == 100

    def test_every_deduction(self) -> None:
        insights = CycleInsights(
            is_regular=False,
            pcos_risk_flag=True,
            cycle_variability=7.8,
            needs_doctor_consultation=True,
        )
        assert health_score(insights) == 25

    def test_variability_deduction_is_strict(self) -> None:
        assert health_score(CycleInsights(cycle_variability=5.0)) == 100
        assert health_score(CycleInsights(cycle_variability=5.1)) == 90
