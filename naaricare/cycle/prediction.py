"""Next-period prediction and cycle phase estimation.

The prediction is calendar-only: last logged start + weighted average cycle
length.  Confidence depends on how many completed cycles exist and whether
they are regular.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from naaricare.cycle.config_loader import CycleEngineConfig, get_cycle_config
from naaricare.cycle.insights import CycleInsights
from naaricare.cycle.records import CycleRecord


@dataclass
class CyclePrediction:
    """Predicted next period.

    Attributes:
        predicted_start_date: Last start + average cycle length.
        predicted_end_date:   Predicted start + average period length − 1.
        confidence_level:     'high', 'medium' or 'low'.
        days_until:           Days from today; negative when overdue.
        based_on_cycles:      Records with a known cycle length.
    """

    predicted_start_date: date
    predicted_end_date: date
    confidence_level: str
    days_until: int
    based_on_cycles: int


@dataclass
class CyclePhase:
    """Where today falls within the current cycle."""

    name: str
    day_of_cycle: int
    cycle_progress: float
    next_phase_date: date


class CyclePredictor:
    """Predict the next period from a history and its insights.

    Usage::

        predictor = CyclePredictor()
        prediction = predictor.predict(records, insights, as_of_date=date.today())
        if prediction:
            print(prediction.predicted_start_date, prediction.confidence_level)
    """

    def __init__(self, config: CycleEngineConfig | None = None) -> None:
        self._config = config or get_cycle_config()

    def confidence(self, completed_cycles: int, is_regular: bool) -> str:
        pc = self._config.prediction
        if completed_cycles >= pc.high_confidence_cycles and is_regular:
            return "high"
        if completed_cycles >= pc.medium_confidence_cycles:
            return "high" if is_regular else "medium"
        return "low"

    def predict(
        self,
        records: Sequence[CycleRecord],
        insights: CycleInsights,
        as_of_date: date | None = None,
    ) -> CyclePrediction | None:
        """Predict the next period start and end.

        Args:
            records:    Cycle records, newest first.
            insights:   Output of the insight engine for the same records.
            as_of_date: Reference "today" (defaults to ``date.today()``).

        Returns:
            CyclePrediction, or None if there is no history or the latest
            start date is unusable.
        """
        if not records:
            return None
        last_start = records[0].start_day
        if last_start is None:
            return None

        today = as_of_date or date.today()
        predicted_start = last_start + timedelta(days=insights.average_cycle_length)
        predicted_end = predicted_start + timedelta(days=insights.average_period_length - 1)
        completed = sum(1 for r in records if r.cycle_length is not None)

        return CyclePrediction(
            predicted_start_date=predicted_start,
            predicted_end_date=predicted_end,
            confidence_level=self.confidence(completed, insights.is_regular),
            days_until=(predicted_start - today).days,
            based_on_cycles=completed,
        )


def current_phase(
    last_period_start: date,
    average_cycle_length: int,
    average_period_length: int,
    today: date | None = None,
) -> CyclePhase:
    """Estimate the current phase from the last start and the averages.

    Ovulation is assumed to fall between 40% and 55% of the cycle.
    """
    today = today or date.today()
    day = (today - last_period_start).days + 1
    follicular_end = int(average_cycle_length * 0.4)
    ovulation_end = int(average_cycle_length * 0.55)

    if day <= average_period_length:
        name, boundary = "menstrual", average_period_length
    elif day <= follicular_end:
        name, boundary = "follicular", follicular_end
    elif day <= ovulation_end:
        name, boundary = "ovulation", ovulation_end
    else:
        name, boundary = "luteal", average_cycle_length

    return CyclePhase(
        name=name,
        day_of_cycle=day,
        cycle_progress=min(100.0, day / average_cycle_length * 100),
        next_phase_date=last_period_start + timedelta(days=boundary),
    )


def health_score(insights: CycleInsights) -> int:
    """Simple 0–100 wellness indicator shown alongside the insights."""
    score = 100
    if not insights.is_regular:
        score -= 20
    if insights.pcos_risk_flag:
        score -= 30
    if insights.cycle_variability > 5:
        score -= 10
    if insights.needs_doctor_consultation:
        score -= 15
    return max(0, score)
