"""Cycle insight engine.

Derives, from a user's most recent cycle records:

- a recency-weighted average cycle length and the mean period length
- cycle variability (population standard deviation) and regularity
- a non-diagnostic pattern-risk score (loosely PCOS-flavoured)
- reasons to suggest a doctor consultation
- stress / sleep vs. cycle length correlations
- the symptoms that keep coming back

Nothing here is a diagnosis.  With fewer than two completed cycles no
statistics are computed at all and fixed defaults are returned.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Callable, Sequence

from naaricare.cycle.config_loader import CycleEngineConfig, get_cycle_config
from naaricare.cycle.records import CycleRecord
from naaricare.cycle.stats import (
    days_between,
    population_std,
    round_half_up,
    weighted_cycle_length,
)

logger = logging.getLogger("naaricare.cycle.insights")

REASON_LONG_CYCLES = "Cycles longer than 35 days for 3+ months"
REASON_HIGH_VARIABILITY = "High cycle variability detected"
REASON_OUT_OF_RANGE = "Cycle length outside normal range (21-40 days)"
REASON_MISSED_PERIOD = "Missed period detected (gap > 60 days)"

SLEEP_CORRELATION_MESSAGE = "Poor sleep patterns correlate with longer cycles"

def _present(value: str | None) -> bool:
    return bool(value) and value != "none"


# label → predicate over a record, in tally order
_COMMON_SYMPTOMS: tuple[tuple[str, Callable[[CycleRecord], bool]], ...] = (
    ("cramps", lambda r: _present(r.cramps)),
    ("bloating", lambda r: _present(r.bloating)),
    ("mood changes", lambda r: bool(r.mood) and r.mood != "neutral"),
    ("headaches", lambda r: _present(r.headache)),
    ("fatigue", lambda r: _present(r.fatigue)),
)


@dataclass
class CycleInsights:
    """Everything the insight engine derives from a cycle history.

    Attributes:
        average_cycle_length:  Weighted average, rounded to whole days.
        average_period_length: Mean logged period length, rounded.
        cycle_variability:     Population std. dev. in days, 1 decimal.
        is_regular:            Variability below the regularity threshold.
        pcos_risk_flag:        Score at or above the flag threshold.
        pcos_risk_score:       Additive heuristic score, 0–100.
        stress_correlation:    Message when high stress lines up with long cycles.
        sleep_correlation:     Message when short sleep lines up with long cycles.
        common_symptoms:       Labels seen at least twice, most frequent first.
        needs_doctor_consultation: Risk flag or enough consultation reasons.
        consultation_reasons:  Human-readable reasons, in evaluation order.
        weighted_cycle_length: Unrounded weighted average (None on defaults).
    """

    average_cycle_length: int = 28
    average_period_length: int = 5
    cycle_variability: float = 0.0
    is_regular: bool = True
    pcos_risk_flag: bool = False
    pcos_risk_score: int = 0
    stress_correlation: str | None = None
    sleep_correlation: str | None = None
    common_symptoms: list[str] = field(default_factory=list)
    needs_doctor_consultation: bool = False
    consultation_reasons: list[str] = field(default_factory=list)
    weighted_cycle_length: float | None = None

    def without_advanced_analysis(self) -> CycleInsights:
        """Copy with correlations and the risk heuristic blanked out.

        Used when the user has not opted in to advanced analysis.
        """
        return replace(
            self,
            pcos_risk_flag=False,
            pcos_risk_score=0,
            stress_correlation=None,
            sleep_correlation=None,
        )


class InsightEngine:
    """Compute :class:`CycleInsights` from a cycle history.

    Usage::

        engine = InsightEngine()
        insights = engine.compute(records)   # records most-recent-first
        print(insights.average_cycle_length, insights.is_regular)
    """

    def __init__(self, config: CycleEngineConfig | None = None) -> None:
        self._config = config or get_cycle_config()

    def defaults(self) -> CycleInsights:
        return CycleInsights(
            average_cycle_length=self._config.default_cycle_length,
            average_period_length=self._config.default_period_length,
        )

    def compute(self, records: Sequence[CycleRecord]) -> CycleInsights:
        """Derive insights from records ordered most-recent-first.

        Args:
            records: Cycle records, newest first (caller bounds the window).

        Returns:
            CycleInsights; the documented defaults when fewer than the
            configured minimum of records carry a positive cycle length.
        """
        cfg = self._config
        completed = [r for r in records if r.cycle_length and r.cycle_length > 0]
        if len(completed) < cfg.averaging.min_completed_cycles:
            logger.debug(
                "Insufficient history (%d completed cycles), using defaults", len(completed)
            )
            return self.defaults()

        lengths = [r.cycle_length for r in completed]
        weighted = weighted_cycle_length(lengths, cfg.averaging.recency_decay)

        period_lengths = [r.period_length for r in records if r.period_length is not None]
        average_period = (
            sum(period_lengths) / len(period_lengths)
            if period_lengths
            else cfg.default_period_length
        )

        variability = population_std(lengths)
        is_regular = variability < cfg.regular_max_std_days

        score, reasons = self._risk(records, lengths, variability)
        capped = min(score, cfg.risk.max_score)

        return CycleInsights(
            average_cycle_length=int(round_half_up(weighted)),
            average_period_length=int(round_half_up(average_period)),
            cycle_variability=round_half_up(variability, 1),
            is_regular=is_regular,
            pcos_risk_flag=capped >= cfg.risk.flag_threshold,
            pcos_risk_score=capped,
            stress_correlation=self._stress_correlation(records, weighted),
            sleep_correlation=self._sleep_correlation(records, weighted),
            common_symptoms=self._common_symptoms(records),
            needs_doctor_consultation=(
                capped >= cfg.risk.flag_threshold
                or len(reasons) >= cfg.consultation.min_reasons
            ),
            consultation_reasons=reasons,
            weighted_cycle_length=weighted,
        )

    # ------------------------------------------------------------------
    # Risk heuristic + consultation reasons
    # ------------------------------------------------------------------

    def _risk(
        self,
        records: Sequence[CycleRecord],
        lengths: list[int],
        variability: float,
    ) -> tuple[int, list[str]]:
        rk = self._config.risk
        cs = self._config.consultation
        score = 0
        reasons: list[str] = []

        long_cycles = sum(1 for length in lengths if length > rk.long_cycle_days)
        if long_cycles >= rk.long_cycle_min_count:
            score += rk.long_cycle_points
            reasons.append(REASON_LONG_CYCLES)

        if variability > rk.high_variability_days:
            score += rk.high_variability_points
            reasons.append(REASON_HIGH_VARIABILITY)

        acne_count = sum(1 for r in records if _present(r.acne))
        fatigue_count = sum(1 for r in records if _present(r.fatigue))
        if acne_count >= rk.symptom_min_count:
            score += rk.acne_points
        if fatigue_count >= rk.symptom_min_count:
            score += rk.fatigue_points

        out_of_range = sum(
            1 for length in lengths
            if length < cs.normal_min_days or length > cs.normal_max_days
        )
        if out_of_range >= cs.out_of_range_min_count:
            reasons.append(REASON_OUT_OF_RANGE)

        # Only the latest pair of records is inspected for a missed period
        dated = [(r.start_day, r) for r in records if r.start_day is not None]
        if len(dated) >= 2:
            dated.sort(key=lambda pair: pair[0], reverse=True)
            gap = days_between(dated[0][0], dated[1][0])
            if gap > cs.missed_period_gap_days:
                reasons.append(REASON_MISSED_PERIOD)

        return score, reasons

    # ------------------------------------------------------------------
    # Behavioural correlations
    # ------------------------------------------------------------------

    def _delayed(
        self,
        records: Sequence[CycleRecord],
        has_value: Callable[[CycleRecord], bool],
        triggered: Callable[[CycleRecord], bool],
        weighted: float,
    ) -> list[CycleRecord]:
        """Records whose trigger fired and whose cycle ran long.

        Returns an empty list unless enough records carry the measurement.
        """
        cr = self._config.correlation
        qualifying = [r for r in records if has_value(r) and r.cycle_length]
        if len(qualifying) < cr.min_qualifying:
            return []
        return [
            r for r in qualifying
            if triggered(r) and r.cycle_length > weighted + cr.delay_margin_days
        ]

    def _stress_correlation(self, records: Sequence[CycleRecord], weighted: float) -> str | None:
        cr = self._config.correlation
        delayed = self._delayed(
            records,
            has_value=lambda r: r.stress_level is not None,
            triggered=lambda r: r.stress_level >= cr.high_stress_level,
            weighted=weighted,
        )
        if len(delayed) < cr.min_matching:
            return None
        mean_delay = sum(r.cycle_length - weighted for r in delayed) / len(delayed)
        return (
            "High stress appears to delay your period by "
            f"~{int(round_half_up(mean_delay))} days"
        )

    def _sleep_correlation(self, records: Sequence[CycleRecord], weighted: float) -> str | None:
        cr = self._config.correlation
        delayed = self._delayed(
            records,
            has_value=lambda r: r.sleep_hours is not None,
            triggered=lambda r: r.sleep_hours < cr.low_sleep_hours,
            weighted=weighted,
        )
        if len(delayed) < cr.min_matching:
            return None
        return SLEEP_CORRELATION_MESSAGE

    # ------------------------------------------------------------------
    # Common symptoms
    # ------------------------------------------------------------------

    def _common_symptoms(self, records: Sequence[CycleRecord]) -> list[str]:
        # Counter keeps first-seen order, so ties stay in the order they appeared
        counts: Counter[str] = Counter()
        for record in records:
            for label, present in _COMMON_SYMPTOMS:
                if present(record):
                    counts[label] += 1
        frequent = [
            (label, count) for label, count in counts.items()
            if count >= self._config.common_symptom_min_count
        ]
        frequent.sort(key=lambda pair: pair[1], reverse=True)
        return [label for label, _ in frequent]


def compute_insights(
    records: Sequence[CycleRecord],
    config: CycleEngineConfig | None = None,
) -> CycleInsights:
    """Shortcut for ``InsightEngine(config).compute(records)``."""
    return InsightEngine(config).compute(records)
