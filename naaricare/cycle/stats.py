"""Small date and statistics helpers shared by the cycle engines."""

from __future__ import annotations

import math
import statistics
from datetime import date
from typing import Sequence


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round half away from zero for positives (2.5 → 3), unlike ``round``."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def weighted_cycle_length(lengths: Sequence[int], decay: float = 0.8) -> float:
    """Exponentially recency-weighted mean.

    ``lengths`` is most-recent-first; element ``i`` gets weight ``decay ** i``.
    """
    if not lengths:
        raise ValueError("weighted_cycle_length() requires at least one length")
    weights = [decay ** i for i in range(len(lengths))]
    return sum(length * w for length, w in zip(lengths, weights)) / sum(weights)


def population_std(values: Sequence[float]) -> float:
    """Standard deviation with ddof=0 around the unweighted mean."""
    if not values:
        return 0.0
    return statistics.pstdev(values)


def days_between(later: date, earlier: date) -> int:
    return (later - earlier).days
