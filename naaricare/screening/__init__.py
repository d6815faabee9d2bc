"""PCOS and menopause screening for NaariCare.

Modules:
    scoring : Local rule-based scores and recommendation tables
    service : Remote-or-local scoring plus the saved assessment history
"""

from naaricare.screening.scoring import (
    MenopauseInput,
    MenopauseResult,
    PCOSInput,
    PCOSResult,
    Recommendations,
    score_menopause,
    score_pcos,
)
from naaricare.screening.service import (
    AssessmentRecord,
    ScreeningOutcome,
    ScreeningService,
)

__all__ = [
    "MenopauseInput",
    "MenopauseResult",
    "PCOSInput",
    "PCOSResult",
    "Recommendations",
    "score_menopause",
    "score_pcos",
    "AssessmentRecord",
    "ScreeningOutcome",
    "ScreeningService",
]
