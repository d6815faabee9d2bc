"""Menstrual cycle analytics for NaariCare.

Pure, synchronous engines over a user's cycle history plus the service that
persists logs through the external store.  Cycle data is sensitive health
data: it is only ever read or written for the authenticated user.

Modules:
    records       : CycleRecord / CycleSettings and the symptom whitelist
    insights      : Regularity, variability, risk heuristic, correlations
    prediction    : Next-period prediction, cycle phase, health score
    notifications : Reminder schedule ahead of the predicted start
    service       : Log / end period, log symptoms, recompute cached settings
    config_loader : cycle_config.yaml thresholds
"""

from naaricare.cycle.insights import CycleInsights, InsightEngine
from naaricare.cycle.notifications import NotificationEntry, NotificationScheduler
from naaricare.cycle.prediction import CyclePrediction, CyclePredictor
from naaricare.cycle.records import CycleRecord, CycleSettings
from naaricare.cycle.service import (
    CycleInputError,
    CycleRecordNotFound,
    CycleTrackingService,
    DuplicateCycleRecord,
)

__all__ = [
    "CycleInsights",
    "InsightEngine",
    "NotificationEntry",
    "NotificationScheduler",
    "CyclePrediction",
    "CyclePredictor",
    "CycleRecord",
    "CycleSettings",
    "CycleInputError",
    "CycleRecordNotFound",
    "CycleTrackingService",
    "DuplicateCycleRecord",
]
