"""Cycle tracking orchestration.

Ties the pure engines to the external store.  Every mutation is validated
before anything is written, the write is awaited, and then the cached
averages on the user's settings row are recomputed from the records.  The
records are always the source of truth; the cached fields are a read
optimisation for other screens.

Store errors (``asyncpg`` exceptions, network failures) are not caught
here: they reach the route handler unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Protocol, Sequence
from uuid import UUID

from naaricare.cycle.config_loader import CycleEngineConfig, get_cycle_config
from naaricare.cycle.insights import CycleInsights, InsightEngine
from naaricare.cycle.notifications import NotificationEntry, NotificationScheduler
from naaricare.cycle.prediction import CyclePrediction, CyclePredictor
from naaricare.cycle.records import (
    PREFERENCE_FIELDS,
    CycleRecord,
    CycleSettings,
    clean_symptoms,
    parse_day,
    symptom_problems,
)

logger = logging.getLogger("naaricare.cycle.service")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class CycleInputError(ValueError):
    """Rejected input; nothing has been written."""


class DuplicateCycleRecord(CycleInputError):
    """A record already exists for this start date."""


class CycleRecordNotFound(LookupError):
    """The referenced cycle record does not exist for this user."""


# ---------------------------------------------------------------------------
# Store interface
# ---------------------------------------------------------------------------


class CycleStore(Protocol):
    """Persistence the service depends on (see ``services.cycle_store``)."""

    async def list_cycle_records(self, user_id: UUID, limit: int) -> list[CycleRecord]:
        """Records ordered by start date, newest first."""
        ...

    async def get_record(self, user_id: UUID, record_id: UUID) -> CycleRecord | None: ...

    async def get_record_by_date(self, user_id: UUID, day: date) -> CycleRecord | None: ...

    async def insert_record(self, user_id: UUID, fields: Mapping[str, Any]) -> CycleRecord: ...

    async def update_record(
        self, user_id: UUID, record_id: UUID, fields: Mapping[str, Any]
    ) -> None: ...

    async def get_settings(self, user_id: UUID) -> CycleSettings | None: ...

    async def create_default_settings(self, user_id: UUID) -> CycleSettings: ...

    async def update_settings(self, user_id: UUID, fields: Mapping[str, Any]) -> None: ...

    async def delete_all_for_user(self, user_id: UUID) -> None: ...


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


@dataclass
class CycleAnalysis:
    """Engine output for one user's loaded history."""

    records: list[CycleRecord]
    settings: CycleSettings
    insights: CycleInsights
    prediction: CyclePrediction | None
    notifications: list[NotificationEntry] = field(default_factory=list)


class CycleTrackingService:
    """Log periods and symptoms, and derive insights from the result.

    Usage::

        service = CycleTrackingService(SupabaseCycleStore())
        await service.log_period(user_id, date(2024, 1, 29))
        analysis = await service.analyze_user(user_id)
        print(analysis.prediction.predicted_start_date)
    """

    def __init__(
        self,
        store: CycleStore,
        config: CycleEngineConfig | None = None,
        history_limit: int | None = None,
    ) -> None:
        self._store = store
        self._config = config or get_cycle_config()
        self._history_limit = history_limit or self._config.max_records
        self._insights = InsightEngine(self._config)
        self._predictor = CyclePredictor(self._config)
        self._scheduler = NotificationScheduler(self._config)

    # ------------------------------------------------------------------
    # Derivations over already-loaded data
    # ------------------------------------------------------------------

    def get_insights(
        self, records: Sequence[CycleRecord], settings: CycleSettings | None = None
    ) -> CycleInsights:
        insights = self._insights.compute(records)
        if settings is not None and not settings.allow_advanced_analysis:
            insights = insights.without_advanced_analysis()
        return insights

    def get_prediction(
        self,
        records: Sequence[CycleRecord],
        insights: CycleInsights,
        as_of_date: date | None = None,
    ) -> CyclePrediction | None:
        return self._predictor.predict(records, insights, as_of_date)

    def get_notification_schedule(
        self,
        prediction: CyclePrediction | None,
        settings: CycleSettings | None,
        insights: CycleInsights,
        as_of_date: date | None = None,
    ) -> list[NotificationEntry]:
        return self._scheduler.schedule(prediction, settings, insights, as_of_date)

    def analyze(
        self,
        records: Sequence[CycleRecord],
        settings: CycleSettings,
        as_of_date: date | None = None,
    ) -> CycleAnalysis:
        insights = self.get_insights(records, settings)
        prediction = self.get_prediction(records, insights, as_of_date)
        return CycleAnalysis(
            records=list(records),
            settings=settings,
            insights=insights,
            prediction=prediction,
            notifications=self.get_notification_schedule(
                prediction, settings, insights, as_of_date
            ),
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def ensure_settings(self, user_id: UUID) -> CycleSettings:
        settings = await self._store.get_settings(user_id)
        if settings is None:
            settings = await self._store.create_default_settings(user_id)
            logger.info("Created default cycle settings for user %s", user_id)
        return settings

    async def list_records(self, user_id: UUID, limit: int | None = None) -> list[CycleRecord]:
        return await self._store.list_cycle_records(user_id, limit or self._history_limit)

    async def load(self, user_id: UUID) -> tuple[list[CycleRecord], CycleSettings]:
        records = await self.list_records(user_id)
        settings = await self.ensure_settings(user_id)
        return records, settings

    async def analyze_user(
        self, user_id: UUID, as_of_date: date | None = None
    ) -> CycleAnalysis:
        records, settings = await self.load(user_id)
        return self.analyze(records, settings, as_of_date)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def log_period(
        self,
        user_id: UUID,
        start_date: date | str,
        symptoms: Mapping[str, Any] | None = None,
    ) -> CycleRecord:
        """Record a period start, with optional same-day symptoms.

        ``cycle_length`` is the gap from the current most recent record.

        Raises:
            CycleInputError:      Bad date, bad symptom values, or a start
                                  date before the most recent record.
            DuplicateCycleRecord: A record already exists for this date.
        """
        day = parse_day(start_date)
        if day is None:
            raise CycleInputError(f"Invalid period start date: {start_date!r}")
        fields = self._validated_symptoms(symptoms)

        if await self._store.get_record_by_date(user_id, day) is not None:
            raise DuplicateCycleRecord(f"A cycle entry already exists for {day.isoformat()}")

        latest = await self._store.list_cycle_records(user_id, 1)
        cycle_length: int | None = None
        if latest and latest[0].start_day is not None:
            cycle_length = (day - latest[0].start_day).days
            if cycle_length < 0:
                raise CycleInputError(
                    f"Period start {day.isoformat()} is before the most recent "
                    f"logged period ({latest[0].start_day.isoformat()})"
                )

        record = await self._store.insert_record(
            user_id,
            {"start_date": day, "cycle_length": cycle_length, **fields},
        )
        logger.info(
            "Logged period start for user %s (cycle_length=%s)", user_id, cycle_length
        )
        await self.recompute_settings(user_id)
        return record

    async def end_period(
        self, user_id: UUID, record_id: UUID, end_date: date | str
    ) -> CycleRecord:
        """Close the period on an explicitly identified record.

        Raises:
            CycleRecordNotFound: ``record_id`` is not one of the user's records.
            CycleInputError:     Bad date or a date before the period started.
        """
        day = parse_day(end_date)
        if day is None:
            raise CycleInputError(f"Invalid period end date: {end_date!r}")

        record = await self._store.get_record(user_id, record_id)
        if record is None:
            raise CycleRecordNotFound(f"Cycle entry {record_id} not found")
        start = record.start_day
        if start is None:
            raise CycleInputError("Cycle entry has no valid start date")

        period_length = (day - start).days + 1
        if period_length < 1:
            raise CycleInputError(
                f"Period end {day.isoformat()} is before its start {start.isoformat()}"
            )

        await self._store.update_record(
            user_id, record_id, {"end_date": day, "period_length": period_length}
        )
        logger.info("Ended period %s for user %s (%d days)", record_id, user_id, period_length)
        await self.recompute_settings(user_id)
        return replace(record, end_date=day, period_length=period_length)

    async def log_symptoms(
        self, user_id: UUID, day: date | str, symptoms: Mapping[str, Any]
    ) -> CycleRecord:
        """Upsert symptoms for a date.

        Merges into the record for that exact date, or creates a symptom-only
        record (no ``cycle_length``).  Keys outside the symptom whitelist are
        dropped silently.

        Raises:
            CycleInputError: Bad date or out-of-range symptom values.
        """
        log_day = parse_day(day)
        if log_day is None:
            raise CycleInputError(f"Invalid symptom date: {day!r}")
        fields = self._validated_symptoms(symptoms)

        existing = await self._store.get_record_by_date(user_id, log_day)
        if existing is not None:
            if not fields:
                return existing
            await self._store.update_record(user_id, existing.record_id, fields)
            record = replace(existing, **fields)
            logger.info("Updated symptoms on %s for user %s", existing.record_id, user_id)
        else:
            record = await self._store.insert_record(user_id, {"start_date": log_day, **fields})
            logger.info("Created symptom entry for user %s", user_id)

        await self.recompute_settings(user_id)
        return record

    async def update_preferences(
        self, user_id: UUID, updates: Mapping[str, Any]
    ) -> CycleSettings:
        """Change notification / analysis preferences.

        Cached averages are not writable here; they only come from
        :meth:`recompute_settings`.
        """
        fields = {k: updates[k] for k in PREFERENCE_FIELDS if k in updates}
        if not fields:
            raise CycleInputError("No fields to update")
        reminder_days = fields.get("reminder_days")
        if reminder_days is not None and (
            not isinstance(reminder_days, list)
            or any(isinstance(d, bool) or not isinstance(d, int) or d < 1 for d in reminder_days)
        ):
            raise CycleInputError("reminder_days must be a list of positive day counts")
        notification_time = fields.get("notification_time")
        if notification_time is not None and not isinstance(notification_time, time):
            raise CycleInputError("notification_time must be a time of day")

        await self.ensure_settings(user_id)
        await self._store.update_settings(user_id, fields)
        logger.info("Updated cycle preferences for user %s: %s", user_id, sorted(fields))

        if "allow_advanced_analysis" in fields:
            # Risk fields are cached masked / unmasked depending on the opt-in
            await self.recompute_settings(user_id)
        return await self.ensure_settings(user_id)

    async def delete_all_data(self, user_id: UUID) -> None:
        """Irreversibly delete every cycle record and the settings row."""
        await self._store.delete_all_for_user(user_id)
        logger.info("Deleted all cycle data for user %s", user_id)

    async def recompute_settings(self, user_id: UUID) -> CycleInsights:
        """Re-derive the cached averages from the stored records and save them."""
        records, settings = await self.load(user_id)
        insights = self.get_insights(records, settings)
        await self._store.update_settings(
            user_id,
            {
                "average_cycle_length": insights.average_cycle_length,
                "average_period_length": insights.average_period_length,
                "cycle_variability": insights.cycle_variability,
                "pcos_risk_flag": insights.pcos_risk_flag,
                "pcos_risk_score": insights.pcos_risk_score,
                "last_calculated_at": datetime.now(timezone.utc),
            },
        )
        return insights

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validated_symptoms(symptoms: Mapping[str, Any] | None) -> dict[str, Any]:
        fields = clean_symptoms(symptoms)
        problems = symptom_problems(fields)
        if problems:
            raise CycleInputError("; ".join(problems))
        return fields
