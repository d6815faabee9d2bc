"""Optional remote ML scoring with local fallback.

The remote service hosts richer models for PCOS, menopause and cycle
prediction.  It is strictly best-effort: an unconfigured URL, a timeout, a
non-2xx status or any transport error all produce ``MLResult(fallback=True)``
and the caller uses the local engine instead.  Falling back is an expected
path and is never surfaced to the end user as an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Sequence

import httpx

from naaricare.config import Settings, get_settings
from naaricare.cycle.prediction import CyclePrediction
from naaricare.cycle.records import CycleRecord, parse_day
from naaricare.screening.scoring import (
    MENOPAUSE_STAGES,
    PCOS_SEVERITIES,
    MenopauseBreakdown,
    MenopauseInput,
    MenopauseResult,
    PCOSBreakdown,
    PCOSInput,
    PCOSResult,
    Recommendations,
    camel_case,
    menopause_recommendations,
    pcos_recommendations,
    score_menopause,
    score_pcos,
)

logger = logging.getLogger("naaricare.ml")

_ENDPOINTS = {
    "pcos": "/predict/pcos",
    "menopause": "/predict/menopause",
    "cycle": "/predict/menstrual",
}

_CONFIDENCE_LEVELS = ("high", "medium", "low")


@dataclass
class MLResult:
    """Outcome of a remote scoring call.

    Attributes:
        fallback:   True when the caller must use local computation.
        prediction: Remote payload when ``fallback`` is False.
        error:      Why the call fell back, for logs / diagnostics.
    """

    fallback: bool
    prediction: dict[str, Any] | None = None
    error: str | None = None


@dataclass
class MLPredictionMeta:
    used_api: bool
    error: str | None = None


def _pick(payload: dict[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    value = payload.get(snake)
    if value is None:
        value = payload.get(camel)
    return default if value is None else value


class MLPredictionClient:
    """Call the remote scoring service; never raise for service failures.

    Args:
        settings:    App settings (``ml_api_url``, ``ml_timeout_seconds``).
        http_client: Optional pre-configured httpx client (for testing).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        s = settings or get_settings()
        self._base_url = s.ml_api_url.rstrip("/")
        self._timeout = s.ml_timeout_seconds
        self._http_client = http_client

    async def predict(self, model_type: str, input_data: dict[str, Any]) -> MLResult:
        """POST ``input_data`` to the model endpoint for ``model_type``.

        Raises:
            ValueError: If ``model_type`` is not a known model.
        """
        endpoint = _ENDPOINTS.get(model_type)
        if endpoint is None:
            raise ValueError(f"Unknown model_type: {model_type}")
        if not self._base_url:
            return MLResult(
                fallback=True,
                error="ML_API_URL is not configured. Using local prediction.",
            )

        url = f"{self._base_url}{endpoint}"
        logger.info("Calling ML API %s for model %s", url, model_type)
        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, json=input_data, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, json=input_data)
        except httpx.HTTPError as exc:
            logger.warning("ML API unreachable for %s: %s", model_type, exc)
            return MLResult(
                fallback=True,
                error=f"ML API unreachable: {exc}. Using local prediction.",
            )

        if response.is_error:
            logger.warning("ML API error (%d) for %s", response.status_code, model_type)
            return MLResult(
                fallback=True,
                error=f"ML API returned {response.status_code}. Using local prediction.",
            )

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("ML API returned invalid JSON for %s: %s", model_type, exc)
            return MLResult(fallback=True, error="ML API returned invalid JSON.")
        if not isinstance(payload, dict):
            return MLResult(fallback=True, error="ML API returned an unexpected payload.")
        return MLResult(fallback=False, prediction=payload)

    async def predict_pcos(self, data: PCOSInput) -> tuple[PCOSResult, MLPredictionMeta]:
        """Remote PCOS screening, or the local rule-based score on fallback."""
        result = await self.predict("pcos", data.to_payload())
        if result.fallback or not result.prediction:
            return score_pcos(data), MLPredictionMeta(used_api=False, error=result.error)
        return _to_pcos_result(result.prediction), MLPredictionMeta(used_api=True)

    async def predict_menopause(
        self, data: MenopauseInput
    ) -> tuple[MenopauseResult, MLPredictionMeta]:
        """Remote menopause staging, or the local rule-based score on fallback."""
        result = await self.predict("menopause", data.to_payload())
        if result.fallback or not result.prediction:
            return score_menopause(data), MLPredictionMeta(used_api=False, error=result.error)
        return _to_menopause_result(result.prediction), MLPredictionMeta(used_api=True)

    async def predict_cycle(
        self,
        records: Sequence[CycleRecord],
        local: CyclePrediction | None,
        as_of_date: date | None = None,
    ) -> tuple[CyclePrediction | None, MLPredictionMeta]:
        """Remote cycle prediction, or ``local`` when the service falls back."""
        if local is None:
            return None, MLPredictionMeta(used_api=False, error="No cycle history")

        result = await self.predict("cycle", cycle_input(records))
        if result.fallback or not result.prediction:
            return local, MLPredictionMeta(used_api=False, error=result.error)

        remote = _to_prediction(result.prediction, local, as_of_date or date.today())
        if remote is None:
            return local, MLPredictionMeta(
                used_api=False, error="ML API prediction had no usable start date."
            )
        return remote, MLPredictionMeta(used_api=True)


def cycle_input(records: Sequence[CycleRecord]) -> dict[str, Any]:
    """Build the ``input_data`` body for the cycle model.

    Keys follow the model's camelCase contract.  ``cycleHistory`` is sent
    oldest-first and ``lastPeriodStart`` as a UTC midnight timestamp.  Stress,
    sleep and symptoms come from the most recent record that has them and are
    omitted when no record does.
    """
    history = [r.cycle_length for r in reversed(records) if r.cycle_length and r.cycle_length > 0]
    last_start = records[0].start_day if records else None
    body: dict[str, Any] = {
        "cycleHistory": history,
        "lastPeriodStart": (
            datetime.combine(last_start, time.min, tzinfo=timezone.utc).isoformat()
            if last_start
            else None
        ),
    }
    stress = next((r.stress_level for r in records if r.stress_level is not None), None)
    if stress is not None:
        body["stressLevel"] = stress
    sleep = next((r.sleep_hours for r in records if r.sleep_hours is not None), None)
    if sleep is not None:
        body["sleepHours"] = sleep
    symptoms = next((s for s in map(_symptom_summary, records) if s), None)
    if symptoms:
        body["symptoms"] = symptoms
    return body


def _symptom_summary(record: CycleRecord) -> dict[str, Any]:
    # cramps / mood keep their vocabulary ("neutral" is the column default,
    # not a logged mood); the rest are presence flags
    summary: dict[str, Any] = {}
    if record.cramps is not None:
        summary["cramps"] = record.cramps
    if record.mood is not None and record.mood != "neutral":
        summary["mood"] = record.mood
    for key in ("acne", "bloating", "fatigue"):
        value = getattr(record, key)
        if value is not None:
            summary[key] = value != "none"
    return summary


def _to_prediction(
    payload: dict[str, Any], local: CyclePrediction, today: date
) -> CyclePrediction | None:
    start = parse_day(_pick(payload, "predicted_start_date", "predictedStartDate"))
    if start is None:
        return None
    end = parse_day(_pick(payload, "predicted_end_date", "predictedEndDate"))
    if end is None:
        end = start + (local.predicted_end_date - local.predicted_start_date)
    confidence = _pick(payload, "confidence_level", "confidenceLevel", "low")
    if confidence not in _CONFIDENCE_LEVELS:
        confidence = "low"
    return CyclePrediction(
        predicted_start_date=start,
        predicted_end_date=end,
        confidence_level=confidence,
        days_until=(start - today).days,
        based_on_cycles=local.based_on_cycles,
    )


def _breakdown(payload: dict[str, Any], cls: type, keys: Sequence[str]) -> Any:
    raw = payload.get("breakdown")
    if not isinstance(raw, dict):
        return cls()
    values = {}
    for key in keys:
        value = _pick(raw, key, camel_case(key), 0)
        values[key] = value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0
    return cls(**values)


def _risk(payload: dict[str, Any]) -> int:
    value = _pick(payload, "risk_percentage", "riskPercentage", 0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(min(100, max(0, value)))


def _to_pcos_result(payload: dict[str, Any]) -> PCOSResult:
    severity = payload.get("severity")
    if severity not in PCOS_SEVERITIES:
        severity = "none"
    return PCOSResult(
        has_pcos=bool(_pick(payload, "has_pcos", "hasPCOS", False)),
        risk_percentage=_risk(payload),
        severity=severity,
        breakdown=_breakdown(
            payload,
            PCOSBreakdown,
            ("cycle_score", "hormonal_score", "ultrasound_score", "metabolic_score"),
        ),
        recommendations=(
            Recommendations.from_payload(payload.get("recommendations"))
            or pcos_recommendations(severity)
        ),
    )


def _to_menopause_result(payload: dict[str, Any]) -> MenopauseResult:
    stage = payload.get("stage")
    if stage not in MENOPAUSE_STAGES:
        stage = "Pre-Menopause"
    return MenopauseResult(
        stage=stage,
        risk_percentage=_risk(payload),
        has_menopause_symptoms=stage != "Pre-Menopause",
        breakdown=_breakdown(
            payload,
            MenopauseBreakdown,
            ("age_score", "hormone_score", "symptom_score", "period_score"),
        ),
        recommendations=(
            Recommendations.from_payload(payload.get("recommendations"))
            or menopause_recommendations(stage)
        ),
    )
