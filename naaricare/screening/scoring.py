"""Rule-based PCOS and menopause screening.

These scores are the local stand-in for the remote ensemble models.  They are
screening aids for self-assessment questionnaires, not diagnoses: every
result carries lifestyle recommendations and a ``needs_doctor`` flag.

PCOS points (max 9):
    irregular cycle          2
    >= 10 follicles          2
    hirsutism, skin darkening, hair loss, acne   1 each
    BMI >= 25                1
    weight gain, fast food, no regular exercise  0.5 each

Menopause stage comes from medical rules (12+ months without a period is
post-menopause; 40+ with irregular / missed periods or hot flashes is
peri-menopause); the risk percentage is the age, hormone, symptom and
period-gap points over a maximum of 19.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from naaricare.cycle.stats import round_half_up

PCOS_SEVERITIES = ("none", "low", "medium", "high")
MENOPAUSE_STAGES = ("Pre-Menopause", "Peri-Menopause", "Post-Menopause")

_PCOS_MAX_POINTS = 9
_PCOS_THRESHOLD = 4
_PCOS_MIN_POSITIVE_RISK = 30
_MENOPAUSE_MAX_POINTS = 19


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class _Questionnaire:
    """Mixin giving input dataclasses the remote model's camelCase body."""

    def to_payload(self) -> dict[str, Any]:
        return {camel_case(f.name): getattr(self, f.name) for f in fields(self)}  # type: ignore[arg-type]


@dataclass
class Recommendations:
    diet: list[str]
    exercise: list[str]
    lifestyle: list[str]
    needs_doctor: bool

    @classmethod
    def from_payload(cls, payload: Any) -> Recommendations | None:
        """Read a remote recommendations object; None if it is unusable."""
        if not isinstance(payload, dict):
            return None
        lists = {}
        for key in ("diet", "exercise", "lifestyle"):
            value = payload.get(key)
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                return None
            lists[key] = value
        needs_doctor = payload.get("needs_doctor", payload.get("needsDoctor"))
        if not isinstance(needs_doctor, bool):
            return None
        return cls(**lists, needs_doctor=needs_doctor)


# ---------------------------------------------------------------------------
# PCOS
# ---------------------------------------------------------------------------


@dataclass
class PCOSInput(_Questionnaire):
    """PCOS questionnaire answers, ultrasound counts and lab values.

    Attributes:
        cycle_regular:  False when cycles are irregular.
        follicle_left:  Antral follicle count, left ovary.
        follicle_right: Antral follicle count, right ovary.
        endometrium:    Endometrial thickness (mm).
        lh / fsh:       mIU/mL.
        testosterone:   Total testosterone (ng/dL).
        insulin:        Fasting insulin (uIU/mL).
    """

    age: float
    height: float
    weight: float
    bmi: float
    cycle_regular: bool
    cycle_length: int
    weight_gain: bool = False
    hair_growth: bool = False
    skin_darkening: bool = False
    hair_loss: bool = False
    pimples: bool = False
    fast_food: bool = False
    regular_exercise: bool = False
    follicle_left: int = 0
    follicle_right: int = 0
    endometrium: float = 0.0
    lh: float = 0.0
    fsh: float = 0.0
    testosterone: float = 0.0
    insulin: float = 0.0


@dataclass
class PCOSBreakdown:
    cycle_score: float = 0
    hormonal_score: float = 0
    ultrasound_score: float = 0
    metabolic_score: float = 0


@dataclass
class PCOSResult:
    has_pcos: bool
    risk_percentage: int
    severity: str
    breakdown: PCOSBreakdown
    recommendations: Recommendations


def score_pcos(data: PCOSInput) -> PCOSResult:
    cycle = 0 if data.cycle_regular else 1
    hormonal = sum(
        (data.hair_growth, data.skin_darkening, data.hair_loss, data.pimples)
    )
    ultrasound = 1 if data.follicle_left + data.follicle_right >= 10 else 0
    metabolic = 1 if data.bmi >= 25 else 0
    lifestyle = 0.5 * sum((data.weight_gain, data.fast_food, not data.regular_exercise))

    total = 2 * cycle + 2 * ultrasound + hormonal + metabolic + lifestyle
    has_pcos = total >= _PCOS_THRESHOLD

    risk = int(round_half_up(total / _PCOS_MAX_POINTS * 100))
    risk = min(100, max(_PCOS_MIN_POSITIVE_RISK if has_pcos else 0, risk))

    if not has_pcos:
        severity = "none"
    elif risk < 50:
        severity = "low"
    elif risk < 70:
        severity = "medium"
    else:
        severity = "high"

    return PCOSResult(
        has_pcos=has_pcos,
        risk_percentage=risk,
        severity=severity,
        breakdown=PCOSBreakdown(
            cycle_score=cycle * 2,
            hormonal_score=hormonal,
            ultrasound_score=ultrasound * 2,
            metabolic_score=metabolic,
        ),
        recommendations=pcos_recommendations(severity),
    )


def _from_table(entry: dict[str, Any]) -> Recommendations:
    return Recommendations(
        diet=list(entry["diet"]),
        exercise=list(entry["exercise"]),
        lifestyle=list(entry["lifestyle"]),
        needs_doctor=entry["needs_doctor"],
    )


def pcos_recommendations(severity: str) -> Recommendations:
    return _from_table(_PCOS_RECOMMENDATIONS[severity])


# ---------------------------------------------------------------------------
# Menopause
# ---------------------------------------------------------------------------


@dataclass
class MenopauseInput(_Questionnaire):
    """Menopause questionnaire.

    Attributes:
        estrogen_level:           pg/mL (typical range 10-100).
        fsh_level:                mIU/mL (typical range 5-80).
        years_since_last_period:  0 while periods continue.
    """

    age: float
    estrogen_level: float
    fsh_level: float
    years_since_last_period: float = 0.0
    irregular_periods: bool = False
    missed_periods: bool = False
    hot_flashes: bool = False
    night_sweats: bool = False
    sleep_problems: bool = False
    vaginal_dryness: bool = False
    joint_pain: bool = False


@dataclass
class MenopauseBreakdown:
    age_score: int = 0
    hormone_score: int = 0
    symptom_score: int = 0
    period_score: int = 0


@dataclass
class MenopauseResult:
    stage: str
    risk_percentage: int
    has_menopause_symptoms: bool
    breakdown: MenopauseBreakdown
    recommendations: Recommendations


def menopause_stage(data: MenopauseInput) -> str:
    if data.years_since_last_period >= 1:
        return "Post-Menopause"
    if data.age >= 40 and (data.irregular_periods or data.missed_periods or data.hot_flashes):
        return "Peri-Menopause"
    return "Pre-Menopause"


def score_menopause(data: MenopauseInput) -> MenopauseResult:
    stage = menopause_stage(data)

    age_score = next(
        (points for floor, points in ((55, 4), (50, 3), (45, 2), (40, 1)) if data.age >= floor), 0
    )

    hormone_score = 0
    if data.fsh_level >= 40:
        hormone_score += 2
    elif data.fsh_level >= 25:
        hormone_score += 1
    if data.estrogen_level <= 30:
        hormone_score += 2
    elif data.estrogen_level <= 50:
        hormone_score += 1

    symptom_score = sum(
        (
            data.irregular_periods,
            data.missed_periods,
            data.hot_flashes,
            data.night_sweats,
            data.sleep_problems,
            data.vaginal_dryness,
            data.joint_pain,
        )
    )

    gap = data.years_since_last_period
    if gap >= 2:
        period_score = 4
    elif gap >= 1:
        period_score = 3
    elif gap >= 0.5:
        period_score = 2
    elif gap > 0:
        period_score = 1
    else:
        period_score = 0

    total = age_score + hormone_score + symptom_score + period_score
    risk = int(round_half_up(total / _MENOPAUSE_MAX_POINTS * 100))

    return MenopauseResult(
        stage=stage,
        risk_percentage=min(100, max(0, risk)),
        has_menopause_symptoms=stage != "Pre-Menopause",
        breakdown=MenopauseBreakdown(
            age_score=age_score,
            hormone_score=hormone_score,
            symptom_score=symptom_score,
            period_score=period_score,
        ),
        recommendations=menopause_recommendations(stage),
    )


def menopause_recommendations(stage: str) -> Recommendations:
    return _from_table(_MENOPAUSE_RECOMMENDATIONS[stage])


# ---------------------------------------------------------------------------
# Recommendation tables
# ---------------------------------------------------------------------------

_PCOS_RECOMMENDATIONS: dict[str, dict[str, Any]] = {
    "none": {
        "diet": [
            "Maintain balanced diet with whole grains",
            "Include fresh fruits and vegetables",
            "Stay hydrated with 2-3 liters water daily",
            "Include lean protein sources",
        ],
        "exercise": [
            "Continue regular physical activity",
            "30 minutes of moderate exercise daily",
            "Mix of cardio and strength training",
        ],
        "lifestyle": [
            "Maintain healthy sleep schedule",
            "Regular health check-ups annually",
            "Stress management practices",
        ],
        "needs_doctor": False,
    },
    "low": {
        "diet": [
            "Low glycemic index foods (millets, oats, brown rice)",
            "Fresh vegetables (spinach, broccoli, carrot, cucumber)",
            "Fruits in moderation (apple, berries, guava)",
            "Lean protein sources (dal, paneer, eggs, fish)",
            "Healthy fats (nuts, seeds, olive oil)",
            "Drink 2-3 liters of water daily",
        ],
        "exercise": [
            "Brisk walking - 30 minutes daily",
            "Yoga (Surya Namaskar, Anulom Vilom)",
            "Light stretching exercises",
            "Minimum 5 days per week",
        ],
        "lifestyle": [
            "Sleep 7-8 hours daily",
            "Reduce stress through meditation",
            "Avoid late-night meals",
            "Maintain a regular daily routine",
        ],
        "needs_doctor": False,
    },
    "medium": {
        "diet": [
            "Strict low-GI diet to reduce insulin resistance",
            "High-fiber foods (vegetables, salads, sprouts)",
            "Protein in every meal (eggs, pulses, fish)",
            "Small and frequent meals",
            "Anti-inflammatory foods (turmeric, berries, nuts)",
            "Completely avoid sugar, fast food, bakery items",
        ],
        "exercise": [
            "Cardio workouts (walking/jogging) - 30-40 minutes",
            "Strength training - 3 to 4 days per week",
            "Yoga for hormone balance",
            "Beginner-level HIIT exercises",
        ],
        "lifestyle": [
            "Fixed sleep and wake-up time",
            "Weight monitoring every week",
            "Reduce screen time",
            "Stress management is mandatory",
        ],
        "needs_doctor": True,
    },
    "high": {
        "diet": [
            "Very strict low-glycemic-index diet",
            "High-fiber vegetables in every meal",
            "Lean protein with each meal",
            "Anti-inflammatory foods only",
            "Complete elimination of sugar, maida, fried food",
            "Avoid alcohol, soft drinks, and packaged foods",
            "Calorie-controlled meals under medical guidance",
        ],
        "exercise": [
            "HIIT workouts (doctor-approved)",
            "Resistance training for insulin sensitivity",
            "Cardio exercises - 45 to 60 minutes daily",
            "Daily yoga for hormonal balance",
            "Consistency is critical",
        ],
        "lifestyle": [
            "Strict daily routine",
            "Mental health care and counseling if needed",
            "Avoid crash dieting",
            "Track menstrual cycle and symptoms monthly",
            "Long-term lifestyle discipline required",
        ],
        "needs_doctor": True,
    },
}

_MENOPAUSE_RECOMMENDATIONS: dict[str, dict[str, Any]] = {
    "Pre-Menopause": {
        "diet": [
            "Maintain balanced nutrition",
            "Include calcium-rich foods",
            "Stay hydrated",
            "Moderate caffeine intake",
        ],
        "exercise": [
            "Regular cardio and strength training",
            "Maintain bone health with weight-bearing exercises",
            "Stay active 30 minutes daily",
        ],
        "lifestyle": [
            "Regular health check-ups",
            "Stress management",
            "Quality sleep habits",
        ],
        "needs_doctor": False,
    },
    "Peri-Menopause": {
        "diet": [
            "Low-GI foods: oats, brown rice, whole wheat roti",
            "High-fiber foods: salads, sprouts, flax seeds",
            "Protein sources: eggs, pulses, soy, paneer",
            "Healthy fats: nuts, seeds, olive oil",
            "Calcium-rich foods: milk, curd, ragi",
            "Vitamin-D foods or supplements (doctor advice)",
            "Avoid: Sugar, bakery items, excess caffeine",
        ],
        "exercise": [
            "Brisk walking - 30 to 40 minutes daily",
            "Yoga: Anulom-Vilom, Bhramari, Surya Namaskar",
            "Strength training - 2 to 3 days per week",
            "Light cardio (cycling, skipping)",
        ],
        "lifestyle": [
            "Fixed sleep and wake-up time",
            "Daily meditation or breathing exercises",
            "Stress management is very important",
            "Maintain healthy body weight",
        ],
        "needs_doctor": True,
    },
    "Post-Menopause": {
        "diet": [
            "High-calcium foods: milk, cheese, curd, sesame seeds",
            "Vitamin-D rich foods or supplements",
            "High-protein diet: lentils, eggs, fish, tofu",
            "Anti-inflammatory foods: turmeric, berries, green tea",
            "Plenty of fruits and vegetables",
            "Avoid: Fried food, excess salt, sugary foods",
        ],
        "exercise": [
            "Weight-bearing exercises: walking, stair climbing",
            "Light strength training (resistance bands, dumbbells)",
            "Balance exercises to prevent falls",
            "Stretching and flexibility exercises",
        ],
        "lifestyle": [
            "Regular medical check-ups",
            "Bone density test (doctor advice)",
            "Avoid smoking and alcohol",
            "Maintain a stress-free routine",
        ],
        "needs_doctor": True,
    },
}
