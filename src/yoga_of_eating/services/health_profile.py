"""Health profile calculations and personalization settings."""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol

from yoga_of_eating.domain.health import (
    BmiCategory,
    Gender,
    RiskLevel,
    UnitSystem,
    UserHealthProfile,
)

HEIGHT_KEY = "user_height"
WEIGHT_KEY = "user_weight"
AGE_KEY = "user_age"
GENDER_KEY = "user_gender"
UNIT_SYSTEM_KEY = "unit_system"
PERSONALIZATION_KEY = "personalized_feedback_enabled"

METRIC_KEYS = (HEIGHT_KEY, WEIGHT_KEY, AGE_KEY, GENDER_KEY, UNIT_SYSTEM_KEY)

UNDERWEIGHT_BMI = 18.5
OVERWEIGHT_BMI = 25.0
OBESE_BMI = 30.0

SEDENTARY_ACTIVITY = 1.2
LBS_TO_KG = 0.453592
INCHES_TO_CM = 2.54
IMPERIAL_BMI_FACTOR = 703.0

MIN_SENSITIVITY = 0.5
MAX_SENSITIVITY = 1.5

_logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    """Key-value store for user settings and body metrics."""

    def get(self, key: str) -> object | None:
        """Return the stored value for a key, if present."""

    def set(self, key: str, value: object) -> None:
        """Store a value for a key."""


def calculate_bmi(height: float, weight: float, unit_system: UnitSystem) -> float:
    """Return BMI, or 0 when height or weight is not positive."""
    if height <= 0 or weight <= 0:
        return 0.0
    if unit_system == UnitSystem.IMPERIAL:
        return (weight / (height * height)) * IMPERIAL_BMI_FACTOR
    height_m = height / 100.0
    return weight / (height_m * height_m)


def bmi_category(bmi: float) -> BmiCategory:
    """Bucket a BMI value; each threshold belongs to the higher category."""
    if bmi < UNDERWEIGHT_BMI:
        return BmiCategory.UNDERWEIGHT
    if bmi < OVERWEIGHT_BMI:
        return BmiCategory.NORMAL
    if bmi < OBESE_BMI:
        return BmiCategory.OVERWEIGHT
    return BmiCategory.OBESE


def calculate_bmr(
    weight: float,
    height: float,
    age: int,
    gender: Gender,
    unit_system: UnitSystem,
) -> float:
    """Basal metabolic rate via the Mifflin-St Jeor equation."""
    weight_kg = weight
    height_cm = height
    if unit_system == UnitSystem.IMPERIAL:
        weight_kg = weight * LBS_TO_KG
        height_cm = height * INCHES_TO_CM
    base = 10.0 * weight_kg + 6.25 * height_cm - 5.0 * age
    if gender == Gender.MALE:
        return base + 5.0
    if gender == Gender.FEMALE:
        return base - 161.0
    # Midpoint of the male and female offsets.
    return base - 78.0


def calculate_tdee(bmr: float, activity_level: float = SEDENTARY_ACTIVITY) -> float:
    """Total daily energy expenditure for an activity multiplier."""
    return bmr * activity_level


def sensitivity_multiplier(bmi: float, age: int) -> float:
    """Per-user scoring strictness in [0.5, 1.5]."""
    sensitivity = 1.0
    if bmi >= OBESE_BMI:
        sensitivity += 0.3
    elif bmi >= OVERWEIGHT_BMI:
        sensitivity += 0.15

    if age >= 60:
        sensitivity += 0.2
    elif age >= 50:
        sensitivity += 0.15
    elif age >= 40:
        sensitivity += 0.1

    return min(max(sensitivity, MIN_SENSITIVITY), MAX_SENSITIVITY)


def risk_level(bmi: float, age: int) -> RiskLevel:
    """Risk bucket from BMI category and age."""
    category = bmi_category(bmi)
    if category == BmiCategory.OBESE or (
        category == BmiCategory.OVERWEIGHT and age >= 50
    ):
        return RiskLevel.HIGH
    if category == BmiCategory.OVERWEIGHT or (
        category == BmiCategory.NORMAL and age >= 65
    ):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def build_profile(raw_metrics: Mapping[str, object]) -> UserHealthProfile | None:
    """Derive a profile from raw stored metrics.

    Returns None when height, weight or age is missing, non-numeric or not
    positive. Unknown gender or unit codes fall back to unspecified/metric.
    """
    height = _to_float(raw_metrics.get(HEIGHT_KEY))
    weight = _to_float(raw_metrics.get(WEIGHT_KEY))
    age = _to_int(raw_metrics.get(AGE_KEY))
    if height is None or weight is None or age is None:
        return None
    if height <= 0 or weight <= 0 or age <= 0:
        return None

    gender = _to_enum(Gender, raw_metrics.get(GENDER_KEY), Gender.UNSPECIFIED)
    unit_system = _to_enum(
        UnitSystem, raw_metrics.get(UNIT_SYSTEM_KEY), UnitSystem.METRIC
    )

    bmi = calculate_bmi(height, weight, unit_system)
    bmr = calculate_bmr(weight, height, age, gender, unit_system)
    return UserHealthProfile(
        age=age,
        bmi=bmi,
        bmi_category=bmi_category(bmi),
        bmr=bmr,
        tdee=calculate_tdee(bmr),
        risk_level=risk_level(bmi, age),
        sensitivity_multiplier=sensitivity_multiplier(bmi, age),
    )


@dataclass
class HealthProfileService:
    """Reads stored metrics and builds the user's health profile on demand."""

    preferences: PreferenceStore

    def get_profile(self) -> UserHealthProfile | None:
        """Return the current profile, or None when metrics are incomplete."""
        raw = {key: self.preferences.get(key) for key in METRIC_KEYS}
        profile = build_profile(raw)
        if profile is None:
            _logger.debug("Health profile unavailable: metrics incomplete")
        return profile

    def personalization_enabled(self) -> bool:
        """Return True unless personalized feedback was switched off."""
        value = self.preferences.get(PERSONALIZATION_KEY)
        if isinstance(value, bool):
            return value
        return True

    def set_personalization_enabled(self, enabled: bool) -> None:
        """Persist the personalized feedback toggle."""
        self.preferences.set(PERSONALIZATION_KEY, enabled)


def _to_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _to_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _to_enum(enum_type: type[IntEnum], value: object, default: IntEnum) -> IntEnum:
    code = _to_int(value)
    if code is None:
        return default
    try:
        return enum_type(code)
    except ValueError:
        return default
