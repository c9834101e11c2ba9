"""Health profile domain models."""

from dataclasses import dataclass
from enum import IntEnum, StrEnum


class BmiCategory(StrEnum):
    """WHO body mass index buckets."""

    UNDERWEIGHT = "underweight"
    NORMAL = "normal"
    OVERWEIGHT = "overweight"
    OBESE = "obese"


class RiskLevel(StrEnum):
    """Coarse health risk bucket used to gate score adjustments."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Gender(IntEnum):
    """Stored gender codes."""

    UNSPECIFIED = 0
    MALE = 1
    FEMALE = 2
    OTHER = 3


class UnitSystem(IntEnum):
    """Stored unit system codes: kg/cm or lbs/inches."""

    METRIC = 0
    IMPERIAL = 1


@dataclass(frozen=True)
class UserHealthProfile:
    """Metrics derived from the user's stored body measurements."""

    age: int
    bmi: float
    bmi_category: BmiCategory
    bmr: float
    tdee: float
    risk_level: RiskLevel
    sensitivity_multiplier: float
