"""Models for remote meal analysis results."""

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator

from yoga_of_eating.domain.meals import DEFAULT_HEALTH_SCORE
from yoga_of_eating.domain.mood import Mood


class MealAnalysis(BaseModel):
    """Score, mood and sound hint returned by the AI scorer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    health_score: float = Field(
        default=DEFAULT_HEALTH_SCORE, ge=0.0, le=1.0, alias="healthScore"
    )
    mood: Mood = Mood.NEUTRAL
    sound: str = "tink"

    @field_validator("health_score", mode="before")
    @classmethod
    def _coerce_score(cls, value: object) -> float:
        """Unparseable scores fall back to neutral; others clamp into [0, 1]."""
        if isinstance(value, bool) or value is None:
            return DEFAULT_HEALTH_SCORE
        try:
            score = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return DEFAULT_HEALTH_SCORE
        if not math.isfinite(score):
            return DEFAULT_HEALTH_SCORE
        return max(0.0, min(1.0, score))

    @field_validator("mood", mode="before")
    @classmethod
    def _parse_mood(cls, value: object) -> Mood:
        return Mood.parse(value)

    @field_validator("sound", mode="before")
    @classmethod
    def _default_sound(cls, value: object) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return "tink"
