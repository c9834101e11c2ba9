"""Smiley mood state transitions."""

from collections.abc import Sequence

from yoga_of_eating.domain.history import average_health_score
from yoga_of_eating.domain.meals import MealEntry
from yoga_of_eating.domain.mood import (
    MAX_SCALE,
    MIN_SCALE,
    NEUTRAL_MOOD_STATE,
    Mood,
    MoodState,
)

HEALTHY_THRESHOLD = 0.6
UNHEALTHY_THRESHOLD = 0.4
SHRINK_STEP = 0.1
BLOAT_STEP = 0.2
NEUTRAL_DRIFT = 0.05


def transition(
    current: MoodState, health_score: float, sensitivity: float = 1.0
) -> MoodState:
    """Advance the smiley by one aggregate score.

    Healthy scores shrink the smiley and calm it, unhealthy scores bloat it,
    anything in between drifts the scale back toward 1.0 without sensitivity.
    """
    scale = current.sanitized().scale
    if health_score > HEALTHY_THRESHOLD:
        return MoodState(
            scale=_clamp(max(MIN_SCALE, scale - SHRINK_STEP * sensitivity)),
            mood=Mood.SERENE,
        )
    if health_score < UNHEALTHY_THRESHOLD:
        return MoodState(
            scale=_clamp(min(MAX_SCALE, scale + BLOAT_STEP * sensitivity)),
            mood=Mood.OVERWHELMED,
        )
    if scale > 1.0:
        scale -= NEUTRAL_DRIFT
    elif scale < 1.0:
        scale += NEUTRAL_DRIFT
    return MoodState(scale=_clamp(scale), mood=Mood.NEUTRAL)


def state_for_meals(
    current: MoodState, meals: Sequence[MealEntry], sensitivity: float = 1.0
) -> MoodState:
    """Return the state after re-aggregating the whole day's meals."""
    if not meals:
        return NEUTRAL_MOOD_STATE
    return transition(current, average_health_score(list(meals)), sensitivity)


def _clamp(scale: float) -> float:
    return min(max(scale, MIN_SCALE), MAX_SCALE)
