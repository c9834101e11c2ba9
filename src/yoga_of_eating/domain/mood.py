"""Domain models for the smiley mood state."""

import math
from dataclasses import dataclass
from enum import StrEnum

MIN_SCALE = 0.5
MAX_SCALE = 2.5


class Mood(StrEnum):
    """Emotion displayed by the smiley."""

    SERENE = "serene"
    NEUTRAL = "neutral"
    OVERWHELMED = "overwhelmed"

    @classmethod
    def parse(cls, value: object) -> "Mood":
        """Parse a mood string case-insensitively, falling back to neutral."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.NEUTRAL
        return cls.NEUTRAL


@dataclass(frozen=True)
class MoodState:
    """Bounded bloat factor and mood of the smiley."""

    scale: float
    mood: Mood

    def sanitized(self) -> "MoodState":
        """Return a copy whose scale is finite and within the scale bounds.

        Non-finite or non-positive scales reset to 1.0; other out-of-range
        scales are clamped.
        """
        if not math.isfinite(self.scale) or self.scale <= 0:
            return MoodState(scale=1.0, mood=self.mood)
        if MIN_SCALE <= self.scale <= MAX_SCALE:
            return self
        return MoodState(
            scale=min(max(self.scale, MIN_SCALE), MAX_SCALE), mood=self.mood
        )


NEUTRAL_MOOD_STATE = MoodState(scale=1.0, mood=Mood.NEUTRAL)
