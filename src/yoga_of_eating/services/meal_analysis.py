"""Remote AI meal analysis service."""

from dataclasses import dataclass
from typing import Protocol

from yoga_of_eating.domain.analysis import MealAnalysis

MEAL_ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "healthScore": {"type": "number", "minimum": 0.0, "maximum": 1.0},
        "mood": {"type": "string", "enum": ["serene", "neutral", "overwhelmed"]},
        "sound": {"type": "string"},
    },
    "required": ["healthScore", "mood", "sound"],
    "additionalProperties": False,
}

MEAL_ANALYSIS_PROMPT = (
    "Analyze the following meal description and return a JSON object with "
    '"healthScore" between 0.0 (unhealthy) and 1.0 (very healthy), '
    '"mood" as one of "serene", "neutral" or "overwhelmed", and "sound" as a '
    'short physiological sound suggestion such as "chime", "thump", "tink" or '
    '"heavy_thump".'
)


class MealAnalysisClient(Protocol):
    """Interface for remote meal quality analysis."""

    async def analyze(self, description: str) -> dict[str, object]:
        """Return the raw analysis payload for a meal description."""


@dataclass
class MealAnalysisService:
    """Calls the remote analyzer and validates its response."""

    client: MealAnalysisClient

    async def analyze(self, description: str) -> MealAnalysis:
        """Analyze a meal description; missing fields take neutral defaults."""
        raw = await self.client.analyze(description)
        return MealAnalysis.model_validate(raw)
