"""Domain models for journaled meals."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

DEFAULT_HEALTH_SCORE = 0.5


class MealType(StrEnum):
    """Kind of meal shown on a journal card."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACKS = "snacks"
    DRINKS = "drinks"


def suggested_meal_type(hour: int) -> MealType:
    """Return the meal type that fits the given local hour."""
    if 6 <= hour < 11:
        return MealType.BREAKFAST
    if 11 <= hour < 15:
        return MealType.LUNCH
    if 17 <= hour < 22:
        return MealType.DINNER
    return MealType.SNACKS


@dataclass(frozen=True)
class MealEntry:
    """A single meal in the current day's journal."""

    id: UUID
    timestamp: datetime
    meal_type: MealType
    items: tuple[str, ...] = ()
    health_score: float = DEFAULT_HEALTH_SCORE

    @property
    def description(self) -> str:
        """Items joined into one free-text description."""
        return ", ".join(self.items)
