"""Domain models for archived days."""

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from uuid import UUID, uuid4

from yoga_of_eating.domain.meals import DEFAULT_HEALTH_SCORE, MealEntry
from yoga_of_eating.domain.mood import NEUTRAL_MOOD_STATE, MoodState


def normalize_day(value: datetime, tz: tzinfo) -> datetime:
    """Truncate a timestamp to local midnight in the given zone.

    Naive timestamps are read as wall-clock time in ``tz``.
    """
    local = value.replace(tzinfo=tz) if value.tzinfo is None else value.astimezone(tz)
    return datetime(local.year, local.month, local.day, tzinfo=tz)


def day_key(value: datetime, tz: tzinfo) -> date:
    """Return the calendar day a timestamp falls on in the given zone."""
    return normalize_day(value, tz).date()


def average_health_score(meals: tuple[MealEntry, ...] | list[MealEntry]) -> float:
    """Mean meal score, or the neutral default for an empty day."""
    if not meals:
        return DEFAULT_HEALTH_SCORE
    return sum(meal.health_score for meal in meals) / len(meals)


@dataclass(frozen=True)
class DailySnapshot:
    """Immutable record of one calendar day's meals and end-of-day mood."""

    id: UUID
    date: datetime
    mood_state: MoodState
    meals: tuple[MealEntry, ...]
    meal_count: int
    average_health_score: float

    @classmethod
    def build(
        cls,
        meals: tuple[MealEntry, ...] | list[MealEntry],
        mood_state: MoodState,
        day: datetime,
        tz: tzinfo,
        snapshot_id: UUID | None = None,
    ) -> "DailySnapshot":
        """Create a snapshot with derived count and average filled in."""
        frozen_meals = tuple(meals)
        return cls(
            id=snapshot_id or uuid4(),
            date=normalize_day(day, tz),
            mood_state=mood_state,
            meals=frozen_meals,
            meal_count=len(frozen_meals),
            average_health_score=average_health_score(frozen_meals),
        )

    @property
    def is_empty(self) -> bool:
        """True when no meals were logged that day."""
        return not self.meals

    @property
    def display_state(self) -> MoodState:
        """State to render for the day; empty days show a neutral smiley."""
        if self.is_empty:
            return NEUTRAL_MOOD_STATE
        return self.mood_state.sanitized()


@dataclass(frozen=True)
class PersistedState:
    """Working set and archive handed to the persistence sink."""

    meals: tuple[MealEntry, ...]
    mood_state: MoodState
    last_reset_date: datetime
    snapshots: tuple[DailySnapshot, ...] = ()
    last_sync_date: datetime | None = None
