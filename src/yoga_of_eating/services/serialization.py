"""Dictionary codecs for persisted and synced journal data."""

import math
from datetime import datetime
from uuid import UUID

from yoga_of_eating.domain.history import (
    DailySnapshot,
    PersistedState,
    average_health_score,
)
from yoga_of_eating.domain.meals import DEFAULT_HEALTH_SCORE, MealEntry, MealType
from yoga_of_eating.domain.mood import NEUTRAL_MOOD_STATE, Mood, MoodState

SCHEMA_VERSION = 2
LEGACY_SCHEMA_VERSION = 1


def meal_to_dict(meal: MealEntry) -> dict[str, object]:
    """Serialize a meal entry."""
    return {
        "id": str(meal.id),
        "timestamp": meal.timestamp.isoformat(),
        "meal_type": meal.meal_type.value,
        "items": list(meal.items),
        "health_score": meal.health_score,
    }


def meal_from_dict(row: dict[str, object]) -> MealEntry:
    """Deserialize a meal entry, accepting the older single-description form."""
    items_raw = row.get("items")
    if isinstance(items_raw, list):
        items = tuple(str(item) for item in items_raw)
    else:
        description = row.get("description")
        items = (description,) if isinstance(description, str) and description else ()
    meal_type_raw = row.get("meal_type") or row.get("mealType")
    try:
        meal_type = MealType(str(meal_type_raw))
    except ValueError:
        meal_type = MealType.SNACKS
    return MealEntry(
        id=UUID(str(row["id"])),
        timestamp=_parse_datetime(row["timestamp"]),
        meal_type=meal_type,
        items=items,
        health_score=min(
            max(_to_float(row.get("health_score"), DEFAULT_HEALTH_SCORE), 0.0), 1.0
        ),
    )


def mood_state_to_dict(state: MoodState) -> dict[str, object]:
    """Serialize a mood state."""
    return {"scale": state.scale, "mood": state.mood.value}


def mood_state_from_dict(row: object) -> MoodState:
    """Deserialize a mood state, repairing invalid scales."""
    if not isinstance(row, dict):
        return NEUTRAL_MOOD_STATE
    state = MoodState(
        scale=_to_float(row.get("scale"), 1.0),
        mood=Mood.parse(row.get("mood")),
    )
    return state.sanitized()


def snapshot_to_dict(snapshot: DailySnapshot) -> dict[str, object]:
    """Serialize a daily snapshot."""
    return {
        "id": str(snapshot.id),
        "date": snapshot.date.isoformat(),
        "mood_state": mood_state_to_dict(snapshot.mood_state),
        "meals": [meal_to_dict(meal) for meal in snapshot.meals],
        "meal_count": snapshot.meal_count,
        "average_health_score": snapshot.average_health_score,
    }


def snapshot_from_dict(row: dict[str, object]) -> DailySnapshot:
    """Deserialize a daily snapshot; count and average are derived from meals."""
    meals_raw = row.get("meals") or []
    meals = tuple(
        meal_from_dict(item) for item in meals_raw if isinstance(item, dict)
    )
    return DailySnapshot(
        id=UUID(str(row["id"])),
        date=_parse_datetime(row["date"]),
        mood_state=mood_state_from_dict(row.get("mood_state")),
        meals=meals,
        meal_count=len(meals),
        average_health_score=average_health_score(meals),
    )


def state_to_dict(state: PersistedState) -> dict[str, object]:
    """Serialize the full persisted state as a version-tagged document."""
    return {
        "schema_version": SCHEMA_VERSION,
        "meals": [meal_to_dict(meal) for meal in state.meals],
        "mood_state": mood_state_to_dict(state.mood_state),
        "last_reset_date": state.last_reset_date.isoformat(),
        "archive": {
            "snapshots": [snapshot_to_dict(item) for item in state.snapshots],
            "last_sync_date": (
                state.last_sync_date.isoformat() if state.last_sync_date else None
            ),
        },
    }


def state_from_dict(document: dict[str, object]) -> PersistedState:
    """Deserialize a persisted state document.

    Documents written before the archive existed carry no ``schema_version``
    and no ``archive`` key; they load with an empty archive.
    """
    version = document.get("schema_version", LEGACY_SCHEMA_VERSION)
    meals = tuple(
        meal_from_dict(item)
        for item in document.get("meals") or []
        if isinstance(item, dict)
    )
    mood_state = mood_state_from_dict(document.get("mood_state"))
    last_reset_date = _parse_datetime(document["last_reset_date"])

    archive = document.get("archive")
    if version == LEGACY_SCHEMA_VERSION or not isinstance(archive, dict):
        return PersistedState(
            meals=meals, mood_state=mood_state, last_reset_date=last_reset_date
        )

    snapshots = tuple(
        snapshot_from_dict(item)
        for item in archive.get("snapshots") or []
        if isinstance(item, dict)
    )
    last_sync_raw = archive.get("last_sync_date")
    return PersistedState(
        meals=meals,
        mood_state=mood_state,
        last_reset_date=last_reset_date,
        snapshots=snapshots,
        last_sync_date=_parse_datetime(last_sync_raw) if last_sync_raw else None,
    )


def _parse_datetime(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    raise ValueError(f"Invalid timestamp: {value!r}")


def _to_float(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if math.isfinite(parsed) else default
