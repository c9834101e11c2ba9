"""Tests for the journal session."""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from tests.conftest import (
    FakeClock,
    FakeMealAnalysisClient,
    InMemoryPreferenceStore,
    InMemoryStateRepository,
    build_session,
    make_meal,
    store_with_metrics,
)
from yoga_of_eating.domain.history import PersistedState
from yoga_of_eating.domain.meals import MealType
from yoga_of_eating.domain.mood import NEUTRAL_MOOD_STATE, Mood, MoodState


def test_create_meal_suggests_type_from_clock() -> None:
    clock = FakeClock(datetime(2024, 3, 10, 8, tzinfo=UTC))
    repository = InMemoryStateRepository()
    service = build_session(repository=repository, clock=clock)

    async def scenario():  # type: ignore[no-untyped-def]
        breakfast = await service.create_meal()
        drink = await service.create_meal(MealType.DRINKS)
        await service.wait_for_background_tasks()
        return breakfast, drink

    breakfast, drink = asyncio.run(scenario())

    assert breakfast.meal_type == MealType.BREAKFAST
    assert breakfast.items == ()
    assert breakfast.health_score == 0.5
    assert drink.meal_type == MealType.DRINKS
    assert [meal.id for meal in repository.saved[-1].meals] == [
        breakfast.id,
        drink.id,
    ]


def test_edit_meal_scores_and_advances_mood() -> None:
    repository = InMemoryStateRepository()
    service = build_session(repository=repository)

    async def scenario():  # type: ignore[no-untyped-def]
        meal = await service.create_meal()
        edited = await service.edit_meal(
            meal.id, ["Green salad with avocado"], MealType.LUNCH
        )
        await service.wait_for_background_tasks()
        return edited

    edited = asyncio.run(scenario())

    assert edited is not None
    assert edited.health_score >= 0.7
    assert edited.meal_type == MealType.LUNCH
    assert service.mood_state.mood == Mood.SERENE
    assert service.mood_state.scale == pytest.approx(0.9)
    assert repository.saved[-1].meals == service.meals
    assert repository.saved[-1].mood_state == service.mood_state


def test_edit_meal_joins_items_into_one_description() -> None:
    service = build_session()

    async def scenario():  # type: ignore[no-untyped-def]
        meal = await service.create_meal()
        edited = await service.edit_meal(meal.id, ["burger", "fries"])
        await service.wait_for_background_tasks()
        return edited

    edited = asyncio.run(scenario())

    assert edited is not None
    assert edited.description == "burger, fries"
    assert edited.health_score == pytest.approx(0.3)
    assert service.mood_state.mood == Mood.OVERWHELMED


def test_edit_unknown_meal_is_ignored() -> None:
    service = build_session()

    result = asyncio.run(service.edit_meal(uuid4(), ["salad"]))

    assert result is None
    assert service.mood_state == NEUTRAL_MOOD_STATE


def test_edit_meal_description() -> None:
    service = build_session()

    async def scenario():  # type: ignore[no-untyped-def]
        meal = await service.create_meal()
        edited = await service.edit_meal_description(meal.id, "fruit smoothie")
        await service.wait_for_background_tasks()
        return edited

    edited = asyncio.run(scenario())

    assert edited is not None
    assert edited.items == ("fruit smoothie",)


def test_delete_meal_rederives_mood() -> None:
    service = build_session()

    async def scenario():  # type: ignore[no-untyped-def]
        meal = await service.create_meal()
        await service.edit_meal(meal.id, ["pizza"])
        deleted = await service.delete_meal(meal.id)
        deleted_again = await service.delete_meal(meal.id)
        await service.wait_for_background_tasks()
        return deleted, deleted_again

    deleted, deleted_again = asyncio.run(scenario())

    assert deleted is True
    assert deleted_again is False
    assert service.meals == ()
    assert service.mood_state == NEUTRAL_MOOD_STATE


def test_rollover_archives_and_resets_the_day() -> None:
    clock = FakeClock(datetime(2024, 3, 10, 12, tzinfo=UTC))
    repository = InMemoryStateRepository()
    service = build_session(repository=repository, clock=clock)

    async def scenario():  # type: ignore[no-untyped-def]
        meal = await service.create_meal()
        await service.edit_meal(meal.id, ["burger", "fries"])
        same_day = await service.check_rollover()
        clock.now = datetime(2024, 3, 11, 0, 1, tzinfo=UTC)
        next_day = await service.check_rollover()
        await service.wait_for_background_tasks()
        return same_day, next_day

    same_day, next_day = asyncio.run(scenario())

    assert same_day is False
    assert next_day is True
    assert service.meals == ()
    assert service.mood_state == NEUTRAL_MOOD_STATE
    assert service.last_reset_date == clock.now
    snapshot = service.archive.get(datetime(2024, 3, 10, tzinfo=UTC))
    assert snapshot is not None
    assert snapshot.meal_count == 1
    assert snapshot.mood_state.mood == Mood.OVERWHELMED
    assert len(repository.saved[-1].snapshots) == 1
    assert repository.saved[-1].meals == ()


def test_create_meal_after_midnight_rolls_over_first() -> None:
    clock = FakeClock(datetime(2024, 3, 10, 20, tzinfo=UTC))
    service = build_session(clock=clock)

    async def scenario():  # type: ignore[no-untyped-def]
        await service.create_meal()
        clock.now = datetime(2024, 3, 11, 7, tzinfo=UTC)
        meal = await service.create_meal()
        await service.wait_for_background_tasks()
        return meal

    meal = asyncio.run(scenario())

    assert service.meals == (meal,)
    assert len(service.archive) == 1


def test_archive_current_day_keeps_working_set() -> None:
    service = build_session()

    async def scenario():  # type: ignore[no-untyped-def]
        meal = await service.create_meal()
        await service.edit_meal(meal.id, ["salad"])
        first = await service.archive_current_day()
        await service.edit_meal(meal.id, ["salad", "fruit"])
        second = await service.archive_current_day()
        await service.wait_for_background_tasks()
        return first, second

    first, second = asyncio.run(scenario())

    assert len(service.meals) == 1
    assert len(service.archive) == 1
    assert first.date == second.date
    assert service.archive.snapshots[0] == second


def test_load_restores_state_and_rolls_over_stale_day() -> None:
    yesterday = datetime(2024, 3, 9, 18, tzinfo=UTC)
    saved_state = PersistedState(
        meals=(make_meal(uuid4(), yesterday, 0.9, "salad"),),
        mood_state=MoodState(0.9, Mood.SERENE),
        last_reset_date=yesterday,
        last_sync_date=datetime(2024, 3, 9, 20, tzinfo=UTC),
    )
    repository = InMemoryStateRepository(state=saved_state)
    service = build_session(repository=repository)

    async def scenario() -> None:
        await service.load()
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    assert service.meals == ()
    assert service.mood_state == NEUTRAL_MOOD_STATE
    assert service.archive.last_sync_date == saved_state.last_sync_date
    snapshot = service.archive.get(yesterday)
    assert snapshot is not None
    assert snapshot.mood_state == MoodState(0.9, Mood.SERENE)


def test_load_keeps_same_day_state() -> None:
    clock = FakeClock(datetime(2024, 3, 10, 18, tzinfo=UTC))
    meal = make_meal(uuid4(), clock.now, 0.8, "salad")
    repository = InMemoryStateRepository(
        state=PersistedState(
            meals=(meal,),
            mood_state=MoodState(0.9, Mood.SERENE),
            last_reset_date=datetime(2024, 3, 10, 0, 1, tzinfo=UTC),
        )
    )
    service = build_session(repository=repository, clock=clock)

    asyncio.run(service.load())

    assert service.meals == (meal,)
    assert service.mood_state == MoodState(0.9, Mood.SERENE)
    assert len(service.archive) == 0


def test_refinement_replaces_local_score() -> None:
    client = FakeMealAnalysisClient(
        responses={"pasta": {"healthScore": 0.2, "mood": "overwhelmed"}}
    )
    service = build_session(client=client)

    async def scenario():  # type: ignore[no-untyped-def]
        meal = await service.create_meal()
        local = await service.edit_meal(meal.id, ["pasta"])
        await service.wait_for_background_tasks()
        return local

    local = asyncio.run(scenario())

    assert local is not None
    assert local.health_score == pytest.approx(0.5)
    assert service.meals[0].health_score == pytest.approx(0.2)
    assert service.mood_state.mood == Mood.OVERWHELMED
    assert client.calls == ["pasta"]


def test_stale_refinement_is_discarded() -> None:
    client = FakeMealAnalysisClient(
        responses={
            "pizza": {"healthScore": 0.1, "mood": "overwhelmed"},
            "quinoa": {"healthScore": 0.9, "mood": "serene"},
        }
    )
    service = build_session(client=client)

    async def scenario() -> None:
        pizza_gate = asyncio.Event()
        client.gates["pizza"] = pizza_gate
        meal = await service.create_meal()
        await service.edit_meal(meal.id, ["pizza"])
        await service.edit_meal(meal.id, ["quinoa"])
        await asyncio.sleep(0)
        pizza_gate.set()
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    assert service.meals[0].items == ("quinoa",)
    assert service.meals[0].health_score == pytest.approx(0.9)
    assert service.mood_state.mood == Mood.SERENE


def test_refinement_for_deleted_meal_is_discarded() -> None:
    client = FakeMealAnalysisClient()
    service = build_session(client=client)

    async def scenario() -> None:
        gate = asyncio.Event()
        client.gates["soup"] = gate
        meal = await service.create_meal()
        await service.edit_meal(meal.id, ["soup"])
        await service.delete_meal(meal.id)
        gate.set()
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    assert service.meals == ()
    assert service.mood_state == NEUTRAL_MOOD_STATE


def test_failed_refinement_keeps_local_score(
    caplog: pytest.LogCaptureFixture,
) -> None:
    client = FakeMealAnalysisClient(error=RuntimeError("quota exceeded"))
    service = build_session(client=client)

    async def scenario() -> None:
        meal = await service.create_meal()
        await service.edit_meal(meal.id, ["green salad"])
        await service.wait_for_background_tasks()

    with caplog.at_level(logging.WARNING):
        asyncio.run(scenario())

    assert service.meals[0].health_score == pytest.approx(0.7)
    assert service.mood_state.mood == Mood.SERENE
    assert "keeping local score" in caplog.text


def test_empty_edit_skips_refinement() -> None:
    client = FakeMealAnalysisClient()
    service = build_session(client=client)

    async def scenario() -> None:
        meal = await service.create_meal()
        await service.edit_meal(meal.id, [])
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    assert client.calls == []


def test_save_failures_are_logged_not_raised(
    caplog: pytest.LogCaptureFixture,
) -> None:
    service = build_session(repository=InMemoryStateRepository(fail_on_save=True))

    async def scenario():  # type: ignore[no-untyped-def]
        meal = await service.create_meal()
        edited = await service.edit_meal(meal.id, ["fruit"])
        await service.wait_for_background_tasks()
        return edited

    edited = asyncio.run(scenario())

    assert edited is not None
    assert "Failed to save journal state" in caplog.text


def test_writes_preserve_mutation_order() -> None:
    repository = InMemoryStateRepository()
    service = build_session(repository=repository)

    async def scenario() -> None:
        meal = await service.create_meal()
        for items in (["pizza"], ["salad"], ["fruit", "water"]):
            await service.edit_meal(meal.id, items)
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    descriptions = [
        state.meals[0].description for state in repository.saved if state.meals
    ]
    assert descriptions[-1] == "fruit, water"
    assert descriptions.index("pizza") < descriptions.index("salad")
    assert repository.saved[-1].mood_state == service.mood_state


def test_rollover_monitor_archives_after_midnight() -> None:
    clock = FakeClock(datetime(2024, 3, 10, 23, 59, tzinfo=UTC))
    service = build_session(clock=clock, rollover_interval_seconds=0.01)

    async def scenario() -> None:
        await service.create_meal()
        stop = asyncio.Event()
        monitor = asyncio.create_task(service.run_rollover_monitor(stop))
        clock.now = clock.now + timedelta(minutes=2)
        await asyncio.sleep(0.05)
        stop.set()
        await monitor
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    assert service.meals == ()
    assert len(service.archive) == 1


def test_save_state_persists_sync_marker() -> None:
    repository = InMemoryStateRepository()
    service = build_session(repository=repository)
    synced_at = datetime(2024, 3, 10, 9, tzinfo=UTC)

    async def scenario() -> None:
        service.archive.mark_synced(synced_at)
        await service.save_state()
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    assert repository.saved[-1].last_sync_date == synced_at


@dataclass
class RecordingPreferenceStore(InMemoryPreferenceStore):
    """Remembers the thread that served each read."""

    reads: list[tuple[str, int]] = field(default_factory=list)

    def get(self, key: str) -> object | None:
        self.reads.append((key, threading.get_ident()))
        return super().get(key)


def test_edit_reads_profile_once_off_the_event_loop() -> None:
    preferences = RecordingPreferenceStore(store_with_metrics().values)
    service = build_session(preferences=preferences)
    loop_thread = threading.get_ident()

    async def scenario() -> None:
        meal = await service.create_meal()
        preferences.reads.clear()
        await service.edit_meal(meal.id, ["fried samosa"])
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    assert len(preferences.reads) == 6
    assert all(thread != loop_thread for _, thread in preferences.reads)


def test_refinement_with_unparseable_score_is_neutral() -> None:
    client = FakeMealAnalysisClient(
        responses={"stew": {"healthScore": "unknown", "mood": "serene"}}
    )
    service = build_session(client=client)

    async def scenario() -> None:
        meal = await service.create_meal()
        await service.edit_meal(meal.id, ["stew"])
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    assert service.meals[0].health_score == pytest.approx(0.5)
    assert service.mood_state.mood == Mood.NEUTRAL


def test_reset_day_clears_working_set_and_keeps_reset_date() -> None:
    clock = FakeClock(datetime(2024, 3, 10, 12, tzinfo=UTC))
    repository = InMemoryStateRepository()
    service = build_session(repository=repository, clock=clock)
    started = service.last_reset_date

    async def scenario() -> None:
        meal = await service.create_meal()
        await service.edit_meal(meal.id, ["pizza", "coke"])
        clock.now = datetime(2024, 3, 10, 18, tzinfo=UTC)
        await service.reset_day()
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    assert service.meals == ()
    assert service.mood_state == NEUTRAL_MOOD_STATE
    assert service.last_reset_date == started
    assert len(service.archive) == 0
    assert repository.saved[-1].meals == ()
    assert repository.saved[-1].last_reset_date == started


def test_rollover_after_reset_archives_only_later_meals() -> None:
    clock = FakeClock(datetime(2024, 3, 10, 12, tzinfo=UTC))
    service = build_session(clock=clock)

    async def scenario() -> None:
        first = await service.create_meal()
        await service.edit_meal(first.id, ["burger", "fries"])
        await service.archive_current_day()
        await service.reset_day()
        second = await service.create_meal()
        await service.edit_meal(second.id, ["green salad"])
        clock.now = datetime(2024, 3, 11, 0, 1, tzinfo=UTC)
        await service.check_rollover()
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    (snapshot,) = service.archive.snapshots
    assert snapshot.meal_count == 1
    assert snapshot.meals[0].items == ("green salad",)


def test_refinement_after_reset_is_discarded() -> None:
    client = FakeMealAnalysisClient(
        responses={"soup": {"healthScore": 0.9, "mood": "serene"}}
    )
    service = build_session(client=client)

    async def scenario() -> None:
        gate = asyncio.Event()
        client.gates["soup"] = gate
        meal = await service.create_meal()
        await service.edit_meal(meal.id, ["soup"])
        await service.reset_day()
        gate.set()
        await service.wait_for_background_tasks()

    asyncio.run(scenario())

    assert service.meals == ()
    assert service.mood_state == NEUTRAL_MOOD_STATE
