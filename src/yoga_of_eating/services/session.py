"""Journal session: meal edits, mood updates and day rollover."""

import asyncio
import logging
from collections.abc import Callable, Coroutine, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import UUID, uuid4

from yoga_of_eating.domain.history import DailySnapshot, PersistedState, day_key
from yoga_of_eating.domain.meals import MealEntry, MealType, suggested_meal_type
from yoga_of_eating.domain.mood import NEUTRAL_MOOD_STATE, MoodState
from yoga_of_eating.services.archive import DailyArchive
from yoga_of_eating.services.mood import state_for_meals
from yoga_of_eating.services.scoring import MealScorer, ScoringContext

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class StateRepository(Protocol):
    """Persistence interface for the working set and archive."""

    def load(self) -> PersistedState | None:
        """Return the last saved state, if any."""

    def save(self, state: PersistedState) -> None:
        """Persist a full state snapshot."""


@dataclass
class SessionService:
    """Single owner of the current day's meals and mood state.

    Every mutation runs under one lock, including the rollover monitor and
    remote score refinements. Persistence runs in background tasks that
    write an immutable copy of the state in the order it was produced.
    """

    scorer: MealScorer
    state_repository: StateRepository
    archive: DailyArchive
    clock: Callable[[], datetime] = field(default=_utc_now)
    rollover_interval_seconds: float = 60.0
    _meals: list[MealEntry] = field(default_factory=list, init=False)
    _mood_state: MoodState = field(default=NEUTRAL_MOOD_STATE, init=False)
    _last_reset_date: datetime = field(init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    _write_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    _generations: dict[UUID, int] = field(default_factory=dict, init=False)
    _background_tasks: set[asyncio.Task[None]] = field(
        default_factory=set, init=False
    )

    def __post_init__(self) -> None:
        self._last_reset_date = self.clock()

    @property
    def meals(self) -> tuple[MealEntry, ...]:
        """Meals logged for the current day."""
        return tuple(self._meals)

    @property
    def mood_state(self) -> MoodState:
        """Current smiley state."""
        return self._mood_state

    @property
    def last_reset_date(self) -> datetime:
        """Timestamp of the last day reset."""
        return self._last_reset_date

    async def load(self) -> None:
        """Restore persisted state, then archive the day if it has passed."""
        async with self._lock:
            try:
                state = await asyncio.to_thread(self.state_repository.load)
            except Exception:
                _logger.exception("Failed to load saved journal state")
                state = None
            if state is not None:
                self._meals = list(state.meals)
                self._mood_state = state.mood_state
                self._last_reset_date = state.last_reset_date
                for snapshot in state.snapshots:
                    self.archive.upsert(snapshot)
                if state.last_sync_date is not None:
                    self.archive.mark_synced(state.last_sync_date)
                _logger.info(
                    "Loaded journal with %s meals and %s archived days",
                    len(self._meals),
                    len(self.archive),
                )
            self._rollover_if_needed(self.clock())

    async def create_meal(self, meal_type: MealType | None = None) -> MealEntry:
        """Append an empty meal, typed by the time of day when not given."""
        async with self._lock:
            now = self.clock()
            self._rollover_if_needed(now)
            resolved_type = meal_type or suggested_meal_type(
                now.astimezone(self.archive.tz).hour
            )
            meal = MealEntry(id=uuid4(), timestamp=now, meal_type=resolved_type)
            self._meals.append(meal)
            self._persist()
            return meal

    async def edit_meal(
        self,
        meal_id: UUID,
        items: Sequence[str],
        meal_type: MealType | None = None,
    ) -> MealEntry | None:
        """Apply a committed edit to a meal and advance the mood state.

        Callers batch keystrokes; one call is one committed edit. When the
        scorer supports refinement a remote analysis is started and applied
        later unless the meal was edited again in the meantime.
        """
        context = await asyncio.to_thread(self.scorer.load_context)
        async with self._lock:
            index = self._index_of(meal_id)
            if index is None:
                _logger.debug("Ignoring edit for unknown meal %s", meal_id)
                return None
            current = self._meals[index]
            cleaned = tuple(items)
            description = ", ".join(cleaned)
            meal = replace(
                current,
                items=cleaned,
                meal_type=meal_type or current.meal_type,
                health_score=self.scorer.score(description, context),
            )
            self._meals[index] = meal
            self._persist()
            self._advance_mood(context)
            self._persist()

            generation = self._generations.get(meal_id, 0) + 1
            self._generations[meal_id] = generation
            if self.scorer.supports_refinement and description:
                self._spawn(self._refine(meal_id, generation, description))
            return meal

    async def edit_meal_description(
        self, meal_id: UUID, description: str
    ) -> MealEntry | None:
        """Edit a meal from a single free-text description."""
        items = [description] if description else []
        return await self.edit_meal(meal_id, items)

    async def delete_meal(self, meal_id: UUID) -> bool:
        """Remove a meal and re-derive the mood state from the rest."""
        context = await asyncio.to_thread(self.scorer.load_context)
        async with self._lock:
            index = self._index_of(meal_id)
            if index is None:
                return False
            del self._meals[index]
            self._generations.pop(meal_id, None)
            self._advance_mood(context)
            self._persist()
            return True

    async def check_rollover(self, now: datetime | None = None) -> bool:
        """Archive and reset when ``now`` is past the last reset day."""
        async with self._lock:
            return self._rollover_if_needed(now or self.clock())

    async def archive_current_day(self) -> DailySnapshot:
        """Snapshot the working set into the archive without clearing it."""
        async with self._lock:
            snapshot = self._archive_current_day()
            self._persist()
            return snapshot

    async def reset_day(self) -> None:
        """Clear the working set without archiving it.

        ``last_reset_date`` is left alone, so the next rollover still
        archives this day. That snapshot holds only the meals logged after
        the reset and replaces any snapshot already archived for the day.
        """
        async with self._lock:
            self._meals = []
            self._generations.clear()
            self._mood_state = NEUTRAL_MOOD_STATE
            self._persist()
            _logger.info("Working set cleared by manual reset")

    async def save_state(self) -> None:
        """Persist the current state, e.g. after the archive was synced."""
        async with self._lock:
            self._persist()

    async def run_rollover_monitor(
        self, stop_event: asyncio.Event | None = None
    ) -> None:
        """Poll for day rollover until ``stop_event`` is set."""
        stop = stop_event or asyncio.Event()
        while not stop.is_set():
            try:
                await asyncio.wait_for(
                    stop.wait(), timeout=self.rollover_interval_seconds
                )
            except TimeoutError:
                await self.check_rollover()

    async def wait_for_background_tasks(self) -> None:
        """Wait until pending refinements and writes have finished."""
        while self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    async def _refine(self, meal_id: UUID, generation: int, description: str) -> None:
        try:
            analysis = await self.scorer.refine(description)
        except Exception as exc:
            _logger.warning(
                "Meal analysis failed for %s, keeping local score: %s", meal_id, exc
            )
            return

        context = await asyncio.to_thread(self.scorer.load_context)
        async with self._lock:
            if self._generations.get(meal_id) != generation:
                _logger.info("Discarding stale analysis for meal %s", meal_id)
                return
            index = self._index_of(meal_id)
            if index is None:
                return
            self._meals[index] = replace(
                self._meals[index], health_score=analysis.health_score
            )
            self._persist()
            self._advance_mood(context)
            self._persist()
            _logger.info(
                "Applied analysis for meal %s: score=%.2f mood=%s",
                meal_id,
                analysis.health_score,
                self._mood_state.mood,
            )

    def _rollover_if_needed(self, now: datetime) -> bool:
        tz = self.archive.tz
        if day_key(now, tz) == day_key(self._last_reset_date, tz):
            return False
        snapshot = self._archive_current_day()
        _logger.info(
            "Day rolled over; archived %s with %s meals",
            snapshot.date.date().isoformat(),
            snapshot.meal_count,
        )
        self._meals = []
        self._generations.clear()
        self._mood_state = NEUTRAL_MOOD_STATE
        self._last_reset_date = now
        self._persist()
        return True

    def _archive_current_day(self) -> DailySnapshot:
        snapshot = DailySnapshot.build(
            meals=self._meals,
            mood_state=self._mood_state,
            day=self._last_reset_date,
            tz=self.archive.tz,
        )
        self.archive.upsert(snapshot)
        return snapshot

    def _advance_mood(self, context: ScoringContext) -> None:
        self._mood_state = state_for_meals(
            self._mood_state, self._meals, self.scorer.sensitivity(context)
        )

    def _index_of(self, meal_id: UUID) -> int | None:
        for index, meal in enumerate(self._meals):
            if meal.id == meal_id:
                return index
        return None

    def _persist(self) -> None:
        state = PersistedState(
            meals=tuple(self._meals),
            mood_state=self._mood_state,
            last_reset_date=self._last_reset_date,
            snapshots=self.archive.snapshots,
            last_sync_date=self.archive.last_sync_date,
        )
        self._spawn(self._write(state))

    async def _write(self, state: PersistedState) -> None:
        async with self._write_lock:
            try:
                await asyncio.to_thread(self.state_repository.save, state)
            except Exception:
                _logger.exception("Failed to save journal state")

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
