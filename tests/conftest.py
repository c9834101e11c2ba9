"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path
from uuid import UUID

import pytest

from yoga_of_eating.config import Settings
from yoga_of_eating.domain.history import DailySnapshot, PersistedState
from yoga_of_eating.domain.meals import MealEntry, MealType
from yoga_of_eating.services.archive import DailyArchive
from yoga_of_eating.services.health_profile import (
    AGE_KEY,
    GENDER_KEY,
    HEIGHT_KEY,
    UNIT_SYSTEM_KEY,
    WEIGHT_KEY,
    HealthProfileService,
    PreferenceStore,
)
from yoga_of_eating.services.meal_analysis import (
    MealAnalysisClient,
    MealAnalysisService,
)
from yoga_of_eating.services.scoring import (
    HeuristicMealScorer,
    MealScorer,
    RefiningMealScorer,
)
from yoga_of_eating.services.session import SessionService, StateRepository
from yoga_of_eating.services.sync import AuthProvider, CloudSyncRepository


@dataclass
class InMemoryPreferenceStore(PreferenceStore):
    """In-memory preference store for tests."""

    values: dict[str, object] = field(default_factory=dict)

    def get(self, key: str) -> object | None:
        return self.values.get(key)

    def set(self, key: str, value: object) -> None:
        self.values[key] = value


@dataclass
class InMemoryStateRepository(StateRepository):
    """State repository that records every save."""

    state: PersistedState | None = None
    saved: list[PersistedState] = field(default_factory=list)
    fail_on_save: bool = False

    def load(self) -> PersistedState | None:
        return self.state

    def save(self, state: PersistedState) -> None:
        if self.fail_on_save:
            raise OSError("disk full")
        self.saved.append(state)
        self.state = state


@dataclass
class FakeMealAnalysisClient(MealAnalysisClient):
    """Returns canned payloads; descriptions listed in ``gates`` block."""

    responses: dict[str, dict[str, object]] = field(default_factory=dict)
    default: dict[str, object] = field(
        default_factory=lambda: {"healthScore": 0.5, "mood": "neutral"}
    )
    error: Exception | None = None
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    async def analyze(self, description: str) -> dict[str, object]:
        self.calls.append(description)
        gate = self.gates.get(description)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        return self.responses.get(description, self.default)


@dataclass
class FakeCloudSyncRepository(CloudSyncRepository):
    """Cloud snapshot store kept in memory."""

    remote: list[DailySnapshot] = field(default_factory=list)
    uploaded: list[tuple[str, DailySnapshot]] = field(default_factory=list)
    fail_on_day: date | None = None
    fail_fetch: bool = False

    def upload(self, snapshot: DailySnapshot, user_id: str) -> None:
        if self.fail_on_day is not None and snapshot.date.date() == self.fail_on_day:
            raise RuntimeError("network unavailable")
        self.uploaded.append((user_id, snapshot))

    def fetch_all(self, user_id: str) -> list[DailySnapshot]:
        if self.fail_fetch:
            raise RuntimeError("network unavailable")
        return list(self.remote)


@dataclass
class FakeAuthProvider(AuthProvider):
    """Auth provider with a settable user id."""

    user_id: str | None = "user-1"

    def current_user_id(self) -> str | None:
        return self.user_id


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 3, 10, 8, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now


def make_meal(meal_id: UUID, day: datetime, score: float, *items: str) -> MealEntry:
    return MealEntry(
        id=meal_id,
        timestamp=day,
        meal_type=MealType.LUNCH,
        items=tuple(items),
        health_score=score,
    )


def store_with_metrics(
    height: object = 173, weight: object = 69, age: object = 28
) -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore(
        {
            HEIGHT_KEY: height,
            WEIGHT_KEY: weight,
            AGE_KEY: age,
            GENDER_KEY: 1,
            UNIT_SYSTEM_KEY: 0,
        }
    )


def build_session(
    *,
    repository: InMemoryStateRepository | None = None,
    client: FakeMealAnalysisClient | None = None,
    clock: FakeClock | None = None,
    preferences: InMemoryPreferenceStore | None = None,
    rollover_interval_seconds: float = 60.0,
) -> SessionService:
    heuristic = HeuristicMealScorer(
        HealthProfileService(preferences or InMemoryPreferenceStore())
    )
    scorer: MealScorer = heuristic
    if client is not None:
        scorer = RefiningMealScorer(heuristic, MealAnalysisService(client))
    return SessionService(
        scorer=scorer,
        state_repository=repository or InMemoryStateRepository(),
        archive=DailyArchive(UTC),
        clock=clock or FakeClock(),
        rollover_interval_seconds=rollover_interval_seconds,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(data_dir=tmp_path, timezone="UTC")
