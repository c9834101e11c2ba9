"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from yoga_of_eating.adapters.httpx_meal_analysis_client import (
    HttpxMealAnalysisClient,
)
from yoga_of_eating.adapters.json_file_preference_store import (
    JsonFilePreferenceStore,
)
from yoga_of_eating.adapters.json_file_state_repository import (
    JsonFileStateRepository,
)
from yoga_of_eating.adapters.openai_meal_analysis_client import (
    OpenAIMealAnalysisClient,
)
from yoga_of_eating.adapters.supabase_auth_provider import SupabaseAuthProvider
from yoga_of_eating.adapters.supabase_snapshot_repository import (
    SupabaseSnapshotRepository,
)
from yoga_of_eating.config import MealAnalysisProvider, Settings
from yoga_of_eating.services.archive import DailyArchive
from yoga_of_eating.services.health_profile import HealthProfileService
from yoga_of_eating.services.meal_analysis import MealAnalysisService
from yoga_of_eating.services.scoring import (
    HeuristicMealScorer,
    MealScorer,
    RefiningMealScorer,
)
from yoga_of_eating.services.session import SessionService
from yoga_of_eating.services.sync import CloudSyncService

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    health_profile_service: HealthProfileService
    scorer: MealScorer
    archive: DailyArchive
    session_service: SessionService
    cloud_sync_service: CloudSyncService | None
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    health_profile_service = HealthProfileService(
        JsonFilePreferenceStore(resolved_settings.preferences_path)
    )
    heuristic = HeuristicMealScorer(health_profile_service)
    scorer: MealScorer = heuristic
    closers: list[Callable[[], Awaitable[None]]] = []

    provider = resolved_settings.meal_analysis_provider
    if provider is MealAnalysisProvider.HTTP:
        if not resolved_settings.meal_analysis_url:
            raise ValueError("MEAL_ANALYSIS_URL is required for the http provider")
        http_client = HttpxMealAnalysisClient.create(
            resolved_settings.meal_analysis_url,
            timeout=resolved_settings.meal_analysis_timeout_seconds,
        )
        closers.append(http_client.close)
        scorer = RefiningMealScorer(heuristic, MealAnalysisService(http_client))
    elif provider is MealAnalysisProvider.OPENAI:
        if not resolved_settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai provider")
        openai_client = OpenAIMealAnalysisClient.create(
            api_key=resolved_settings.openai_api_key,
            model=resolved_settings.openai_model,
            store=resolved_settings.openai_store,
        )
        closers.append(openai_client.close)
        scorer = RefiningMealScorer(heuristic, MealAnalysisService(openai_client))

    archive = DailyArchive(resolved_settings.tzinfo)
    session_service = SessionService(
        scorer=scorer,
        state_repository=JsonFileStateRepository(resolved_settings.state_path),
        archive=archive,
        rollover_interval_seconds=resolved_settings.rollover_interval_seconds,
    )

    cloud_sync_service = None
    if resolved_settings.cloud_sync_enabled:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        cloud_sync_service = CloudSyncService(
            repository=SupabaseSnapshotRepository(supabase_client),
            auth=SupabaseAuthProvider(supabase_client),
        )
    else:
        _logger.info("Supabase is not configured; cloud sync disabled")

    async def close_resources() -> None:
        await session_service.wait_for_background_tasks()
        for close in closers:
            await close()

    return AppContainer(
        settings=resolved_settings,
        health_profile_service=health_profile_service,
        scorer=scorer,
        archive=archive,
        session_service=session_service,
        cloud_sync_service=cloud_sync_service,
        close_resources=close_resources,
    )
