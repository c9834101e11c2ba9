"""Application configuration."""

import os
from enum import StrEnum
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class MealAnalysisProvider(StrEnum):
    """Which remote analyzer refines local meal scores."""

    NONE = "none"
    HTTP = "http"
    OPENAI = "openai"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    data_dir: Path = Path("~/.yoga_of_eating")
    state_file_name: str = "yoga_of_eating_data.json"
    preferences_file_name: str = "preferences.json"
    timezone: str = "UTC"
    rollover_interval_seconds: float = 60.0
    meal_analysis_provider: MealAnalysisProvider = MealAnalysisProvider.NONE
    meal_analysis_url: str | None = None
    meal_analysis_timeout_seconds: float = 15.0
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    openai_store: bool = False
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def state_path(self) -> Path:
        """Location of the journal state document."""
        return self.data_dir.expanduser() / self.state_file_name

    @property
    def preferences_path(self) -> Path:
        """Location of the preferences document."""
        return self.data_dir.expanduser() / self.preferences_file_name

    @property
    def tzinfo(self) -> ZoneInfo:
        """Zone used to decide which calendar day a meal belongs to."""
        return ZoneInfo(self.timezone)

    @property
    def cloud_sync_enabled(self) -> bool:
        """True when Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_service_key)
