"""Application configuration managed via environment variables."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Pulse Planner Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://pulse@localhost:5432/pulse"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "pulse-planner"

    openai_api_key: str | None = None
    openai_base_url: str | None = None
    generation_model: str = "gpt-4o-mini"
    generation_temperature: float = 0.7
    generation_top_p: float = 0.95
    generation_top_k: int | None = None
    generation_max_output_tokens: int = 2048
    generation_timeout_seconds: float = 30.0

    ai_features_enabled: bool = True
    daily_brain_enabled: bool = False
    aggregate_window_days: int = 14
    profile_window_days: int = 30
    energy_window_days: int = 14
    input_max_length: int = 2000

    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    daily_job_hour: int = 5
    daily_job_minute: int = 0
    jobs_run_on_startup: bool = False
    cron_secret: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()


@dataclass(frozen=True)
class PlannerConfig:
    """Explicit per-call configuration for the planning pipeline."""

    ai_enabled: bool = True
    aggregate_window_days: int = 14
    profile_window_days: int = 30
    energy_window_days: int = 14
    input_max_length: int = 2000

    @classmethod
    def from_settings(cls, source: Settings) -> "PlannerConfig":
        return cls(
            ai_enabled=source.ai_features_enabled,
            aggregate_window_days=source.aggregate_window_days,
            profile_window_days=source.profile_window_days,
            energy_window_days=source.energy_window_days,
            input_max_length=source.input_max_length,
        )
