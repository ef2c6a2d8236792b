"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "HabitLoop Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://habitloop@localhost:5432/habitloop"
    timezone: str = "UTC"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "habitloop"
    scheduler_enabled: bool = False
    daily_job_hour: int = 0
    daily_job_minute: int = 5
    sync_interval_minutes: int = 30
    jobs_run_on_startup: bool = False
    default_duration_days: int = 30
    initial_generation_days: int = 7
    fallback_daily_target: int = 10
    consistency_range_days: int = 7
    remote_provider: str = "noop"
    remote_snapshot_path: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
