"""
Application configuration.

Settings are loaded from environment variables (and an optional .env file)
via pydantic-settings. Retention constants live here so the engine can be
driven with explicit values in tests.
"""
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Supabase
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_SERVICE_KEY: str = ""
    # Rows per ranged read; PostgREST also caps each response at its max-rows.
    SUPABASE_PAGE_SIZE: int = Field(default=1000, ge=1)

    # API
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Retention
    DEFAULT_RETENTION_DAYS: int = Field(default=30, ge=0)
    # One batch is one atomic delete; capped at 500 rows per write.
    RETENTION_BATCH_SIZE: int = Field(default=100, ge=1, le=500)
    RETENTION_BATCH_PAUSE_SECONDS: float = Field(default=1.0, ge=0)
    RETENTION_USER_PAUSE_SECONDS: float = Field(default=0.5, ge=0)
    RETENTION_CLEANUP_INTERVAL_SECONDS: int = Field(default=86400, ge=1)
    RETENTION_SCHEDULER_ENABLED: bool = True
    RETENTION_FLAT_COLLECTIONS: List[str] = ["activities", "contributions", "aiMessages"]

    # Tables
    USERS_TABLE: str = "users"
    USER_ACTIVITIES_TABLE: str = "user_activities"
    ACTIVITY_SUMMARIES_TABLE: str = "activity_summaries"


settings = Settings()
