"""Application configuration."""

import os
from uuid import UUID

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    account_id: UUID
    api_token: str | None = None
    default_route: str = "SubQ"
    progress_segments: int = 10
    strict_frequencies: bool = False
    demo_history: bool = False
    timezone: str = "UTC"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
