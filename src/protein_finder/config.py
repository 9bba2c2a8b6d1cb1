"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    environment: str = _ENVIRONMENT
    log_level: str = "INFO"
    data_dir: Path | None = None
    recent_restaurants_limit: int = 3
    popular_restaurants_limit: int = 10
    suggestion_limit: int = 10
    ranking_page_size: int = 5
    cart_session_ttl_seconds: int = 7 * 24 * 60 * 60
    session_cookie_name: str = "pf_session"
    supabase_url: str | None = None
    supabase_service_key: str | None = None

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def uses_supabase(self) -> bool:
        """True when both Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_service_key)
