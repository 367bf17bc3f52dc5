"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    upload_dir: Path = Path("uploads")
    uploads_url_prefix: str = "/uploads"
    max_upload_bytes: int = 5 * 1024 * 1024
    game_ttl_hours: float = 24
    reaper_interval_minutes: float = 60
    session_duration_hours: float = 12
    max_renewals: int = 2
    poll_interval_seconds: float = 10
    api_base_url: str = "http://localhost:3001/api"
    session_file: Path = Path(".life4today_session.json")
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="LIFE4TODAY_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def session_duration_ms(self) -> int:
        """Session window length in milliseconds."""
        return int(self.session_duration_hours * 60 * 60 * 1000)
