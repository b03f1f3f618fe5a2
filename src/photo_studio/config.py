"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    upload_base_url: str
    upload_timeout_seconds: float | None = 30.0
    camera_index: int = 0
    countdown_interval_seconds: float = 1.0
    cooldown_seconds: float = 0.4
    shots_per_session: int = 3
    max_frame_misses: int = 3
    preprocess_max_width: int = 800
    preprocess_quality: int = 80
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
