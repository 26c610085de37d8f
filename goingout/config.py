"""
Runtime configuration helpers for the GoingOut API.

Loads DATABASE_URL and the feature knobs from the process environment,
falling back to the .env file located in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]

ENV_PATH = BASE_DIR / ".env"

# Platform-provided variables win over .env defaults
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Required field, must come from the environment or .env
    database_url: str = Field(..., alias="DATABASE_URL")

    app_name: str = Field(default="GoingOut API", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")

    # Feed
    post_ttl_hours: int = Field(default=24, alias="POST_TTL_HOURS")
    feed_page_size: int = Field(default=20, alias="FEED_PAGE_SIZE")
    default_radius_km: float = Field(default=10.0, alias="DEFAULT_RADIUS_KM")
    default_location: str = Field(default="Bloomington, IN", alias="DEFAULT_LOCATION")

    # Expo push
    expo_push_url: str = Field(default="https://exp.host/--/api/v2/push/send", alias="EXPO_PUSH_URL")
    expo_push_enabled: bool = Field(default=True, alias="EXPO_PUSH_ENABLED")
    expo_push_timeout: float = Field(default=10.0, alias="EXPO_PUSH_TIMEOUT")

    # Housekeeping
    cleanup_retention_hours: int = Field(default=48, alias="CLEANUP_RETENTION_HOURS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
