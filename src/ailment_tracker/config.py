"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

from ailment_tracker.constants import CACHE_TTL, DEFAULT_CACHE_DIR


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///ailments.db"

    # Cache
    cache_enabled: bool = True
    cache_dir: Path = DEFAULT_CACHE_DIR
    cache_ttl: int = CACHE_TTL

    # Remote endpoints used by views that talk to a running API
    api_base_url: str = "http://localhost:8000"
    push_url: str = "ws://localhost:8000/subscriptions"

    # Sync
    version_check: bool = True

    # App Settings
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
