"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

from oncosaferx.constants import DEFAULT_STORAGE_DIR


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Hosted backend (Supabase)
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Integration test account (tests/integration only)
    test_user_email: str | None = None
    test_user_password: str | None = None

    # Application backend
    backend_api_url: str = "http://localhost:3000"

    # Analytics
    analytics_salt: str = ""

    # Local JSON blob storage
    storage_dir: Path = DEFAULT_STORAGE_DIR

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
