"""
Centralized configuration for the PracticeHub client.

All settings are loaded from environment variables with sensible defaults.
Concern-specific settings are namespaced by prefix (e.g., API_*, CHAT_*).
"""

from functools import lru_cache
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_storage_path() -> Path:
    return Path.home() / ".practicehub" / "storage.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "PracticeHub Client"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "WARNING"

    # Backend API
    api_base_url: str = "http://localhost:5000/api"
    request_timeout: float = 30.0  # seconds

    # Persisted client state
    storage_path: Path = Field(default_factory=_default_storage_path)
    auth_storage_key: str = "auth-storage"

    # Chat
    chat_poll_interval: float = Field(default=3.0, gt=0)  # seconds

    # Navigation
    login_path: str = "/login"

    @property
    def effective_log_level(self) -> str:
        """DEBUG when debugging, otherwise the configured level."""
        return "DEBUG" if self.debug else self.log_level.upper()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
