"""Application configuration using Pydantic BaseSettings.

Loads settings from environment variables (or a ``.env`` file) with
defaults suitable for running the tracker locally.  The same settings object
serves both the Remote Store service and the sync client.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Persistence
    data_file: str = Field(
        default="data/subjects.json",
        description="Path of the JSON document holding config and subjects",
    )

    # Service
    host: str = Field(default="127.0.0.1", description="Bind address for the API")
    port: int = Field(default=3000, description="Bind port for the API")

    # Client
    api_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL the sync client uses to reach the Remote Store",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout for the sync client",
    )

    # Display fallbacks for an unset brand
    default_brand_title: str = Field(
        default="Study Tracker", description="Shown when brandTitle is empty"
    )
    default_brand_subtitle: str = Field(
        default="Exam Preparation", description="Shown when brandSubtitle is empty"
    )

    # Runtime
    log_level: str = Field(default="INFO", description="Python logging level")
    debug: bool = Field(default=False, description="Enable FastAPI debug mode")
    app_version: str = Field(default="1.0.0", description="Application version string")


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Returns:
        The application settings, loaded from environment on first call.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
