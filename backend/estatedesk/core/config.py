"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "EstateDesk"
    debug: bool = False
    api_v1_prefix: str = "/v1"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"

    # Database
    database_url: str = "postgresql+asyncpg://localhost/estatedesk"
    sql_echo: bool = False

    # Firebase Auth
    firebase_project_id: Optional[str] = None
    google_application_credentials: Optional[str] = None

    # Units
    history_display_limit: int = 10
    default_per_page: int = 20
    min_per_page: int = 10
    max_per_page: int = 100

    # Board client
    api_base_url: str = "http://localhost:8000/v1"
    api_timeout_seconds: float = 10.0

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
