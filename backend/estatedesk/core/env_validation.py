"""
Startup environment validation.

Checks the configuration a deployed instance needs before it accepts
requests. Any failure prints the reason to stderr and exits with code 1.
"""

import os
import sys
from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_DATABASE_DRIVERS = ("postgresql+asyncpg", "sqlite+aiosqlite")


class ProductionSettings(BaseSettings):
    """Strict view of the environment: required fields have no defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str  # async driver URL

    # Firebase Authentication
    firebase_project_id: str
    google_application_credentials: Optional[str] = None  # Path to service account JSON

    # Application
    app_name: str = "EstateDesk"
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    allowed_origins: str  # Comma-separated list of allowed origins


def _fail(*lines: str) -> None:
    for line in lines:
        print(line, file=sys.stderr)
    sys.exit(1)


def validate_environment() -> ProductionSettings:
    """
    Validate required environment variables.

    Called from the application lifespan before startup completes.

    Raises:
        SystemExit: If validation fails (exit code 1)
    """
    try:
        settings = ProductionSettings()
    except ValidationError as e:
        lines = ["❌ FATAL: Environment validation failed", "", "Missing or invalid environment variables:"]
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            lines.append(f"   • {field}: {error['msg']}")
        lines.append("Please check your .env file or environment variables.")
        _fail(*lines)

    # 1. CORS: no wildcard outside debug mode
    if not settings.debug:
        origins = [o.strip() for o in settings.allowed_origins.split(",")]
        if "*" in origins:
            _fail(
                "❌ FATAL: Wildcard CORS origin (*) detected in production mode.",
                "   Set ALLOWED_ORIGINS to specific domains (comma-separated).",
            )

    # 2. Database URL: async driver required by the session layer
    driver = settings.database_url.split("://", 1)[0]
    if driver not in SUPPORTED_DATABASE_DRIVERS:
        _fail(
            f"❌ FATAL: DATABASE_URL driver '{driver}' is not supported.",
            f"   Use one of: {', '.join(SUPPORTED_DATABASE_DRIVERS)}",
        )
    if driver.startswith("sqlite") and not settings.debug:
        _fail("❌ FATAL: SQLite is only allowed with DEBUG=true.")

    # 3. Firebase: credentials path must exist when given
    if settings.google_application_credentials:
        if not os.path.exists(settings.google_application_credentials):
            _fail(
                f"❌ FATAL: Firebase credentials file not found: {settings.google_application_credentials}"
            )

    # 4. Log level must be one logging understands
    if settings.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        _fail(f"❌ FATAL: Invalid LOG_LEVEL '{settings.log_level}'")

    print("✅ Environment validation passed")
    print(f"   App: {settings.app_name}")
    print(f"   Debug: {settings.debug}")
    print(f"   Database driver: {driver}")
    print(f"   CORS Origins: {settings.allowed_origins}")

    return settings


if __name__ == "__main__":
    validate_environment()
    print("\n✅ All environment variables are valid!")
