"""Centralized application configuration via Pydantic Settings.

Loads all env vars into a typed Settings instance. The domain packages
never read the environment; the API wiring passes these values into
their constructors.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage
    STORAGE_BACKEND: str = Field(
        default="memory",
        description="Transaction store backend: memory or supabase",
    )
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_SERVICE_KEY: str = Field(
        default="",
        description="Supabase service-role key, required for the supabase backend",
    )

    # CORS
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated allowed origins for CORS",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Python log level")
    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # App
    APP_VERSION: str = Field(default="0.2.0", description="Application version")

    # Pipeline tunables
    IMPORT_BATCH_SIZE: int = Field(default=100, ge=1, description="Rows per persist batch")
    TRANSFER_DATE_WINDOW_DAYS: int = Field(
        default=3, ge=0, description="Days either side searched for a transfer counterpart"
    )
    RECURRENCE_CONFIDENCE_THRESHOLD: float = Field(
        default=0.7, ge=0.0, le=1.0, description="Minimum confidence for a recurring verdict"
    )
    MAX_UPLOAD_BYTES: int = Field(default=10 * 1024 * 1024, description="Upload size limit")

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL

    @property
    def json_logs(self) -> bool:
        return self.ENVIRONMENT == "production"

    model_config = {"env_file": ".env", "extra": "ignore"}


def get_settings() -> Settings:
    """Factory for Settings, overridable in tests."""
    return Settings()


settings = get_settings()
