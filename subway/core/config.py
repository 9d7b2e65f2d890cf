"""Application configuration."""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # API Settings
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "SubwayLines"
    DEBUG: bool = False
    ALLOWED_ORIGINS: str

    @field_validator("ALLOWED_ORIGINS", mode="after")
    @classmethod
    def parse_cors(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated CORS origins or pass through list."""
        return v if isinstance(v, list) else [origin.strip() for origin in v.split(",")]

    # Database Settings
    DATABASE_URL: str = Field(validation_alias="SECRET_DATABASE_URL")
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    # Alembic Settings
    ALEMBIC_INI_PATH: str = "alembic.ini"

    # OpenTelemetry Settings
    OTEL_ENABLED: bool = True
    OTEL_SERVICE_NAME: str = "subway-lines"
    OTEL_ENVIRONMENT: str = "production"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: str | None = None
    OTEL_EXPORTER_OTLP_LOGS_ENDPOINT: str | None = None
    OTEL_EXPORTER_OTLP_HEADERS: str | None = Field(default=None, validation_alias="SECRET_OTEL_HEADERS")
    OTEL_EXCLUDED_URLS: str = "/health,/ready"
    # NOTSET exports every level
    OTEL_LOG_LEVEL: str = "NOTSET"

    @field_validator("OTEL_EXCLUDED_URLS", mode="after")
    @classmethod
    def parse_otel_excluded_urls(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated excluded URLs or pass through list, dropping empty entries."""
        if isinstance(v, list):
            return [url for url in v if url]
        return [url.strip() for url in v.split(",") if url.strip()]

    # Logging Settings
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", "OTEL_LOG_LEVEL", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize a log level name."""
        normalized = v.upper()
        valid_levels = logging.getLevelNamesMapping()
        if normalized not in valid_levels:
            msg = f"Invalid log level '{v}'. Must be one of: {', '.join(sorted(valid_levels.keys()))}"
            raise ValueError(msg)
        return normalized


settings = Settings()


def require_config(*field_names: str) -> None:
    """
    Validate that required configuration fields are set.

    Args:
        *field_names: Names of required configuration fields

    Raises:
        ValueError: If any required field is missing, None or blank

    Example:
        require_config("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
    """
    missing = []
    for field in field_names:
        value = getattr(settings, field, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field)

    if missing:
        msg = f"Required configuration missing: {', '.join(missing)}"
        raise ValueError(msg)
