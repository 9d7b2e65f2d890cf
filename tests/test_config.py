"""Tests for configuration module."""

import pytest
from pydantic import ValidationError

from subway.core.config import Settings, require_config, settings

REQUIRED_ENV = {
    "ALLOWED_ORIGINS": "http://localhost:3000",
    "SECRET_DATABASE_URL": "sqlite+aiosqlite:///:memory:",
}


def build_settings(monkeypatch: pytest.MonkeyPatch, **env: str) -> Settings:
    """Build Settings from the required variables plus overrides, ignoring any .env file."""
    for key, value in {**REQUIRED_ENV, **env}.items():
        monkeypatch.setenv(key, value)
    return Settings(_env_file=None)  # type: ignore[call-arg]


class TestRequireConfig:
    """Tests for require_config function."""

    def test_require_config_passes_when_all_fields_present(self) -> None:
        """Test that require_config passes when all required fields are set."""
        require_config("DEBUG", "PROJECT_NAME", "DATABASE_URL")

    def test_require_config_raises_when_field_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that require_config raises ValueError when a field is None."""
        monkeypatch.setattr(settings, "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", None)

        with pytest.raises(ValueError, match="Required configuration missing: OTEL_EXPORTER_OTLP_TRACES_ENDPOINT"):
            require_config("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")

    def test_require_config_raises_when_field_whitespace_only(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that require_config treats whitespace as missing."""
        monkeypatch.setattr(settings, "PROJECT_NAME", "   ")

        with pytest.raises(ValueError, match="Required configuration missing: PROJECT_NAME"):
            require_config("PROJECT_NAME")

    def test_require_config_lists_every_missing_field(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that require_config lists all missing fields in error message."""
        monkeypatch.setattr(settings, "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", None)
        monkeypatch.setattr(settings, "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT", "")

        with pytest.raises(ValueError, match="Required configuration missing:") as exc_info:
            require_config("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT")

        assert "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT" in str(exc_info.value)
        assert "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT" in str(exc_info.value)

    def test_require_config_raises_when_field_does_not_exist(self) -> None:
        """Test that unknown field names count as missing."""
        with pytest.raises(ValueError, match="Required configuration missing: NONEXISTENT_FIELD"):
            require_config("NONEXISTENT_FIELD")


class TestParseCorsValidator:
    """Tests for parse_cors field validator."""

    def test_parse_cors_with_string_strips_whitespace(self) -> None:
        """Test parse_cors splits and strips comma-separated origins."""
        result = Settings.parse_cors("http://localhost:3000, http://localhost:8080 ")
        assert result == ["http://localhost:3000", "http://localhost:8080"]

    def test_parse_cors_with_list(self) -> None:
        """Test parse_cors passes lists through unchanged."""
        assert Settings.parse_cors(["http://a", "http://b"]) == ["http://a", "http://b"]


class TestSettings:
    """Tests for Settings loaded from the environment."""

    def test_database_url_from_secret_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the database URL is read from SECRET_DATABASE_URL."""
        loaded = build_settings(monkeypatch, SECRET_DATABASE_URL="postgresql+asyncpg://u:p@db/subway")

        assert loaded.DATABASE_URL == "postgresql+asyncpg://u:p@db/subway"

    def test_database_url_required(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that settings cannot load without a database URL."""
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000")
        monkeypatch.delenv("SECRET_DATABASE_URL", raising=False)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default values for optional settings."""
        monkeypatch.delenv("DEBUG", raising=False)
        monkeypatch.delenv("OTEL_ENABLED", raising=False)

        loaded = build_settings(monkeypatch)

        assert loaded.API_V1_PREFIX == "/api/v1"
        assert loaded.DEBUG is False
        assert loaded.OTEL_ENABLED is True
        assert loaded.OTEL_EXCLUDED_URLS == ["/health", "/ready"]
        assert loaded.LOG_LEVEL == "INFO"
        assert loaded.OTEL_LOG_LEVEL == "NOTSET"

    def test_otel_excluded_urls_drop_blanks(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test excluded URLs are split and empty entries removed."""
        loaded = build_settings(monkeypatch, OTEL_EXCLUDED_URLS="/health, ,/metrics,")

        assert loaded.OTEL_EXCLUDED_URLS == ["/health", "/metrics"]

    @pytest.mark.parametrize("field", ["LOG_LEVEL", "OTEL_LOG_LEVEL"])
    def test_log_level_normalized(self, monkeypatch: pytest.MonkeyPatch, field: str) -> None:
        """Test log levels are case insensitive and stored upper case."""
        loaded = build_settings(monkeypatch, **{field: "warning"})

        assert getattr(loaded, field) == "WARNING"

    @pytest.mark.parametrize("field", ["LOG_LEVEL", "OTEL_LOG_LEVEL"])
    def test_log_level_invalid(self, monkeypatch: pytest.MonkeyPatch, field: str) -> None:
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError, match="Invalid log level"):
            build_settings(monkeypatch, **{field: "LOUD"})
