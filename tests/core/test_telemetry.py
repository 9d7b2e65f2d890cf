"""Tests for OpenTelemetry telemetry module."""

from collections.abc import Awaitable, Callable

import pytest
from fastapi import HTTPException
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind, StatusCode
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core import telemetry
from subway.core.config import settings
from subway.core.telemetry import (
    _parse_otlp_headers,
    get_logger_provider,
    get_tracer_provider,
    service_span,
    shutdown_logger_provider,
    shutdown_tracer_provider,
)
from subway.models import Line, Station
from subway.schemas.lines import SectionRequest
from subway.services.line_service import LineService
from tests.helpers.otel import assert_span_status, get_recorded_spans

OtelProvider = tuple[TracerProvider, InMemorySpanExporter]


class TestServiceSpan:
    """Tests for service_span context manager."""

    def test_service_span_sets_ok_status_on_success(self, otel_enabled_provider: OtelProvider) -> None:
        """Test that service_span sets OK status on successful completion."""
        _, exporter = otel_enabled_provider

        with service_span("test.operation", "test-service"):
            pass

        spans = get_recorded_spans(exporter)
        assert len(spans) == 1
        assert spans[0].name == "test.operation"
        assert_span_status(spans[0], StatusCode.OK)

    def test_service_span_sets_error_status_on_exception(self, otel_enabled_provider: OtelProvider) -> None:
        """Test that the SDK marks the span as an error and the exception propagates."""
        _, exporter = otel_enabled_provider

        error_msg = "Test error"
        with (
            pytest.raises(ValueError, match=error_msg),
            service_span("test.operation", "test-service"),
        ):
            raise ValueError(error_msg)

        spans = get_recorded_spans(exporter)
        assert len(spans) == 1
        assert_span_status(spans[0], StatusCode.ERROR, check_exception=True)

    def test_service_span_sets_attributes(self, otel_enabled_provider: OtelProvider) -> None:
        """Test that service_span records peer.service, kind and extra attributes."""
        _, exporter = otel_enabled_provider

        with service_span(
            "test.operation",
            "test-service",
            kind=SpanKind.CLIENT,
            **{"line.id": "abc", "line.sections_added": 2},
        ):
            pass

        span = get_recorded_spans(exporter)[0]
        assert span.kind == SpanKind.CLIENT
        assert span.attributes["peer.service"] == "test-service"
        assert span.attributes["line.id"] == "abc"
        assert span.attributes["line.sections_added"] == 2


class TestLineServiceSpans:
    """Tests for spans emitted by line operations."""

    @pytest.mark.asyncio
    async def test_add_section_span(
        self,
        otel_enabled_provider: OtelProvider,
        db_session: AsyncSession,
        stations: dict[str, Station],
        make_line: Callable[..., Awaitable[Line]],
    ) -> None:
        """Test that a split records how many sections were replaced."""
        _, exporter = otel_enabled_provider
        line = await make_line("Line 2", [(stations["A"], stations["B"], 10)])
        request = SectionRequest(up_station_id=stations["A"].id, down_station_id=stations["C"].id, distance=4)

        await LineService(db_session).add_section(line.id, request)

        spans = get_recorded_spans(exporter, "line.add_section")
        assert len(spans) == 1
        assert spans[0].attributes["line.id"] == str(line.id)
        assert spans[0].attributes["line.sections_removed"] == 1
        assert spans[0].attributes["line.sections_added"] == 2
        assert_span_status(spans[0], StatusCode.OK)

    @pytest.mark.asyncio
    async def test_rejected_remove_span(
        self,
        otel_enabled_provider: OtelProvider,
        db_session: AsyncSession,
        stations: dict[str, Station],
        make_line: Callable[..., Awaitable[Line]],
    ) -> None:
        """Test that a rejected removal records the rejection code on an error span."""
        _, exporter = otel_enabled_provider
        line = await make_line("Line 2", [(stations["A"], stations["B"], 10)])

        with pytest.raises(HTTPException):
            await LineService(db_session).remove_station(line.id, stations["A"].id)

        spans = get_recorded_spans(exporter, "line.remove_station")
        assert len(spans) == 1
        assert spans[0].attributes["line.rejection_code"] == "SINGLE_SECTION_REMAINING"
        assert_span_status(spans[0], StatusCode.ERROR)


class TestParseOtlpHeaders:
    """Tests for OTLP header parsing."""

    def test_parses_pairs(self) -> None:
        """Test comma-separated key=value pairs are parsed."""
        assert _parse_otlp_headers("Authorization=Bearer token123, X-Custom=a=b") == {
            "Authorization": "Bearer token123",
            "X-Custom": "a=b",
        }

    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty(self, value: str) -> None:
        """Test blank header strings give no headers."""
        assert _parse_otlp_headers(value) == {}

    def test_skips_malformed_pairs(self) -> None:
        """Test pairs without '=' are ignored."""
        assert _parse_otlp_headers("broken,key=value") == {"key": "value"}


class TestProviders:
    """Tests for lazily created tracer and logger providers."""

    def test_disabled_returns_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test no providers exist when OTEL is disabled."""
        monkeypatch.setattr(settings, "OTEL_ENABLED", False)

        assert get_tracer_provider() is None
        assert get_logger_provider() is None

    def test_tracer_provider_is_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the tracer provider is created once and reused."""
        monkeypatch.setattr(settings, "OTEL_ENABLED", True)
        monkeypatch.setattr(settings, "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", None)

        provider = get_tracer_provider()

        assert isinstance(provider, TracerProvider)
        assert get_tracer_provider() is provider
        assert provider.resource.attributes["service.name"] == settings.OTEL_SERVICE_NAME
        shutdown_tracer_provider()

    def test_tracer_provider_requires_endpoint_outside_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test production startup fails fast without a traces endpoint."""
        monkeypatch.setattr(settings, "OTEL_ENABLED", True)
        monkeypatch.setattr(settings, "DEBUG", False)
        monkeypatch.setattr(settings, "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", None)

        with pytest.raises(ValueError, match="OTEL_EXPORTER_OTLP_TRACES_ENDPOINT"):
            get_tracer_provider()

    def test_logger_provider_without_endpoint(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a logger provider is created even when logs are not exported."""
        monkeypatch.setattr(settings, "OTEL_ENABLED", True)
        monkeypatch.setattr(settings, "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT", None)

        provider = get_logger_provider()

        assert provider is not None
        assert telemetry._logger_provider is provider
        shutdown_logger_provider()

    def test_shutdown_without_providers(self) -> None:
        """Test shutdown is a no-op when nothing was created."""
        shutdown_tracer_provider()
        shutdown_logger_provider()
