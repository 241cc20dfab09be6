"""
Tests for the OpenTelemetry SDK composition.
"""
from typing import Any, Dict, List

import pytest
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import InMemoryLogExporter
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from hello_otel.observability import Severity, TelemetryState
from hello_otel.observability.instrumentation import (
    INSTRUMENTORS,
    TelemetrySDK,
    create_logger_provider,
    create_resource,
    create_sdk,
)
from hello_otel.runtime import build_telemetry


class RecordingInstrumentor:
    calls: List[str] = []
    kwargs: Dict[str, Any] = {}

    def instrument(self, **kwargs: Any) -> None:
        RecordingInstrumentor.calls.append("instrument")
        RecordingInstrumentor.kwargs = kwargs

    def uninstrument(self, **kwargs: Any) -> None:
        RecordingInstrumentor.calls.append("uninstrument")


@pytest.fixture
def recording_instrumentor(monkeypatch):
    RecordingInstrumentor.calls = []
    RecordingInstrumentor.kwargs = {}
    monkeypatch.setitem(INSTRUMENTORS, "logging", RecordingInstrumentor)
    return RecordingInstrumentor


class TestResource:

    @pytest.mark.unit
    def test_resource_carries_service_identity(self, test_settings) -> None:
        resource = create_resource(test_settings)

        assert resource.attributes["service.name"] == "hello-otel-test"
        assert resource.attributes["service.version"] == test_settings.service_version
        assert resource.attributes["deployment.environment"] == "test"


class TestTelemetrySDK:

    @pytest.mark.unit
    def test_spans_reach_exporter_after_start(self, test_settings) -> None:
        exporter = InMemorySpanExporter()
        sdk = TelemetrySDK(create_resource(test_settings), exporter, batch=False)

        sdk.start()
        with sdk.tracer_provider.get_tracer(__name__).start_as_current_span("request"):
            pass
        sdk.shutdown()

        spans = exporter.get_finished_spans()
        assert [span.name for span in spans] == ["request"]
        assert spans[0].resource.attributes["service.name"] == "hello-otel-test"

    @pytest.mark.unit
    def test_start_is_idempotent(self, test_settings) -> None:
        exporter = InMemorySpanExporter()
        sdk = TelemetrySDK(create_resource(test_settings), exporter, batch=False)

        sdk.start()
        sdk.start()
        with sdk.tracer_provider.get_tracer(__name__).start_as_current_span("once"):
            pass

        assert len(exporter.get_finished_spans()) == 1
        sdk.shutdown()

    @pytest.mark.unit
    def test_instrumentors_get_explicit_provider(self, test_settings, recording_instrumentor) -> None:
        sdk = TelemetrySDK(
            create_resource(test_settings),
            InMemorySpanExporter(),
            instrumentations=["logging"],
            batch=False,
        )

        sdk.start()
        sdk.shutdown()

        assert recording_instrumentor.calls == ["instrument", "uninstrument"]
        assert recording_instrumentor.kwargs["tracer_provider"] is sdk.tracer_provider
        assert recording_instrumentor.kwargs["set_logging_format"] is False

    @pytest.mark.unit
    def test_create_sdk_reads_settings(self, test_settings) -> None:
        settings = test_settings.model_copy(update={"instrumentations": "fastapi,logging", "span_processor": "batch"})

        sdk = create_sdk(settings, create_resource(settings), span_exporter=InMemorySpanExporter())

        assert sdk.instrumentations == ["fastapi", "logging"]
        assert sdk.batch is True


class TestLoggerProvider:

    @pytest.mark.unit
    def test_logger_provider_uses_shared_resource(self, test_settings) -> None:
        resource = create_resource(test_settings)

        provider = create_logger_provider(test_settings, resource, log_exporter=InMemoryLogExporter())

        assert isinstance(provider, LoggerProvider)
        assert provider.resource.attributes["service.name"] == "hello-otel-test"
        provider.shutdown()


class TestBuildTelemetry:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_full_pipeline_start_emit_shutdown(self, test_settings) -> None:
        spans = InMemorySpanExporter()
        logs = InMemoryLogExporter()
        telemetry = build_telemetry(test_settings, span_exporter=spans, log_exporter=logs)

        await telemetry.start()
        telemetry.emit(Severity.WARN, "disk almost full")
        await telemetry.shutdown()

        assert telemetry.state is TelemetryState.STOPPED
        finished = logs.get_finished_logs()
        assert len(finished) == 1
        assert finished[0].log_record.severity_text == "WARNING"
        assert str(finished[0].log_record.body) == "disk almost full"
