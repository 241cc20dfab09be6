"""Wires settings into a ready-to-run ProcessSupervisor."""
from typing import Optional

from opentelemetry.sdk._logs.export import LogExporter
from opentelemetry.sdk.trace.export import SpanExporter

from hello_otel.api import ServerLifecycle, create_app
from hello_otel.config import Settings
from hello_otel.observability.instrumentation import create_logger_provider, create_resource, create_sdk
from hello_otel.observability.lifecycle import TelemetryManager

from .supervisor import ProcessSupervisor


def build_telemetry(
    settings: Settings,
    span_exporter: Optional[SpanExporter] = None,
    log_exporter: Optional[LogExporter] = None,
) -> TelemetryManager:
    """Tracing and logging share one Resource so records correlate in the backend."""
    resource = create_resource(settings)
    sdk = create_sdk(settings, resource, span_exporter=span_exporter)
    logger_provider = create_logger_provider(settings, resource, log_exporter=log_exporter)
    return TelemetryManager(sdk, logger_provider)


def build_supervisor(settings: Settings, telemetry: Optional[TelemetryManager] = None) -> ProcessSupervisor:
    telemetry = telemetry or build_telemetry(settings)

    def server_factory() -> ServerLifecycle:
        return ServerLifecycle(create_app(telemetry), host=settings.host)

    return ProcessSupervisor(
        telemetry,
        server_factory,
        port=settings.port,
        startup_failure_policy=settings.startup_failure_policy,
    )
