"""
OpenTelemetry SDK composition

Builds the pieces the TelemetryManager drives:
- Resource (service identity stamped on every span and log record)
- TelemetrySDK: tracer provider + OTLP/HTTP span exporter + auto-instrumentation
- LoggerProvider + OTLP/HTTP log exporter

Nothing here installs a global provider. Providers are handed to the
instrumentors and to the TelemetryManager explicitly, so the whole pipeline
is owned by one object that can be started and shut down in order.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.instrumentor import BaseInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.requests import RequestsInstrumentor
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import (
    BatchLogRecordProcessor,
    LogExporter,
    SimpleLogRecordProcessor,
)
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor, SpanExporter

from hello_otel.config import Settings

logger = logging.getLogger(__name__)


# ============================================================================
# Auto-instrumentation registry
# ============================================================================
# FastAPI: server spans per request (method, route, status_code)
# Requests: client spans for outbound HTTP calls
# Logging: otelTraceID/otelSpanID attributes on every stdlib LogRecord
#
# FastAPIInstrumentor patches the FastAPI class, so apps must be created
# AFTER start() for their requests to be traced.
# ============================================================================

INSTRUMENTORS: Dict[str, Callable[[], BaseInstrumentor]] = {
    "fastapi": FastAPIInstrumentor,
    "requests": RequestsInstrumentor,
    "logging": LoggingInstrumentor,
}

_INSTRUMENT_OPTIONS: Dict[str, dict] = {
    # Our JSON handler owns the log format
    "logging": {"set_logging_format": False},
}


def create_resource(settings: Settings) -> Resource:
    """
    Creates an OpenTelemetry Resource with service metadata.

    Args:
        settings: Application settings

    Returns:
        OpenTelemetry Resource object
    """
    return Resource(attributes={
        SERVICE_NAME: settings.service_name,
        SERVICE_VERSION: settings.service_version,
        DEPLOYMENT_ENVIRONMENT: settings.app_env,
    })


class TelemetrySDK:
    """
    Tracing half of the telemetry subsystem.

    start() attaches the exporter pipeline and enables auto-instrumentation;
    shutdown() reverses both and flushes buffered spans.
    """

    def __init__(
        self,
        resource: Resource,
        span_exporter: SpanExporter,
        instrumentations: Iterable[str] = (),
        batch: bool = True,
    ) -> None:
        self.resource = resource
        self.span_exporter = span_exporter
        self.instrumentations: List[str] = list(instrumentations)
        self.batch = batch
        self.tracer_provider = TracerProvider(resource=resource)
        self._instrumented: List[BaseInstrumentor] = []
        self._started = False

    def start(self) -> None:
        if self._started:
            return

        # BatchSpanProcessor buffers and exports from a worker thread;
        # SimpleSpanProcessor exports inline on span end.
        processor_cls = BatchSpanProcessor if self.batch else SimpleSpanProcessor
        self.tracer_provider.add_span_processor(processor_cls(self.span_exporter))

        for name in self.instrumentations:
            instrumentor = INSTRUMENTORS[name]()
            instrumentor.instrument(
                tracer_provider=self.tracer_provider,
                **_INSTRUMENT_OPTIONS.get(name, {}),
            )
            self._instrumented.append(instrumentor)
            logger.debug("Instrumentation enabled: %s", name)

        self._started = True

    def shutdown(self) -> None:
        for instrumentor in reversed(self._instrumented):
            instrumentor.uninstrument()
        self._instrumented.clear()
        self.tracer_provider.shutdown()


def create_sdk(settings: Settings, resource: Resource, span_exporter: Optional[SpanExporter] = None) -> TelemetrySDK:
    """
    Build the tracing side from settings.

    Args:
        settings: Application settings
        resource: Shared service resource
        span_exporter: Override for the OTLP/HTTP exporter (tests)

    Returns:
        Unstarted TelemetrySDK
    """
    exporter = span_exporter or OTLPSpanExporter(endpoint=settings.otel_traces_endpoint)
    return TelemetrySDK(
        resource=resource,
        span_exporter=exporter,
        instrumentations=settings.get_instrumentations_list(),
        batch=settings.span_processor == "batch",
    )


def create_logger_provider(
    settings: Settings,
    resource: Resource,
    log_exporter: Optional[LogExporter] = None,
) -> LoggerProvider:
    """
    Build the logging side from settings.

    Args:
        settings: Application settings
        resource: Shared service resource (same as traces, for correlation)
        log_exporter: Override for the OTLP/HTTP exporter (tests)

    Returns:
        LoggerProvider with one record processor attached
    """
    exporter = log_exporter or OTLPLogExporter(endpoint=settings.otel_logs_endpoint)
    provider = LoggerProvider(resource=resource)
    processor_cls = BatchLogRecordProcessor if settings.log_processor == "batch" else SimpleLogRecordProcessor
    provider.add_log_record_processor(processor_cls(exporter))
    return provider
