"""
FastAPI application.

One route. Each request to ``/`` emits a log record through the telemetry
side-channel; the response never depends on whether that emission worked.
"""
from typing import Protocol

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from hello_otel import __version__
from hello_otel.observability.lifecycle import Severity
from hello_otel.observability.logging_config import get_logger

logger = get_logger(__name__)

ROOT_LOG_MESSAGE = "Received request on root path"
ROOT_RESPONSE_BODY = "Hello World!"


class SupportsEmit(Protocol):
    def emit(self, severity: Severity, message: str) -> None: ...


def create_app(telemetry: SupportsEmit) -> FastAPI:
    """
    Build the application.

    Call after telemetry has started: the FastAPI instrumentor patches the
    class, so only apps created afterwards get request spans.

    Args:
        telemetry: Side-channel for request log records

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="Hello OpenTelemetry",
        description="Hello world service exporting traces and logs over OTLP",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.get("/", response_class=PlainTextResponse, tags=["root"])
    async def root() -> str:
        try:
            telemetry.emit(Severity.INFO, ROOT_LOG_MESSAGE)
        except Exception as e:
            logger.warning("request_log_emit_failed", error=str(e), error_type=type(e).__name__)
        return ROOT_RESPONSE_BODY

    return app
