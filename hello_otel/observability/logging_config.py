"""
Structured logging configuration.

Uses structlog for event-style logging, rendered as JSON by python-json-logger. Every line carries the
current trace_id/span_id so console output can be joined with exported traces.

NOTE: This is the service's own diagnostic log (stdout). Request log records
destined for the collector go through TelemetryManager.emit() instead.
"""
import logging
import sys
from typing import Any, Callable, Optional

import structlog
from opentelemetry import trace
from pythonjsonlogger import jsonlogger

from hello_otel.config import Settings, get_settings


def app_context_processor(settings: Settings) -> Callable[..., dict[str, Any]]:
    """
    Build a processor that adds service identity to log events.

    Args:
        settings: Settings the process is running with

    Returns:
        structlog processor
    """

    def add_app_context(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["service"] = settings.service_name
        event_dict["app_env"] = settings.app_env
        return event_dict

    return add_app_context


def add_trace_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Inject trace_id and span_id of the active span, if any."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging with JSON formatter.

    Sets up:
    - structlog processors (context vars, service identity, trace context)
    - a single JSON handler on the root logger (stdout)
    - the OTel SDK's diagnostic logger level
    """
    settings = settings or get_settings()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            app_context_processor(settings),
            add_trace_context,
            # event dict becomes LogRecord extras; the JSON formatter renders them
            structlog.stdlib.render_to_log_kwargs,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={
            "asctime": "@timestamp",
            "levelname": "level",
            "name": "logger",
        },
    )
    json_handler.setFormatter(formatter)
    root_logger.addHandler(json_handler)

    # SDK diagnostics (exporter retries, dropped batches) go through stdlib logging
    logging.getLogger("opentelemetry").setLevel(getattr(logging, settings.otel_diag_log_level))

    # uvicorn access lines duplicate the request span
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logger = structlog.get_logger(__name__)
    logger.info(
        "logging_configured",
        log_level=settings.log_level,
        otel_diag_log_level=settings.otel_diag_log_level,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name

    Returns:
        Any: Structured logger
    """
    return structlog.get_logger(name)
