"""
Tests for structured logging setup.
"""
import json
import logging

import pytest
import structlog
from opentelemetry.sdk.trace import TracerProvider

from hello_otel.observability.logging_config import get_logger, setup_logging


@pytest.fixture
def configured_logging(test_settings):
    setup_logging(test_settings)
    yield test_settings
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    structlog.reset_defaults()


def _last_json_line(capsys) -> dict:
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    return json.loads(lines[-1])


class TestSetupLogging:

    @pytest.mark.unit
    def test_events_render_as_json_with_service_identity(self, configured_logging, capsys) -> None:
        get_logger("hello_otel.test").info("server_listening", port=3000)

        payload = _last_json_line(capsys)
        assert payload["message"] == "server_listening"
        assert payload["port"] == 3000
        assert payload["level"] == "INFO"
        assert payload["logger"] == "hello_otel.test"
        assert payload["service"] == "hello-otel-test"
        assert "@timestamp" in payload

    @pytest.mark.unit
    def test_active_span_ids_are_attached(self, configured_logging, capsys) -> None:
        tracer = TracerProvider().get_tracer(__name__)

        with tracer.start_as_current_span("request") as span:
            get_logger("hello_otel.test").info("inside_span")
            ctx = span.get_span_context()

        payload = _last_json_line(capsys)
        assert payload["trace_id"] == format(ctx.trace_id, "032x")
        assert payload["span_id"] == format(ctx.span_id, "016x")

    @pytest.mark.unit
    def test_sdk_diagnostic_level_applied(self, configured_logging) -> None:
        assert logging.getLogger("opentelemetry").level == logging.INFO
