"""
Pytest configuration and fixtures.
"""
import asyncio
from typing import Any, Awaitable, Callable, List, Optional

import pytest
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import InMemoryLogExporter, SimpleLogRecordProcessor

from hello_otel.config import Settings


def pytest_configure(config: Any) -> None:
    config.addinivalue_line("markers", "unit: fast tests with no network")
    config.addinivalue_line("markers", "integration: tests that bind sockets or run the full pipeline")


class FakeSDK:
    """Tracing side double. start()/shutdown() can be sync or async, and can fail."""

    def __init__(
        self,
        events: List[str],
        async_start: bool = False,
        start_error: Optional[Exception] = None,
        shutdown_error: Optional[Exception] = None,
    ) -> None:
        self.events = events
        self.async_start = async_start
        self.start_error = start_error
        self.shutdown_error = shutdown_error

    def start(self) -> Optional[Awaitable[None]]:
        if self.async_start:
            return self._start_later()
        self.events.append("sdk.start")
        if self.start_error is not None:
            raise self.start_error
        return None

    async def _start_later(self) -> None:
        await asyncio.sleep(0)
        self.events.append("sdk.start")
        if self.start_error is not None:
            raise self.start_error

    async def shutdown(self) -> None:
        await asyncio.sleep(0)
        self.events.append("tracing.shutdown")
        if self.shutdown_error is not None:
            raise self.shutdown_error


class FakeLoggerProvider:
    """Logging side double that only records shutdown."""

    def __init__(self, events: List[str], shutdown_error: Optional[Exception] = None) -> None:
        self.events = events
        self.shutdown_error = shutdown_error

    def get_logger(self, name: str, *args: Any, **kwargs: Any) -> Any:
        raise AssertionError("no records expected")

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True

    def shutdown(self) -> None:
        self.events.append("logging.shutdown")
        if self.shutdown_error is not None:
            raise self.shutdown_error


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until predicate() holds."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def events() -> List[str]:
    return []


@pytest.fixture
def test_settings() -> Settings:
    """Settings that never touch a collector or patch global libraries."""
    return Settings(
        _env_file=None,
        service_name="hello-otel-test",
        app_env="test",
        instrumentations="",
        span_processor="simple",
        log_processor="simple",
        log_level="DEBUG",
    )


@pytest.fixture
def log_exporter() -> InMemoryLogExporter:
    return InMemoryLogExporter()


@pytest.fixture
def logger_provider(log_exporter: InMemoryLogExporter) -> LoggerProvider:
    provider = LoggerProvider()
    provider.add_log_record_processor(SimpleLogRecordProcessor(log_exporter))
    return provider
