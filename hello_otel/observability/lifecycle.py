"""
Telemetry lifecycle manager.

Owns the tracing SDK and the logger provider as a single unit with an
explicit state machine:

    NOT_STARTED -> STARTING -> RUNNING -> SHUTTING_DOWN -> STOPPED

A failed start leaves the manager in STARTING. Shutdown always ends in
STOPPED, whether or not its steps succeed.
"""
import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from opentelemetry.sdk._logs import LoggingHandler

from .errors import TelemetryShutdownError, TelemetryStartupError, TelemetryStateError
from .logging_config import get_logger

logger = get_logger(__name__)


class TelemetryState(str, Enum):
    """Lifecycle states of the telemetry subsystem."""

    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class Severity(str, Enum):
    """Severity of an emitted log record."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"

    @property
    def level(self) -> int:
        return _SEVERITY_LEVELS[self]


_SEVERITY_LEVELS = {
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
}


class SupportsStartShutdown(Protocol):
    def start(self) -> Any: ...

    def shutdown(self) -> Any: ...


class SupportsLoggerProvider(Protocol):
    def get_logger(self, name: str, *args: Any, **kwargs: Any) -> Any: ...

    def shutdown(self) -> Any: ...


async def _resolve(result: Any) -> Any:
    """Await result if the callee handed back an awaitable, else pass it through."""
    if inspect.isawaitable(result):
        return await result
    return result


async def _call_off_loop(func: Callable[[], Any]) -> Any:
    """
    Run a shutdown routine without stalling the event loop.

    Coroutine functions are awaited in place. Plain callables (the SDK's
    flush-and-join shutdowns) run in a worker thread, so in-flight requests
    keep being served while buffered telemetry is exported.
    """
    if inspect.iscoroutinefunction(func):
        return await func()
    return await _resolve(await asyncio.to_thread(func))


class TelemetryManager:
    """
    Starts, feeds and stops the telemetry subsystem.

    Args:
        sdk: Tracing side. ``start()``/``shutdown()`` may be sync or return awaitables.
        logger_provider: Logging side; receives records from ``emit()``.
        record_logger_name: Instrumentation scope name for emitted records.
    """

    def __init__(
        self,
        sdk: SupportsStartShutdown,
        logger_provider: SupportsLoggerProvider,
        record_logger_name: str = "hello-otel",
    ) -> None:
        self.sdk = sdk
        self.logger_provider = logger_provider
        self._state = TelemetryState.NOT_STARTED

        # Standalone logger: not in the logging registry, so records emitted
        # here never reach the console handlers on the root logger.
        self._record_logger = logging.Logger(record_logger_name, level=logging.DEBUG)
        self._record_handler: Optional[LoggingHandler] = None
        self._shutdown_task: Optional["asyncio.Future[None]"] = None

    @property
    def state(self) -> TelemetryState:
        return self._state

    async def start(self) -> None:
        """
        Bring tracing and logging to RUNNING.

        Raises:
            TelemetryStartupError: The SDK start routine raised or its awaitable failed
            TelemetryStateError: start() was already called
        """
        if self._state is not TelemetryState.NOT_STARTED:
            raise TelemetryStateError("start", self._state, expected=TelemetryState.NOT_STARTED.value)

        self._state = TelemetryState.STARTING
        try:
            await _resolve(self.sdk.start())
        except Exception as exc:
            raise TelemetryStartupError(exc) from exc

        self._record_handler = LoggingHandler(level=logging.NOTSET, logger_provider=self.logger_provider)
        self._record_logger.addHandler(self._record_handler)

        self._state = TelemetryState.RUNNING
        logger.info("telemetry_started")

    def emit(self, severity: Severity, message: str) -> None:
        """
        Fire-and-forget a log record into the export pipeline.

        Allowed while RUNNING, and during shutdown until the logging step
        begins, so records describing the shutdown still go out.

        Raises:
            TelemetryStateError: Logging is not (or no longer) available
        """
        if self._record_handler is None or self._state not in (
            TelemetryState.RUNNING,
            TelemetryState.SHUTTING_DOWN,
        ):
            raise TelemetryStateError("emit", self._state, expected=TelemetryState.RUNNING.value)
        self._record_logger.log(Severity(severity).level, message)

    async def shutdown(self) -> None:
        """
        Shut down tracing, then logging.

        Step failures are logged and swallowed; the state always ends at
        STOPPED. Concurrent callers share one shutdown; calls after STOPPED
        return immediately.

        Raises:
            TelemetryStateError: Telemetry never reached RUNNING
        """
        if self._state is TelemetryState.STOPPED:
            return
        if self._shutdown_task is not None:
            await asyncio.shield(self._shutdown_task)
            return
        if self._state is not TelemetryState.RUNNING:
            raise TelemetryStateError("shut down", self._state, expected=TelemetryState.RUNNING.value)

        self._state = TelemetryState.SHUTTING_DOWN
        self._shutdown_task = asyncio.ensure_future(self._shutdown_sequence())
        await asyncio.shield(self._shutdown_task)

    async def _shutdown_sequence(self) -> None:
        try:
            if await self._shutdown_step("tracing", self.sdk.shutdown):
                logger.info("tracing_terminated")
            if await self._shutdown_step("logging", self._shutdown_logging):
                logger.info("logging_terminated")
        finally:
            self._state = TelemetryState.STOPPED

    async def _shutdown_logging(self) -> None:
        if self._record_handler is not None:
            self._record_logger.removeHandler(self._record_handler)
            self._record_handler = None
        await _call_off_loop(self.logger_provider.shutdown)

    async def _shutdown_step(self, step: str, func: Callable[[], Any]) -> bool:
        try:
            await _call_off_loop(func)
        except Exception as exc:
            error = TelemetryShutdownError(step, exc)
            logger.error("telemetry_shutdown_error", step=step, error=str(error), exc_info=exc)
            return False
        return True
