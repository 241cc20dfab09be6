"""Telemetry lifecycle errors."""
from typing import Optional


class TelemetryError(Exception):
    """Base class for telemetry lifecycle failures."""

    pass


class TelemetryStartupError(TelemetryError):
    """Raised when the telemetry SDK fails to start."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Telemetry SDK failed to start: {cause}")


class TelemetryShutdownError(TelemetryError):
    """A single shutdown step (tracing or logging) failed."""

    def __init__(self, step: str, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"Telemetry {step} shutdown failed: {cause}")


class TelemetryStateError(TelemetryError):
    """A lifecycle operation was called in a state that does not allow it."""

    def __init__(self, operation: str, state: object, expected: Optional[str] = None) -> None:
        self.operation = operation
        self.state = state
        message = f"Cannot {operation} telemetry in state {state}"
        if expected:
            message += f" (expected {expected})"
        super().__init__(message)
