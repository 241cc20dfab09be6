"""
Observability Package

Traces and logs leave the process over OTLP/HTTP to a local OTel Collector.
TelemetryManager owns both pipelines; nothing here installs global providers.
"""
from .errors import TelemetryError, TelemetryShutdownError, TelemetryStartupError, TelemetryStateError
from .lifecycle import Severity, TelemetryManager, TelemetryState

__all__ = [
    "Severity",
    "TelemetryError",
    "TelemetryManager",
    "TelemetryShutdownError",
    "TelemetryStartupError",
    "TelemetryState",
    "TelemetryStateError",
]
