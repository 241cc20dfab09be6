"""Runtime startup/shutdown orchestration."""
from .bootstrap import build_supervisor, build_telemetry
from .supervisor import ProcessSupervisor

__all__ = ["ProcessSupervisor", "build_supervisor", "build_telemetry"]
