"""Application settings using Pydantic for environment-based configuration."""
from functools import lru_cache
from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_INSTRUMENTATIONS = ("fastapi", "requests", "logging")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service identity (becomes OTel resource attributes)
    service_name: str = Field(default="hello-world-application", description="OTel service.name")
    service_version: str = Field(default="0.1.0", description="OTel service.version")
    app_env: str = Field(default="development", description="Environment (development/production)")

    # HTTP server
    host: str = Field(default="0.0.0.0", description="Listen address")
    port: int = Field(default=3000, description="Listen port")

    # OTLP/HTTP export endpoints (local collector)
    otel_traces_endpoint: str = Field(
        default="http://localhost:4318/v1/traces",
        description="OTLP/HTTP endpoint for trace export",
    )
    otel_logs_endpoint: str = Field(
        default="http://localhost:4318/v1/logs",
        description="OTLP/HTTP endpoint for log export",
    )
    span_processor: Literal["batch", "simple"] = Field(
        default="batch", description="Span processor feeding the trace exporter"
    )
    log_processor: Literal["batch", "simple"] = Field(
        default="batch", description="Log record processor feeding the log exporter"
    )
    instrumentations: str = Field(
        default="fastapi,requests,logging",
        description="Auto-instrumentations to enable (comma-separated)",
    )
    otel_diag_log_level: str = Field(
        default="INFO", description="Level for the SDK's own diagnostic logger"
    )

    # Lifecycle policy
    startup_failure_policy: Literal["exit", "idle"] = Field(
        default="exit",
        description="What to do when telemetry fails to start: exit(1) or stay up without listening",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level", "otel_diag_log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate listen port range."""
        if not 0 < v < 65536:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("instrumentations")
    @classmethod
    def validate_instrumentations(cls, v: str) -> str:
        """Reject instrumentation names we don't know how to enable."""
        names = [name.strip().lower() for name in v.split(",") if name.strip()]
        unknown = sorted(set(names) - set(SUPPORTED_INSTRUMENTATIONS))
        if unknown:
            raise ValueError(
                f"Unknown instrumentations {unknown}. Supported: {list(SUPPORTED_INSTRUMENTATIONS)}"
            )
        return ",".join(names)

    def get_instrumentations_list(self) -> List[str]:
        """Parse enabled instrumentations from comma-separated string."""
        return [name for name in self.instrumentations.split(",") if name]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
