"""CLI for the hello-otel service."""

import asyncio
from typing import Optional

import typer
from rich.console import Console

from hello_otel.config import get_settings
from hello_otel.observability.logging_config import setup_logging
from hello_otel.runtime import build_supervisor

app = typer.Typer(
    name="hello-otel",
    help="Hello world HTTP service exporting traces and logs over OTLP",
    add_completion=False,
)

console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(
        None,
        "--host",
        "-h",
        help="Bind address (default from HOST)",
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        help="Listen port (default from PORT, 3000)",
    ),
) -> None:
    """Start telemetry, then serve until SIGTERM."""
    settings = get_settings()
    overrides = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if overrides:
        settings = settings.model_copy(update=overrides)

    setup_logging(settings)
    supervisor = build_supervisor(settings)
    exit_code = asyncio.run(supervisor.run())
    raise typer.Exit(code=exit_code)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Hello world HTTP service exporting traces and logs over OTLP."""
    if version:
        from hello_otel import __version__
        console.print(f"hello-otel v{__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


if __name__ == "__main__":
    app()
