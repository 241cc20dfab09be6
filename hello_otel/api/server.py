"""
Server lifecycle.

Wraps a uvicorn server around the FastAPI app. Termination signals are NOT
handled here: the process supervisor owns them so telemetry can be shut down
before the process exits.
"""
import asyncio
import contextlib
from typing import Generator, Optional

import uvicorn
from fastapi import FastAPI

from hello_otel.observability.logging_config import get_logger

logger = get_logger(__name__)

_STARTUP_POLL_SECONDS = 0.05


class ServerStartupError(RuntimeError):
    """The listener never came up."""

    def __init__(self, host: str, port: int, exit_status: object) -> None:
        self.host = host
        self.port = port
        self.exit_status = exit_status
        super().__init__(f"Server failed to start on {host}:{port} (uvicorn exit status {exit_status})")


class _SupervisedServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT/SIGTERM to its owner."""

    @contextlib.contextmanager
    def capture_signals(self) -> Generator[None, None, None]:
        yield


class ServerLifecycle:
    """
    Accepts connections for ``app`` once ``listen()`` is awaited.

    Args:
        app: ASGI application to serve
        host: Bind address
    """

    def __init__(self, app: FastAPI, host: str = "0.0.0.0") -> None:
        self.app = app
        self.host = host
        self._server: Optional[_SupervisedServer] = None

    @property
    def started(self) -> bool:
        return self._server is not None and self._server.started

    def _build_server(self, port: int) -> _SupervisedServer:
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=port,
            lifespan="off",
            log_config=None,
            access_log=False,
        )
        return _SupervisedServer(config)

    async def listen(self, port: int) -> None:
        """
        Serve until stop() is called.

        Logs ``server_listening`` once the socket is bound.

        Raises:
            ServerStartupError: uvicorn could not load the app or bind the port
        """
        self._server = self._build_server(port)
        announce_task = asyncio.ensure_future(self._announce(port))
        try:
            # uvicorn reports startup failures with sys.exit(); awaited here
            # rather than in its own task so the exit never escapes the loop.
            await self._server.serve()
        except SystemExit as exc:
            raise ServerStartupError(self.host, port, exc.code) from exc
        finally:
            announce_task.cancel()
        logger.info("server_stopped", port=port)

    async def _announce(self, port: int) -> None:
        while self._server is not None and not self._server.started:
            await asyncio.sleep(_STARTUP_POLL_SECONDS)
        logger.info("server_listening", host=self.host, port=port)

    def stop(self) -> None:
        """Ask the server to finish in-flight requests and return from listen()."""
        if self._server is not None:
            self._server.should_exit = True
