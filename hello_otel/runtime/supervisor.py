"""
Process supervisor: startup/shutdown sequencing.

    telemetry.start()  ->  server.listen(port)
    SIGTERM            ->  telemetry.shutdown()  ->  exit step

The server never listens before telemetry is RUNNING, and the exit step
runs exactly once after shutdown finishes, whatever shutdown's outcome.
"""
from __future__ import annotations

import asyncio
import signal
from typing import Any, Callable, Iterable, Literal, Optional, Protocol

from hello_otel.api.server import ServerStartupError
from hello_otel.observability.errors import TelemetryStartupError
from hello_otel.observability.logging_config import get_logger

logger = get_logger(__name__)

StartupFailurePolicy = Literal["exit", "idle"]

EXIT_OK = 0
EXIT_STARTUP_FAILED = 1
EXIT_SERVER_FAILED = 3


class SupportsTelemetryLifecycle(Protocol):
    async def start(self) -> None: ...

    async def shutdown(self) -> None: ...


class SupportsListen(Protocol):
    async def listen(self, port: int) -> None: ...

    def stop(self) -> None: ...


class ProcessSupervisor:
    """
    Composition root for the running process.

    Args:
        telemetry: Telemetry lifecycle manager
        server_factory: Builds the server once telemetry is RUNNING, so
            instrumentation is active before the app exists
        port: Listen port
        startup_failure_policy: ``exit`` ends run() with status 1 when
            telemetry cannot start; ``idle`` keeps the process alive without
            a listener until a termination signal arrives
        exit_process: Extra exit hook called with the exit code, after the
            server has been told to stop
        signals: Signals that trigger termination
    """

    def __init__(
        self,
        telemetry: SupportsTelemetryLifecycle,
        server_factory: Callable[[], SupportsListen],
        port: int,
        startup_failure_policy: StartupFailurePolicy = "exit",
        exit_process: Optional[Callable[[int], Any]] = None,
        signals: Iterable[signal.Signals] = (signal.SIGTERM, signal.SIGINT),
    ) -> None:
        self.telemetry = telemetry
        self.server_factory = server_factory
        self.port = port
        self.startup_failure_policy = startup_failure_policy
        self.exit_process = exit_process
        self.signals = tuple(signals)

        self.server: Optional[SupportsListen] = None
        self.exit_code: Optional[int] = None
        self._starting = False
        self._terminating = False
        self._startup_settled = asyncio.Event()
        self._exited = asyncio.Event()
        self._termination_task: Optional[asyncio.Task[None]] = None

    async def run(self) -> int:
        """
        Start telemetry, then serve until terminated.

        Returns:
            Process exit code: 0 after a requested termination, 1 when
            telemetry could not start, 3 when the listener could not start
        """
        self._install_signal_handlers()
        try:
            self._starting = True
            try:
                await self.telemetry.start()
            except TelemetryStartupError as e:
                logger.error("telemetry_start_failed", error=str(e), cause=repr(e.cause))
                if self.startup_failure_policy == "exit":
                    self._exit(EXIT_STARTUP_FAILED)
                else:
                    logger.warning("idle_without_listener", policy=self.startup_failure_policy)
                self._settle_startup()
                await self._exited.wait()
                return self._exit_code()
            finally:
                self._settle_startup()

            if self._termination_requested:
                await self._exited.wait()
                return self._exit_code()

            self.server = self.server_factory()
            listen_task = asyncio.ensure_future(self.server.listen(self.port))
            exited_task = asyncio.ensure_future(self._exited.wait())
            await asyncio.wait({listen_task, exited_task}, return_when=asyncio.FIRST_COMPLETED)

            if not exited_task.done():
                exited_task.cancel()
            # the exit step stops the server; wait for in-flight requests to drain
            try:
                await listen_task
            except ServerStartupError as e:
                logger.error("server_start_failed", error=str(e))
                await self.terminate(code=EXIT_SERVER_FAILED)
            if not self._terminating:
                # server returned on its own; still flush telemetry before exiting
                await self.terminate()
            if self._termination_task is not None:
                await self._termination_task
            return self._exit_code()
        finally:
            self._remove_signal_handlers()

    async def terminate(self, signum: Optional[int] = None, code: int = EXIT_OK) -> None:
        """
        Shut telemetry down, then run the exit step.

        Only the first call does anything; later signals are ignored. A
        signal that lands mid-startup waits for the start attempt to settle.

        Args:
            signum: Signal that asked for termination, if any
            code: Exit code handed to the exit step
        """
        if self._terminating:
            logger.info("termination_already_in_progress", signal=signum)
            return
        self._terminating = True
        logger.info("termination_requested", signal=signum)

        try:
            if self._starting:
                await self._startup_settled.wait()
            await self.telemetry.shutdown()
        except Exception as e:
            logger.error("telemetry_shutdown_failed", error=str(e), exc_info=e)
        finally:
            self._exit(code)

    def _settle_startup(self) -> None:
        self._starting = False
        self._startup_settled.set()

    def _exit(self, code: int) -> None:
        if self._exited.is_set():
            return
        self._exited.set()
        self.exit_code = code
        if self.server is not None:
            self.server.stop()
        if self.exit_process is not None:
            self.exit_process(code)

    @property
    def _termination_requested(self) -> bool:
        # a signal callback may have queued terminate() without it having run yet
        return self._terminating or self._termination_task is not None

    def _exit_code(self) -> int:
        return EXIT_OK if self.exit_code is None else self.exit_code

    def _on_signal(self, signum: int) -> None:
        if self._termination_task is not None:
            logger.info("termination_already_in_progress", signal=signum)
            return
        self._termination_task = asyncio.ensure_future(self.terminate(signum))

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self.signals:
            loop.add_signal_handler(sig, self._on_signal, int(sig))

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self.signals:
            loop.remove_signal_handler(sig)
