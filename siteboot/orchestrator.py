"""One-shot container bootstrap followed by the hand-off to the web server."""

from __future__ import annotations

import logging
import signal
import subprocess
import sys
import threading
from typing import IO, Any, Callable, Mapping, Sequence

from .core.models import BootstrapState, RenderTask, ScheduledTask
from .fetching.fetcher import RemoteAssetFetcher
from .forwarding.forwarder import LogForwarder
from .rendering import engine
from .scheduling.runner import ScheduledTaskRunner
from .settings import Settings

logger = logging.getLogger(__name__)

_FORWARDED_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def default_task_command() -> list[str]:
    return [sys.executable, "-m", "siteboot", "fetch"]


class BootstrapOrchestrator:
    """Run the bootstrap steps in order, tolerating the failure of any of them.

    Steps: fetch the asset once, start the scheduled refresh, start streaming
    the scheduler log to stdout, render the served document. A failing step is
    logged and the next one still runs; the server must come up regardless.
    """

    STEPS = ("fetch asset", "start scheduler", "forward logs", "render template")

    def __init__(
        self,
        settings: Settings,
        *,
        fetcher: RemoteAssetFetcher | None = None,
        env: Mapping[str, str] | None = None,
        sink: IO[bytes] | None = None,
        task_command: Sequence[str] | None = None,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher or RemoteAssetFetcher.from_settings(settings)
        self.env = env
        self.state = BootstrapState.NOT_STARTED
        self.failures: dict[str, Exception] = {}
        self._stop = threading.Event()

        self.runner = ScheduledTaskRunner(
            ScheduledTask(
                command=list(task_command or default_task_command()),
                interval=settings.interval_seconds,
                log_path=settings.log_path,
            ),
            stop_event=self._stop,
        )
        self.forwarder = LogForwarder(
            settings.log_path,
            sink,
            poll_interval=settings.forward_poll_seconds,
            stop_event=self._stop,
        )

    def _step(self, name: str, action: Callable[[], Any]) -> bool:
        logger.debug(f"Bootstrap step: {name}")
        try:
            action()
        except Exception as exc:
            self.failures[name] = exc
            logger.error(f"Bootstrap step '{name}' failed: {exc}")
            logger.debug("Failure details", exc_info=True)
            return False
        return True

    def _render(self) -> None:
        task = RenderTask(
            template_path=self.settings.template_path,
            file_mode=self.settings.file_mode,
        )
        engine.render_task(task, self.env)

    def run(self) -> BootstrapState:
        """Execute every bootstrap step once, in order."""
        if self.state is not BootstrapState.NOT_STARTED:
            raise RuntimeError(f"Bootstrap already ran (state: {self.state.value})")

        self.state = BootstrapState.BOOTSTRAPPING
        actions = (
            self.fetcher.fetch,
            self.runner.start,
            self.forwarder.start,
            self._render,
        )
        for name, action in zip(self.STEPS, actions):
            self._step(name, action)

        self.state = BootstrapState.SERVING
        if self.failures:
            logger.warning(
                f"Bootstrap finished with {len(self.failures)} failed step(s): "
                f"{', '.join(self.failures)}"
            )
        else:
            logger.info("Bootstrap complete.")
        return self.state

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the background tasks and wait for them to exit."""
        self._stop.set()
        self.runner.stop(timeout)
        self.forwarder.stop(timeout)
        self.fetcher.close()

    def serve(self, command: Sequence[str]) -> int:
        """Run the main server process until it exits.

        SIGTERM and SIGINT are relayed to the server. Background tasks are
        stopped once it has exited.

        Returns:
            The server's exit status
        """
        logger.info(f"Starting {' '.join(command)}...")
        try:
            proc = subprocess.Popen(list(command))
        except OSError as exc:
            logger.error(f"Could not start {command[0]!r}: {exc}")
            self.stop()
            return 127

        def _relay(signum: int, _frame: object) -> None:
            proc.send_signal(signum)

        previous = {sig: signal.signal(sig, _relay) for sig in _FORWARDED_SIGNALS}
        try:
            return proc.wait()
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
            self.stop()

    def wait(self) -> None:
        """Keep the background tasks alive until SIGTERM or SIGINT."""

        def _shutdown(signum: int, _frame: object) -> None:
            logger.info(f"Received signal {signum}; shutting down")
            self._stop.set()

        previous = {sig: signal.signal(sig, _shutdown) for sig in _FORWARDED_SIGNALS}
        try:
            self._stop.wait()
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
            self.stop()
