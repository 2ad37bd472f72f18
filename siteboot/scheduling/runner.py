"""Background runner for the recurring fetch task."""

from __future__ import annotations

import logging
import subprocess
import threading

from ..core.models import ScheduledTask
from ..rendering.io import ensure_parent

logger = logging.getLogger(__name__)


class ScheduledTaskRunner:
    """Run a command every ``task.interval`` seconds on a daemon thread.

    Firings are sequential: the next one is due ``interval`` seconds after the
    previous one finished, so a slow firing delays the next instead of
    overlapping it. Combined stdout/stderr of every firing is appended to
    ``task.log_path``. Failures are logged and never stop the loop.
    """

    def __init__(
        self, task: ScheduledTask, *, stop_event: threading.Event | None = None
    ) -> None:
        self.task = task
        self.firings = 0
        self._stop = stop_event or threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> threading.Thread:
        """Launch the daemon thread and return immediately."""
        if self.running:
            raise RuntimeError("Scheduled task runner already started")

        logger.info(
            f"Running scheduler in background (every {self.task.interval:g}s, "
            f"logging to {self.task.log_path})..."
        )
        self._thread = threading.Thread(
            target=self._loop, name="siteboot-scheduler", daemon=True
        )
        self._thread.start()
        return self._thread

    def _loop(self) -> None:
        while not self._stop.wait(self.task.interval):
            self.run_once()

    def run_once(self) -> int | None:
        """Fire the task once, appending its output to the log.

        Returns:
            The command's exit status, or None when it could not be started
        """
        self.firings += 1
        try:
            ensure_parent(self.task.log_path)
            with self.task.log_path.open("ab") as log:
                result = subprocess.run(
                    self.task.command,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    check=False,
                )
        except OSError as exc:
            logger.error(f"Scheduled task {self.task.command[0]!r} could not run: {exc}")
            return None

        if result.returncode != 0:
            logger.warning(
                f"Scheduled task {self.task.command[0]!r} exited with status "
                f"{result.returncode}; retrying in {self.task.interval:g}s"
            )
        return result.returncode

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
