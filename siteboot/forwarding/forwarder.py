"""Live tail of the LogStream file onto the process's stdout."""

from __future__ import annotations

import logging
import os
import sys
import threading
from pathlib import Path
from typing import IO

from ..rendering.io import touch

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


class LogForwarder:
    """Copy bytes appended to ``source_path`` onto ``sink`` until stopped.

    The file is created if missing and positioned at its current end before
    ``start`` returns, so every byte appended afterwards is forwarded in order.
    A truncated or replaced file is followed from its beginning.
    """

    def __init__(
        self,
        source_path: Path,
        sink: IO[bytes] | None = None,
        *,
        poll_interval: float = 1.0,
        from_start: bool = False,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.source_path = source_path
        self.sink = sink
        self.poll_interval = poll_interval
        self.from_start = from_start
        self._stop = stop_event or threading.Event()
        self._handle: IO[bytes] | None = None
        self._thread: threading.Thread | None = None

    def attach(self) -> None:
        """Create the file if needed and position the read handle."""
        touch(self.source_path)
        if self.sink is None:
            self.sink = sys.stdout.buffer

        self._handle = self.source_path.open("rb")
        if not self.from_start:
            self._handle.seek(0, os.SEEK_END)

    def start(self) -> threading.Thread:
        """Attach to the file and spawn the forwarding thread."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Log forwarder already started")

        self.attach()
        logger.info(f"Streaming {self.source_path} to container logs...")
        self._thread = threading.Thread(
            target=self._pump, name="siteboot-log-forwarder", daemon=True
        )
        self._thread.start()
        return self._thread

    def _reopen_if_rotated(self) -> None:
        assert self._handle is not None
        try:
            current = os.stat(self.source_path)
        except FileNotFoundError:
            return
        opened = os.fstat(self._handle.fileno())
        if current.st_ino != opened.st_ino:
            logger.debug(f"{self.source_path} was replaced; reopening")
            try:
                replacement = self.source_path.open("rb")
            except OSError:
                return
            self._drain()
            self._handle.close()
            self._handle = replacement
        elif current.st_size < self._handle.tell():
            logger.debug(f"{self.source_path} was truncated; rewinding")
            self._handle.seek(0)

    def _drain(self) -> None:
        assert self._handle is not None and self.sink is not None
        while True:
            chunk = self._handle.read(_CHUNK)
            if not chunk:
                return
            try:
                self.sink.write(chunk)
                self.sink.flush()
            except (OSError, ValueError) as exc:
                logger.warning(f"Could not forward {self.source_path}: {exc}")
                return

    def poll(self) -> None:
        """Forward everything appended since the last poll."""
        self._reopen_if_rotated()
        self._drain()

    def _pump(self) -> None:
        try:
            self._drain()
            while not self._stop.wait(self.poll_interval):
                self.poll()
            self._drain()
        finally:
            if self._handle is not None:
                self._handle.close()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        elif self._handle is not None:
            self._handle.close()
