"""Buffered size-rolling file stream used by the Hades file sinks.

Rollover and numbered backups (`name.log.1` ... `name.log.N`) are handled by
the standard `RotatingFileHandler`. This module adds the part a logging call
must not wait on: writes are queued and drained by one writer thread, and
`write()` reports when the queue has grown past its high-water mark so the
owner can signal backpressure.
"""

from __future__ import annotations

import collections
import logging
import pathlib
import sys
import threading
from collections.abc import Callable
from logging.handlers import RotatingFileHandler

DEFAULT_HIGH_WATER_MARK = 64 * 1024
DEFAULT_MAX_BUFFER = 16 * 1024 * 1024


def report_to_stderr(path: pathlib.Path, exc: BaseException) -> None:
    sys.stderr.write(f"hades: error writing to log file {path}: {exc!r}\n")


class _RollingHandler(RotatingFileHandler):
    """RotatingFileHandler that hands I/O errors to a callback."""

    def __init__(self, *args, on_error: Callable[[BaseException], None], **kwargs):
        super().__init__(*args, **kwargs)
        self._on_error = on_error

    def handleError(self, record: logging.LogRecord) -> None:
        exc = sys.exc_info()[1]
        if exc is not None:
            self._on_error(exc)


class RollingFileStream:
    """A file writer that rolls over by size and drains on a background thread.

    Args:
        path (pathlib.Path | str): Destination file; parent directories are created.
        max_bytes (int): Rollover threshold in bytes (0 disables rollover).
        backup_count (int): Number of numbered backups to keep.
        high_water_mark (int): Buffered characters at which `write()` starts
            returning False.
        max_buffer (int): Buffered characters beyond which writes are dropped.
        on_drain (Callable[[], None] | None): Called once the buffer empties
            after a write returned False.
        on_error (Callable[[BaseException], None] | None): Receives I/O errors
            and drop notices; defaults to a line on stderr.

    """

    def __init__(
        self,
        path: pathlib.Path | str,
        max_bytes: int,
        backup_count: int,
        *,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
        max_buffer: int = DEFAULT_MAX_BUFFER,
        on_drain: Callable[[], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ):
        self.path = pathlib.Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.high_water_mark = high_water_mark
        self.max_buffer = max(max_buffer, high_water_mark)
        self.dropped = 0
        self._on_drain = on_drain
        self._on_error = on_error or (lambda exc: report_to_stderr(self.path, exc))

        self._handler = _RollingHandler(
            str(self.path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
            on_error=self._on_error,
        )
        self._handler.terminator = ""
        self._handler.setFormatter(logging.Formatter("%(message)s"))

        self._buffer: collections.deque[str] = collections.deque()
        self._buffered = 0
        self._needs_drain = False
        self._ended = False
        self._cond = threading.Condition()
        self._thread = threading.Thread(target=self._run, name=f"hades-writer:{self.path.name}", daemon=True)
        self._thread.start()

    def write(self, text: str) -> bool:
        """Queue `text` for writing.

        Returns:
            bool: False when the buffer is at or above the high-water mark (the
                caller should pause until `on_drain` fires), True otherwise.

        Raises:
            ValueError: If the stream has been ended.

        """
        with self._cond:
            if self._ended:
                raise ValueError(f"write after end: {self.path}")
            if self._buffered >= self.max_buffer:
                if not self.dropped:
                    self._on_error(BufferError(f"log buffer full, dropping records for {self.path}"))
                self.dropped += 1
                self._needs_drain = True
                return False
            self._buffer.append(text)
            self._buffered += len(text)
            self._cond.notify_all()
            if self._buffered >= self.high_water_mark:
                self._needs_drain = True
                return False
            return True

    def flush(self, timeout: float | None = None) -> bool:
        """Block until everything queued so far has been written."""
        with self._cond:
            return self._cond.wait_for(lambda: not self._buffer and self._buffered == 0, timeout)

    def end(self, callback: Callable[[], None] | None = None) -> None:
        """Drain the buffer, close the file and stop the writer thread.

        Args:
            callback (Callable[[], None] | None): Called once the file is closed.

        """
        with self._cond:
            self._ended = True
            self._cond.notify_all()
        self._thread.join()
        if callback is not None:
            callback()

    def _run(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._buffer or self._ended)
                if not self._buffer:
                    break
                chunk = self._buffer.popleft()

            self._handler.emit(logging.makeLogRecord({"msg": chunk}))

            with self._cond:
                self._buffered -= len(chunk)
                drained = not self._buffer and self._needs_drain
                if drained:
                    self._needs_drain = False
                    self.dropped = 0
                self._cond.notify_all()
            if drained and self._on_drain is not None:
                self._on_drain()

        self._handler.close()
