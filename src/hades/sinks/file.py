"""Rolling file sink with backpressure signalling and SIGHUP reopen support."""

from __future__ import annotations

import dataclasses
import os
import pathlib
import signal
import threading
import weakref
from collections.abc import Callable
from typing import Any

from loguru import logger

from hades.errors import HadesConfigError
from hades.formatting import LogEvent, strip_ansi
from hades.sinks.base import AppenderConfig, BaseSink
from hades.utils.streams import DEFAULT_HIGH_WATER_MARK, RollingFileStream

_rotation_sinks: weakref.WeakSet[FileSink] = weakref.WeakSet()
_previous_sighup: Any = None
_sighup_installed = False


def reopen_file_sinks() -> None:
    """Reopen every live file sink, e.g. after an external logrotate run."""
    for sink in list(_rotation_sinks):
        sink.reopen()


def _on_sighup(signum: int, frame: Any) -> None:
    # reopen takes the sink locks, which the interrupted thread may hold
    threading.Thread(target=reopen_file_sinks, name="hades-reopen", daemon=True).start()
    if callable(_previous_sighup):
        _previous_sighup(signum, frame)


def _install_sighup_handler() -> None:
    global _previous_sighup, _sighup_installed
    if _sighup_installed or not hasattr(signal, "SIGHUP"):
        return
    if threading.current_thread() is not threading.main_thread():
        return
    _previous_sighup = signal.signal(signal.SIGHUP, _on_sighup)
    _sighup_installed = True


class FileSink(BaseSink):
    """Write rendered events to one size-rolling file.

    The sink owns one `RollingFileStream`. When the stream reports a full
    buffer the sink calls `on_pause(True)` once; when it drains, `on_pause(False)`.
    Logging never blocks or raises on backpressure. `on_pause` runs while the
    sink is locked and must not log through this sink from another thread.

    Args:
        config (AppenderConfig): Sink options; `config.path` is required and
            `handle` must return the text to write, or None to skip.
        on_pause (Callable[[bool], None] | None): Backpressure signal receiver.
        on_error (Callable[[BaseException], None] | None): I/O error receiver,
            stderr when None.
        high_water_mark (int): Buffered characters that trigger a pause.
        handle_sighup (bool): Reopen the file when the process gets SIGHUP.

    Raises:
        HadesConfigError: If `config.path` is missing.

    """

    def __init__(
        self,
        config: AppenderConfig,
        *,
        on_pause: Callable[[bool], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
        handle_sighup: bool = True,
    ):
        super().__init__(config)
        if config.path is None:
            raise HadesConfigError("FileSink requires a destination path")
        self.path = pathlib.Path(os.path.normpath(config.path))
        self.max_bytes = config.max_bytes
        self.backup_count = config.backup_count
        self.high_water_mark = high_water_mark
        self.paused = False
        self.closed = False
        self._on_pause = on_pause
        self._on_error = on_error
        # _lock serializes writes with reopen/shutdown, _signal_lock orders pause/resume
        self._lock = threading.RLock()
        self._signal_lock = threading.RLock()
        self._stream = self._open()

        _rotation_sinks.add(self)
        if handle_sighup:
            _install_sighup_handler()

    def _open(self) -> RollingFileStream:
        logger.trace("Opening log file {}", self.path)
        return RollingFileStream(
            self.path,
            self.max_bytes,
            self.backup_count,
            high_water_mark=self.high_water_mark,
            on_drain=self._drained,
            on_error=self._on_error,
        )

    def _signal(self, paused: bool) -> None:
        self.paused = paused
        if self._on_pause is not None:
            self._on_pause(paused)

    def _drained(self) -> None:
        with self._signal_lock:
            if self.paused:
                self._signal(False)

    def emit(self, event: LogEvent) -> None:
        config = self.config
        if config.strip_color:
            fields = tuple(strip_ansi(f) if isinstance(f, str) else f for f in event.fields)
            event = dataclasses.replace(event, fields=fields)

        if not callable(config.handle):
            raise HadesConfigError(
                config.translate(
                    "error.invalidHandle",
                    option="handle",
                    handle=config.handle,
                    type=type(config.handle).__name__,
                )
            )

        text = config.handle(event, config.is_highlight, config.translate)
        if not text:
            return
        if config.strip_color:
            text = strip_ansi(text)

        with self._lock:
            if self.closed:
                return
            with self._signal_lock:
                if not self._stream.write(f"{text}{config.eol}") and not self.paused:
                    self._signal(True)

    def reopen(self) -> None:
        """Close the current file and open a fresh stream at the same path.

        Pending writes are flushed to the old file first; writes issued during
        the reopen wait for it to finish.
        """
        with self._lock:
            if self.closed:
                return
            self._stream.end()
            self._stream = self._open()

    def flush(self, timeout: float | None = None) -> bool:
        """Block until everything logged so far has reached the file."""
        with self._lock:
            stream = self._stream
        return stream.flush(timeout)

    def shutdown(self, callback: Callable[[], None] | None = None) -> None:
        """Stop reopening on SIGHUP, then flush and close the file.

        Args:
            callback (Callable[[], None] | None): Called once the file is closed.

        """
        _rotation_sinks.discard(self)
        with self._lock:
            if self.closed:
                if callback is not None:
                    callback()
                return
            self.closed = True
            self._stream.end(callback)
