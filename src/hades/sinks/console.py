"""Console sink printing Hades lines, with in-place updates for progress logging."""

from __future__ import annotations

import sys
from typing import TextIO

from tqdm import tqdm

from hades.formatting import LogEvent, UpdateMarker
from hades.sinks.base import AppenderConfig, BaseSink
from hades.utils.progress import LiveLine


class ConsoleSink(BaseSink):
    """Write formatted lines to stdout and stack blocks to stderr.

    Events marked `UpdateMarker.UPDATE` redraw the current line in place,
    `UpdateMarker.DONE` redraws it one last time and keeps it. Plain lines go
    through `tqdm.write` so an active status line is not overwritten.

    Args:
        config (AppenderConfig): Sink options; `handle` must return a
            `FormattedRecord`.
        stream (TextIO | None): Line output, `sys.stdout` when None.
        error_stream (TextIO | None): Stack output, `sys.stderr` when None.

    """

    def __init__(self, config: AppenderConfig, stream: TextIO | None = None, error_stream: TextIO | None = None):
        super().__init__(config)
        self.stream = stream
        self.error_stream = error_stream
        self._live: LiveLine | None = None

    @property
    def live(self) -> LiveLine:
        if self._live is None:
            self._live = LiveLine(file=self.stream if self.stream is not None else sys.stdout)
        return self._live

    def emit(self, event: LogEvent) -> None:
        config = self.config
        record = config.handle(event, config.is_highlight, config.translate)

        if event.marker is UpdateMarker.UPDATE:
            self.live.update(record.line)
        elif event.marker is UpdateMarker.DONE:
            self.live.update(record.line)
            self.live.done()
        else:
            tqdm.write(record.line, file=self.stream if self.stream is not None else sys.stdout)

        if record.stack:
            tqdm.write(record.stack, file=self.error_stream if self.error_stream is not None else sys.stderr)

    def close(self) -> None:
        """Finalize a status line left open by an update without a done."""
        if self._live is not None:
            self._live.done()
