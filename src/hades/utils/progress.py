"""In-place console line used for progress-style logging.

Provides `LiveLine`, a thread-safe wrapper around a description-only `tqdm`
status bar: `update()` redraws the current terminal line, `done()` keeps the
last rendering and moves on so later output starts on a fresh line.
"""

from __future__ import annotations

from threading import Lock
from typing import TextIO

from tqdm import tqdm


class LiveLine:
    """A single terminal line that can be rewritten in place.

    Args:
        file (TextIO | None): Output stream; defaults to tqdm's default (stderr)
            when None.

    """

    def __init__(self, file: TextIO | None = None):
        self.file = file
        self._bar: tqdm | None = None
        self._lock = Lock()

    @property
    def active(self) -> bool:
        return self._bar is not None

    def update(self, text: str) -> None:
        """Redraw the line with `text`, opening it on first use.

        Line breaks are flattened, a status line can only span one row.
        """
        text = text.replace("\n", " ")
        with self._lock:
            if self._bar is None:
                self._bar = tqdm(total=0, bar_format="{desc}", file=self.file, leave=True, dynamic_ncols=True)
            self._bar.set_description_str(text, refresh=True)

    def done(self) -> None:
        """Finalize the line; the next `update()` starts a new one."""
        with self._lock:
            if self._bar is None:
                return
            self._bar.close()
            self._bar = None
