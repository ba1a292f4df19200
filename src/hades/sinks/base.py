"""Sink configuration and the loguru entry point shared by all Hades sinks."""

from __future__ import annotations

import os
import pathlib
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from hades.formatting import LogEvent

DEFAULT_MAX_BYTES = 20 * 1024 * 1024
DEFAULT_BACKUPS = 5


@dataclass(frozen=True)
class AppenderConfig:
    """Per-sink options.

    Attributes:
        handle: Called as `handle(event, is_highlight, translate)` to render an
            event. Console sinks expect a `FormattedRecord`, file sinks a string
            (or None to skip the event).
        translate: Locale lookup passed through to `handle`.
        is_highlight: Render markup and level colors.
        path: Destination file (file sinks only).
        max_bytes: Rollover threshold in bytes (file sinks only).
        backups: Number of rotated files to keep; None means the default of 5
            and 0 is raised to 1 (file sinks only).
        strip_color: Remove ANSI color codes from string fields before
            rendering and from the rendered text (file sinks only), leaving
            highlighted markup as plain text.
        eol: Appended to every written record (file sinks only).

    """

    handle: Any
    translate: Callable[..., str]
    is_highlight: bool = True
    path: pathlib.Path | None = None
    max_bytes: int = DEFAULT_MAX_BYTES
    backups: int | None = None
    strip_color: bool = False
    eol: str = os.linesep

    @property
    def backup_count(self) -> int:
        backups = DEFAULT_BACKUPS if self.backups is None else self.backups
        return backups or 1


class BaseSink:
    """Callable loguru sink that hands each record to `emit` as a `LogEvent`."""

    def __init__(self, config: AppenderConfig):
        self.config = config

    def __call__(self, message: Any) -> None:
        self.emit(LogEvent.from_record(message.record))

    def emit(self, event: LogEvent) -> None:
        raise NotImplementedError
