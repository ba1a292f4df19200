"""The Hades logging facade.

`Hades` resolves its configuration once (explicit arguments, then `HADES_`
environment variables, then defaults), registers a console sink and, when a
log directory is configured, a primary and a stack-only rolling file sink with
loguru, and exposes one method per level for `where, what, *results` calls.
"""

from __future__ import annotations

import asyncio
import atexit
import contextlib
import functools
import itertools
import os
import pathlib
import sys
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, NoReturn, TextIO

from dacite import Config, from_dict
from loguru import logger

from hades.config.settings import Settings, load_settings, parse_flags
from hades.formatting import DEFAULT_TIME_FORMAT, UpdateMarker, format_log, render_line, render_stack
from hades.levels import LEVELS, resolve_threshold, setup_engine
from hades.sinks.base import DEFAULT_BACKUPS, DEFAULT_MAX_BYTES, AppenderConfig
from hades.sinks.console import ConsoleSink
from hades.sinks.file import FileSink
from hades.utils.i18n import Translator

config_loader = Config(strict=True, check_types=True)

_instance_ids = itertools.count(1)


@dataclass(frozen=True)
class HadesConfig:
    """Resolved, immutable options of one `Hades` instance."""

    name: str = "default"
    level: str = "all"
    log_dir: pathlib.Path | None = None
    max_file_size: int = DEFAULT_MAX_BYTES
    backup_count: int = DEFAULT_BACKUPS
    use_highlighting: bool = True
    announce_init: bool = True
    announce_dir: bool = True
    init_immediately: bool = True
    colorize_files: bool = False
    locale: str = "en"
    time_format: str = DEFAULT_TIME_FORMAT

    @classmethod
    def resolve(cls, overrides: dict[str, Any], settings: Settings | None = None) -> HadesConfig:
        """Merge explicit options over environment settings over defaults.

        Args:
            overrides (dict[str, Any]): Explicit options; None values are ignored.
            settings (Settings | None): Environment settings, read fresh when None.

        Returns:
            HadesConfig: The resolved configuration.

        """
        settings = settings or load_settings()
        data: dict[str, Any] = {
            "name": settings.name,
            "level": settings.level,
            "log_dir": settings.dir,
            "max_file_size": settings.max_file_size,
            "backup_count": settings.backup_count,
            "locale": settings.locale,
            "time_format": settings.time_format,
        }
        data.update(parse_flags(settings.flags))
        data.update(overrides)
        data = {key: value for key, value in data.items() if value is not None}
        if "log_dir" in data:
            data["log_dir"] = pathlib.Path(data["log_dir"])
        return from_dict(data_class=cls, data=data, config=config_loader)


def _summary(fields: tuple[Any, ...]) -> str:
    return " > ".join(str(f) for f in fields[:2] if f is not None)


class Hades:
    """Structured logger writing `[time][level] where >  what  result` lines.

    - errors passed as results print their message (and causes) inline, while
      their stack traces go to stderr and to `<name>.stack.log`
    - seven levels: trace, debug, info, warn, error, fatal, mark
    - `*_update` methods rewrite the current console line, `*_done` methods
      rewrite it once more and keep it

    Args:
        name (str | None): Logger name, also the log file name. `HADES_NAME`,
            default `"default"`.
        level (str | None): Minimum level (`all`, `off` or a level key).
            `HADES_LEVEL`, default `"all"`.
        log_dir (pathlib.Path | str | None): Directory for log files; console
            only when unset. `HADES_DIR`.
        max_file_size (int | None): Rollover size in bytes. `HADES_MAX_FILE_SIZE`.
        backup_count (int | None): Rotated files to keep. `HADES_BACKUP_COUNT`.
        use_highlighting (bool | None): Render markup and level colors.
        announce_init (bool | None): Log a line once initialized.
        announce_dir (bool | None): Include the log directory in that line.
        init_immediately (bool | None): Call `init()` from the constructor.
        locale (str | None): Locale of level labels and phrases. `HADES_LOCALE`.
        time_format (str | None): day.js style time pattern. `HADES_TIME_FORMAT`.
        colorize_files (bool | None): Keep ANSI colors in log files.
        on_pause (Callable[[bool], None] | None): Receives `True` once any log
            file falls behind and `False` once all of them have drained.
        stream (TextIO | None): Console line output, stdout by default.
        error_stream (TextIO | None): Console stack output, stderr by default.

    The boolean options fall back to the `HADES_FLAGS` variable, e.g.
    `HADES_FLAGS=!Highlight,InitImmediately`.

    """

    def __init__(
        self,
        name: str | None = None,
        level: str | None = None,
        log_dir: pathlib.Path | str | None = None,
        *,
        max_file_size: int | None = None,
        backup_count: int | None = None,
        use_highlighting: bool | None = None,
        announce_init: bool | None = None,
        announce_dir: bool | None = None,
        init_immediately: bool | None = None,
        locale: str | None = None,
        time_format: str | None = None,
        colorize_files: bool | None = None,
        on_pause: Callable[[bool], None] | None = None,
        stream: TextIO | None = None,
        error_stream: TextIO | None = None,
    ):
        self.config = HadesConfig.resolve(
            {
                "name": name,
                "level": level,
                "log_dir": log_dir,
                "max_file_size": max_file_size,
                "backup_count": backup_count,
                "use_highlighting": use_highlighting,
                "announce_init": announce_init,
                "announce_dir": announce_dir,
                "init_immediately": init_immediately,
                "locale": locale,
                "time_format": time_format,
                "colorize_files": colorize_files,
            }
        )
        # fail early on an unknown level name
        self.threshold = resolve_threshold(self.config.level)
        self.translate = Translator(self.config.locale)
        self.on_pause = on_pause
        self.stream = stream
        self.error_stream = error_stream

        self.paused = False
        self._paused_sinks: set[str] = set()
        self._pause_lock = threading.Lock()
        self.is_initialized = False
        self._tag = f"{self.config.name}:{next(_instance_ids)}"
        self.logger = logger.bind(hades=self._tag)
        self._handler_ids: list[int] = []
        self._console: ConsoleSink | None = None
        self._files: list[FileSink] = []

        setup_engine()

        if self.config.init_immediately:
            self.init()

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def level(self) -> str:
        return self.config.level

    @property
    def log_dir(self) -> pathlib.Path | None:
        return self.config.log_dir

    @property
    def file_sinks(self) -> list[FileSink]:
        return list(self._files)

    def __repr__(self) -> str:
        return f"Hades(name={self.name!r}, level={self.level!r}, log_dir={self.log_dir!r})"

    def _owns(self, record: dict[str, Any]) -> bool:
        return record["extra"].get("hades") == self._tag

    def _pause_changed(self, source: str, paused: bool) -> None:
        # resume only once every file sink has drained
        with self._pause_lock:
            if paused:
                self._paused_sinks.add(source)
            else:
                self._paused_sinks.discard(source)
            if bool(self._paused_sinks) == self.paused:
                return
            self.paused = not self.paused
            if self.on_pause is not None:
                self.on_pause(self.paused)

    def init(self) -> Hades:
        """Register this logger's sinks with loguru; a no-op when already initialized.

        Returns:
            Hades: The instance, for chaining.

        """
        if self.is_initialized:
            return self

        config = self.config
        self._console = ConsoleSink(
            AppenderConfig(
                handle=functools.partial(format_log, time_format=config.time_format),
                translate=self.translate,
                is_highlight=config.use_highlighting,
            ),
            stream=self.stream,
            error_stream=self.error_stream,
        )
        self._handler_ids.append(
            logger.add(self._console, level=self.threshold, format="{message}", filter=self._owns)
        )

        if config.log_dir is not None:
            for suffix, render in ((".log", render_line), (".stack.log", render_stack)):
                sink = FileSink(
                    AppenderConfig(
                        handle=functools.partial(render, time_format=config.time_format),
                        translate=self.translate,
                        is_highlight=config.use_highlighting,
                        path=config.log_dir / f"{config.name}{suffix}",
                        max_bytes=config.max_file_size,
                        backups=config.backup_count,
                        strip_color=not config.colorize_files,
                    ),
                    on_pause=functools.partial(self._pause_changed, suffix),
                )
                self._files.append(sink)
                # catch=False lets configuration errors reach the caller
                self._handler_ids.append(
                    logger.add(sink, level=self.threshold, format="{message}", filter=self._owns, catch=False)
                )

        self.is_initialized = True
        atexit.register(self.shutdown)

        if config.announce_init:
            T = self.translate
            if config.announce_dir and config.log_dir is not None:
                result = T("logDir", dir=config.log_dir)
            else:
                result = T("initDone")
            self.info(T("logger"), T("init"), result)

        return self

    def shutdown(self) -> None:
        """Remove this logger's sinks from loguru and close its log files.

        Every file sink is closed even when an earlier one fails; the first
        failure is raised afterwards and the logger is left uninitialized, so
        `init()` can be called again.

        Raises:
            Exception: The first error raised while closing a file sink.

        """
        atexit.unregister(self.shutdown)
        failure: Exception | None = None
        try:
            for handler_id in self._handler_ids:
                # already gone when someone called logger.remove() globally
                with contextlib.suppress(ValueError):
                    logger.remove(handler_id)
            self._handler_ids.clear()

            if self._console is not None:
                self._console.close()
                self._console = None

            files, self._files = self._files, []
            for sink in files:
                try:
                    sink.shutdown()
                except Exception as exc:
                    if failure is None:
                        failure = exc
        finally:
            self.is_initialized = False
        if failure is not None:
            raise failure

    async def reload(self) -> Hades:
        """Tear down the sinks in a worker thread, then initialize again.

        Returns:
            Hades: The re-initialized instance.

        Raises:
            Exception: Whatever closing the previous sinks raised.

        """
        await asyncio.to_thread(self.shutdown)
        return self.init()

    def _log(self, key: str, marker: UpdateMarker | None, where: Any, what: Any, infos: tuple[Any, ...]) -> None:
        fields = (where, what, *infos)
        self.logger.opt(depth=2).bind(hades_fields=fields, hades_marker=marker).log(LEVELS[key].name, _summary(fields))

    # trace: high-frequency low-level data, such as a loop counter; debugging only
    def trace(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("trace", None, where, what, infos)

    def trace_update(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("trace", UpdateMarker.UPDATE, where, what, infos)

    def trace_done(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("trace", UpdateMarker.DONE, where, what, infos)

    # debug: low-frequency calculation results, unimportant heartbeats
    def debug(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("debug", None, where, what, infos)

    def debug_update(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("debug", UpdateMarker.UPDATE, where, what, infos)

    def debug_done(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("debug", UpdateMarker.DONE, where, what, infos)

    # info: regular summaries and expected, handled exceptions
    def info(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("info", None, where, what, infos)

    def info_update(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("info", UpdateMarker.UPDATE, where, what, infos)

    def info_done(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("info", UpdateMarker.DONE, where, what, infos)

    # warn: conditions that may lead to errors, e.g. a retried connection
    def warn(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("warn", None, where, what, infos)

    def warn_update(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("warn", UpdateMarker.UPDATE, where, what, infos)

    def warn_done(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("warn", UpdateMarker.DONE, where, what, infos)

    # error: unexpected failures that interrupt a task
    def error(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("error", None, where, what, infos)

    def error_update(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("error", UpdateMarker.UPDATE, where, what, infos)

    def error_done(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("error", UpdateMarker.DONE, where, what, infos)

    # fatal: failures that stop the program
    def fatal(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("fatal", None, where, what, infos)

    def fatal_update(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("fatal", UpdateMarker.UPDATE, where, what, infos)

    def fatal_done(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("fatal", UpdateMarker.DONE, where, what, infos)

    # mark: notices printed at any level short of off, such as copyright lines
    def mark(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("mark", None, where, what, infos)

    def mark_update(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("mark", UpdateMarker.UPDATE, where, what, infos)

    def mark_done(self, where: Any, what: Any = None, *infos: Any) -> None:
        self._log("mark", UpdateMarker.DONE, where, what, infos)

    def fatal_exit(self, code: int, where: Any, what: Any = None, *infos: Any) -> NoReturn:
        """Log at fatal level, then terminate the process with `code`.

        On the main thread this raises `SystemExit`, so `atexit` hooks and
        `finally` blocks run. Anywhere else `SystemExit` would only end the
        calling thread: the log files are flushed and closed, then the process
        exits immediately through `os._exit`.
        """
        self._log("fatal", None, where, what, infos)
        if threading.current_thread() is threading.main_thread():
            sys.exit(code)
        try:
            self.shutdown()
        finally:
            for stream in (self.stream, self.error_stream, sys.stdout, sys.stderr):
                if stream is not None:
                    # a closed stream must not keep the process alive
                    with contextlib.suppress(OSError, ValueError):
                        stream.flush()
            os._exit(code)
