"""The seven Hades log levels and their loguru counterparts."""

from __future__ import annotations

import contextlib
from dataclasses import dataclass

from colorama import Fore
from loguru import logger


@dataclass(frozen=True)
class Level:
    """A Hades level.

    Attributes:
        key (str): Hades name, also the locale key suffix (`level.<key>`).
        name (str): Loguru level name used when emitting.
        no (int): Severity number shared with loguru.
        color (str): ANSI color sequence wrapping highlighted lines.

    """

    key: str
    name: str
    no: int
    color: str


LEVELS: dict[str, Level] = {
    "trace": Level("trace", "TRACE", 5, Fore.BLUE),
    "debug": Level("debug", "DEBUG", 10, Fore.CYAN),
    "info": Level("info", "INFO", 20, Fore.GREEN),
    "warn": Level("warn", "WARNING", 30, Fore.YELLOW),
    "error": Level("error", "ERROR", 40, Fore.RED),
    "fatal": Level("fatal", "FATAL", 50, Fore.MAGENTA),
    "mark": Level("mark", "MARK", 60, Fore.LIGHTBLACK_EX),
}

LEVELS_BY_NAME: dict[str, Level] = {level.name: level for level in LEVELS.values()}

# Threshold names accepted for the minimum level besides the level keys
THRESHOLDS = {"all": 0, "off": 1000}
ALIASES = {"warning": "warn", "critical": "fatal", "success": "info"}

# loguru markup for the two levels it does not ship with
_CUSTOM_LEVELS = {"FATAL": "<magenta>", "MARK": "<dim>"}

_engine_ready = False


def resolve_threshold(level: str | int | None) -> int:
    """Translate a minimum level into a loguru severity number.

    Args:
        level (str | int | None): A level key (`info`), a loguru alias
            (`warning`), `all`, `off`, or a raw severity number.

    Returns:
        int: Severity number suitable for `logger.add(level=...)`.

    Raises:
        ValueError: If `level` is not a known level name.

    """
    if level is None:
        return THRESHOLDS["all"]
    if isinstance(level, int):
        return level
    key = level.strip().lower()
    key = ALIASES.get(key, key)
    if key in THRESHOLDS:
        return THRESHOLDS[key]
    if key in LEVELS:
        return LEVELS[key].no
    raise ValueError(f"Unknown log level: {level!r}")


def setup_engine() -> None:
    """Prepare the global loguru logger for Hades sinks.

    Registers the FATAL and MARK levels and, on the first call only, removes
    loguru's default stderr handler so Hades records are not printed twice.
    """
    global _engine_ready
    for name, color in _CUSTOM_LEVELS.items():
        level = LEVELS_BY_NAME[name]
        try:
            logger.level(name)
        except ValueError:
            logger.level(name, no=level.no, color=color)
    if _engine_ready:
        return
    # handler 0 is loguru's default stderr sink; it may already be gone
    with contextlib.suppress(ValueError):
        logger.remove(0)
    _engine_ready = True
