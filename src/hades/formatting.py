"""Log record formatting for the `where > what  result` line shape.

This module holds the pieces every Hades sink shares: the `~[term]` /
`~{value}` highlighter, the error cause-chain unwinder and `format_log`,
which turns a `LogEvent` into the printed line plus an optional stack block.
"""

from __future__ import annotations

import enum
import re
import traceback
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, NamedTuple

from colorama import Fore, Style
from colorama.ansi import code_to_chars

from hades.levels import LEVELS_BY_NAME, Level

DEFAULT_TIME_FORMAT = "YY-MM-DD HH:mm:ss:SSS"
MAX_CAUSE_DEPTH = 64

STACK_HEADER = "-------------- Stack --------------"
STACK_DIVIDER = "\n--------------\n"
STACK_FOOTER = "===================================\n"

UNDERLINE = code_to_chars(4)
NO_UNDERLINE = code_to_chars(24)

_TERM = re.compile(r"(?<!\\)~(?<!\\)\[(.*?)(?<!\\)\]")
_VALUE = re.compile(r"(?<!\\)~(?<!\\)\{(.*?)(?<!\\)\}")
_ESCAPED = re.compile(r"\\([~{}\[\]])")
_ANSI = re.compile(r"\x1b\[[0-9;]*m")
_TIME_TOKENS = re.compile(r"\[([^\]]*)\]|YYYY|YY|SSS|MM|DD|HH|mm|ss")

_TIME_FIELDS: dict[str, Callable[[datetime], str]] = {
    "YYYY": lambda t: f"{t.year:04d}",
    "YY": lambda t: f"{t.year % 100:02d}",
    "MM": lambda t: f"{t.month:02d}",
    "DD": lambda t: f"{t.day:02d}",
    "HH": lambda t: f"{t.hour:02d}",
    "mm": lambda t: f"{t.minute:02d}",
    "ss": lambda t: f"{t.second:02d}",
    "SSS": lambda t: f"{t.microsecond // 1000:03d}",
}


class UpdateMarker(enum.Enum):
    """Console line handling requested by a log call."""

    UPDATE = "update"
    DONE = "done"


@dataclass(frozen=True)
class LogEvent:
    """One log call as seen by the sinks.

    Attributes:
        timestamp (datetime): When the call was made.
        level (Level): Level of the call.
        fields (tuple): `(where, what, *results)` exactly as passed.
        marker (UpdateMarker | None): In-place console update request.

    """

    timestamp: datetime
    level: Level
    fields: tuple[Any, ...] = ()
    marker: UpdateMarker | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> LogEvent:
        """Build an event from a loguru record emitted by a `Hades` facade.

        Records logged through plain loguru calls are accepted too; their
        message becomes the only field.
        """
        extra = record["extra"]
        loguru_level = record["level"]
        level = LEVELS_BY_NAME.get(loguru_level.name) or Level(
            loguru_level.name.lower(), loguru_level.name, loguru_level.no, ""
        )
        return cls(
            timestamp=record["time"],
            level=level,
            fields=tuple(extra.get("hades_fields", (record["message"],))),
            marker=extra.get("hades_marker"),
        )


class FormattedRecord(NamedTuple):
    """Rendered output of one event; `stack` is set only when errors were logged."""

    line: str
    stack: str | None = None


def emphasize_term(text: str) -> str:
    return f"{UNDERLINE}{Style.BRIGHT}{text}{Style.NORMAL}{NO_UNDERLINE}"


def emphasize_value(text: str) -> str:
    return f"{Fore.WHITE}[{text}]{Fore.RESET}"


def colorize(text: str, color: str) -> str:
    """Wrap `text` in `color`, re-opening it after any nested color reset."""
    if not color:
        return text
    return f"{color}{text.replace(Fore.RESET, Fore.RESET + color)}{Fore.RESET}"


def strip_ansi(text: str) -> str:
    return _ANSI.sub("", text)


def highlight(text: Any) -> str:
    """Render `~[term]` and `~{value}` markup as ANSI emphasis.

    A backslash escapes the markup characters; escapes are removed after the
    spans are rendered. Text without markup is returned unchanged.

    Args:
        text (Any): Text to render; non-strings are converted with `str()`.

    Returns:
        str: The rendered text.

    """
    text = _TERM.sub(lambda m: emphasize_term(m.group(1)), str(text))
    text = _VALUE.sub(lambda m: emphasize_value(m.group(1)), text)
    return _ESCAPED.sub(r"\1", text)


def format_time(moment: datetime, pattern: str = DEFAULT_TIME_FORMAT) -> str:
    """Format `moment` with day.js style tokens (`YY-MM-DD HH:mm:ss:SSS`).

    Text in square brackets is copied literally.
    """

    def _token(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return _TIME_FIELDS[match.group(0)](moment)

    return _TIME_TOKENS.sub(_token, pattern)


def _attr(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


def is_error_like(value: Any) -> bool:
    """Return True for exceptions and for objects with both `message` and `stack`."""
    if value is None or isinstance(value, str):
        return False
    if isinstance(value, BaseException):
        return True
    return bool(_attr(value, "message")) and bool(_attr(value, "stack"))


def error_message(error: Any) -> str:
    """Return the display message of an error-like value.

    Exceptions without a message fall back to their class name.
    """
    message = _attr(error, "message")
    if isinstance(error, BaseException):
        return str(message or error) or type(error).__name__
    return "" if message is None else str(message)


def error_stack(error: Any) -> str:
    """Return the stack text of an error-like value, or an empty string."""
    stack = _attr(error, "stack")
    if stack:
        return str(stack)
    if isinstance(error, BaseException):
        return "".join(traceback.format_exception(error, chain=False)).rstrip("\n")
    return ""


def _cause_of(error: Any) -> Any:
    cause = _attr(error, "cause")
    if cause is None and isinstance(error, BaseException):
        cause = error.__cause__
    return cause


def unwind_causes(root: Any) -> list[Any]:
    """Flatten an error's cause chain into `[root, cause, cause-of-cause, ...]`.

    The walk stops at the first value that is not error-like; that value is
    kept as the last entry when truthy. Cycles and chains deeper than
    `MAX_CAUSE_DEPTH` are cut off silently.

    Args:
        root (Any): The logged value.

    Returns:
        list[Any]: The chain, starting with `root`.

    """
    if not is_error_like(root):
        return [root] if root else []

    chain = [root]
    seen = {id(root)}
    current = _cause_of(root)
    while is_error_like(current) and len(chain) < MAX_CAUSE_DEPTH:
        if id(current) in seen:
            return chain
        seen.add(id(current))
        chain.append(current)
        current = _cause_of(current)

    if current and not is_error_like(current):
        chain.append(current)
    return chain


def _render_error(error: Any, is_highlight: bool, color: str) -> str:
    """Render one stack block entry: message, stack and a `[Data]` line for truthy data."""
    message = error_message(error)
    text = colorize(highlight(message), color) if is_highlight else message

    stack = error_stack(error)
    if stack:
        text += "\n" + stack.replace("    ", "\t")

    data = _attr(error, "data")
    if data:
        text += f"\n[Data] {data}"
    return text


def format_log(
    event: LogEvent,
    is_highlight: bool,
    translate: Callable[[str], str],
    time_format: str = DEFAULT_TIME_FORMAT,
) -> FormattedRecord:
    """Compose the console/file line and the optional stack block of an event.

    The line has the shape `[time][level] where >  what  result`, where every
    result after the first is put on its own tab-indented line. Error-like
    results contribute their message and the messages of their causes
    (`--> cause`) to the line, and their stack traces to the stack block.

    Args:
        event (LogEvent): The event to render.
        is_highlight (bool): Apply markup rendering and the level color.
        translate (Callable[[str], str]): Locale lookup used for the level label.
        time_format (str): day.js style timestamp pattern.

    Returns:
        FormattedRecord: The line, plus the stack block when errors were logged.

    """
    fields = event.fields
    if not fields:
        return FormattedRecord("")

    color = event.level.color
    level = translate(f"level.{event.level.key}")
    time = format_time(event.timestamp, time_format)

    texts: list[str] = []
    errors: list[Any] = []
    for value in fields[2:]:
        if value is None:
            continue

        if is_error_like(value):
            for depth, entry in enumerate(unwind_causes(value)):
                if is_error_like(entry):
                    errors.append(entry)
                    text = error_message(entry)
                else:
                    text = str(entry)
                texts.append(text if depth == 0 else f"--> {text}")
        elif _attr(value, "message"):
            texts.append(str(_attr(value, "message")))
        else:
            texts.append(str(value))

    where = fields[0]
    what = fields[1] if len(fields) > 1 else None
    result = "\n\t".join(texts)

    if is_highlight:
        if isinstance(where, str):
            where = highlight(where)
        if isinstance(what, str):
            what = highlight(what)
        result = highlight(result)

    line = f"[{time}][{level}] {where}"
    if what:
        line += f" >  {what}"
    if result:
        line += f"  {result}"
    if is_highlight:
        line = colorize(line, color)

    if not errors:
        return FormattedRecord(line)

    stack = "\n".join(
        [
            line,
            STACK_HEADER,
            STACK_DIVIDER.join(_render_error(error, is_highlight, color) for error in errors),
            STACK_FOOTER,
        ]
    )
    return FormattedRecord(line, stack)


def render_line(event: LogEvent, is_highlight: bool, translate: Callable[[str], str], time_format: str = DEFAULT_TIME_FORMAT) -> str:
    """File handler writing the formatted line of every event."""
    return format_log(event, is_highlight, translate, time_format).line


def render_stack(event: LogEvent, is_highlight: bool, translate: Callable[[str], str], time_format: str = DEFAULT_TIME_FORMAT) -> str | None:
    """File handler writing only the stack block; events without errors yield None."""
    return format_log(event, is_highlight, translate, time_format).stack
