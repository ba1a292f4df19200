"""Exception types and helpers for attaching causes and data to errors."""

from __future__ import annotations

from typing import Any


class HadesError(Exception):
    """Base class for errors raised by Hades itself."""


class HadesConfigError(HadesError, TypeError):
    """Raised when a logger or sink is configured with an invalid option."""


def _as_exception(message: BaseException | str) -> BaseException:
    if isinstance(message, BaseException):
        return message
    return Exception(message)


def error_cause(message: BaseException | str, cause: Any = None) -> BaseException:
    """Return an exception carrying `cause`.

    The cause is rendered by the formatter as a `--> ...` line after the
    error's own message. Exception causes are also linked through
    `__cause__` so tracebacks show them.

    Args:
        message (BaseException | str): Message for a new `Exception`, or an
            existing exception to annotate.
        cause (Any): Underlying error or plain value.

    Returns:
        BaseException: The annotated exception.

    """
    error = _as_exception(message)
    error.cause = cause
    if isinstance(cause, BaseException):
        error.__cause__ = cause
    return error


def error_data(message: BaseException | str, data: Any = None) -> BaseException:
    """Return an exception carrying `data`, printed as `[Data] ...` in stack logs.

    Falsy data (`None`, `""`, `0`, empty containers) is not printed.
    """
    error = _as_exception(message)
    error.data = data
    return error
