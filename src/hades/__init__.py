"""Hades: `where > what  result` structured logging on top of loguru.

Expose the facade and the formatting helpers for convenient import.
"""

from hades.errors import HadesConfigError, HadesError, error_cause, error_data
from hades.formatting import FormattedRecord, LogEvent, UpdateMarker, format_log, highlight, unwind_causes
from hades.hades import Hades, HadesConfig

__all__ = [
    "FormattedRecord",
    "Hades",
    "HadesConfig",
    "HadesConfigError",
    "HadesError",
    "LogEvent",
    "UpdateMarker",
    "error_cause",
    "error_data",
    "format_log",
    "highlight",
    "unwind_causes",
]
