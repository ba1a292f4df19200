"""Sink exports.

Expose the console and file sinks for convenient import.
"""

from hades.sinks.base import AppenderConfig
from hades.sinks.console import ConsoleSink
from hades.sinks.file import FileSink, reopen_file_sinks

__all__ = ["AppenderConfig", "ConsoleSink", "FileSink", "reopen_file_sinks"]
