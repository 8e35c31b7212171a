"""Shared utilities: logging setup and timing instrumentation."""

from .logging import StructuredJSONFormatter, configure_logging, get_logger
from .timing import Lap, Stopwatch

__all__ = [
    "Lap",
    "Stopwatch",
    "StructuredJSONFormatter",
    "configure_logging",
    "get_logger",
]
