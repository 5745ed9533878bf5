"""
Logging setup for dataset-tool.

Log output always goes to stderr. The CLI prints its results (dataset IDs,
destination paths, dataset descriptions) on stdout so they can be captured
by scripts, and log records must never be mixed into them.
"""

import logging
import sys
import textwrap
from typing import Optional

# ============================================================================
# Logging Configuration Constants
# ============================================================================

DEFAULT_LOG_WIDTH = 120

DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Index is the -d count, anything above the last entry stays at DEBUG
VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)

# Libraries that log every request at INFO
HTTP_LOGGERS = ("httpx", "httpcore")

# -ddd and above also shows the HTTP request logs
HTTP_DEBUG_VERBOSITY = 3


class WrappingFormatter(logging.Formatter):
    """
    Formatter that wraps long log lines at word boundaries.

    Transfer logs carry object keys and local paths that easily run past a
    terminal width. Line breaks already present in a record (tracebacks,
    multi-line summaries) are kept, and only the lines that are too long
    are wrapped.
    """

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        width: int = DEFAULT_LOG_WIDTH,
        indent: str = "",
    ) -> None:
        """
        Initialize the wrapping formatter.

        Args:
            fmt: Format string for log messages
            datefmt: Date format string
            width: Maximum line width
            indent: Prefix for continuation lines of a wrapped line
        """
        super().__init__(fmt, datefmt)
        self.width = width
        self.indent = indent

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        if all(len(line) <= self.width for line in formatted.splitlines()):
            return formatted

        wrapped = []
        for line in formatted.splitlines():
            if len(line) <= self.width:
                wrapped.append(line)
                continue
            wrapped.extend(
                textwrap.wrap(
                    line,
                    width=self.width,
                    subsequent_indent=self.indent,
                    break_long_words=False,
                    break_on_hyphens=False,
                )
            )
        return "\n".join(wrapped)


def verbosity_to_level(verbosity: int) -> int:
    """Map a -d count to a logging level."""
    return VERBOSITY_LEVELS[min(max(verbosity, 0), len(VERBOSITY_LEVELS) - 1)]


def setup_logging(verbosity: int = 0, use_wrapping: bool = False) -> None:
    """
    Configure the root logger for the command line tool.

    Args:
        verbosity: Number of -d flags given
        use_wrapping: Wrap long lines with WrappingFormatter

    Verbosity Levels:
        0 (default): WARNING - warnings, errors and transfer summaries
        1 (-d):      INFO - operation start/finish and polling messages
        2 (-dd):     DEBUG - per-object and per-entry details
        3+ (-ddd):   DEBUG - also HTTP request logs

    Example:
        >>> from dataset_tool.utils import setup_logging
        >>> setup_logging(1)  # INFO level
    """
    level = verbosity_to_level(verbosity)

    if use_wrapping:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(WrappingFormatter(fmt=DEFAULT_LOG_FORMAT, width=DEFAULT_LOG_WIDTH, indent="    "))

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(handler)
        root_logger.setLevel(level)
    else:
        logging.basicConfig(level=level, format=DEFAULT_LOG_FORMAT, stream=sys.stderr)

    http_level = logging.DEBUG if verbosity >= HTTP_DEBUG_VERBOSITY else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)


def get_logger(name: str) -> logging.Logger:
    """Return the logger called ``name`` (usually ``__name__``)."""
    return logging.getLogger(name)


__all__ = [
    "WrappingFormatter",
    "setup_logging",
    "verbosity_to_level",
    "get_logger",
]
