"""Logging for the stencil command line.

Rendered output owns stdout, so log records always go to stderr (or a
stream given by the caller) in one of three shapes:

    human    [WARNING] Missing message: farewell
    verbose  [DEBUG][14:02:11] Opening template: parts/row.txt
    json     {"level": "INFO", "ts": "...", "logger": "stencil", "msg": "..."}

Library modules log through ``logging.getLogger(__name__)``; their records
reach the handler installed here because every stencil logger is a child
of the ``stencil`` logger.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

ROOT_LOGGER = "stencil"

_RESET = "\033[0m"

# ANSI color per level; used only when the stream is a terminal
LEVEL_COLORS = {
    logging.DEBUG: "\033[90m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[31m",
}


class LogMode(Enum):
    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


class TextFormatter(logging.Formatter):
    """``[LEVEL] message`` lines, optionally with a wall-clock time."""

    def __init__(self, use_colors: bool = False, show_time: bool = False) -> None:
        super().__init__()
        self.use_colors = use_colors
        self.show_time = show_time

    def format(self, record: logging.LogRecord) -> str:
        prefix = f"[{record.levelname}]"
        if self.use_colors:
            prefix = f"{LEVEL_COLORS.get(record.levelno, _RESET)}{prefix}{_RESET}"
        if self.show_time:
            prefix += f"[{datetime.now().strftime('%H:%M:%S')}]"

        message = f"{prefix} {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with structured fields merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.now(UTC).isoformat(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(getattr(record, "extra_data", {}))
        return json.dumps(entry, default=str)


class StencilLogger(logging.Logger):
    """Logger with structured logging support."""

    def structured(self, level: int, msg: str, **kwargs: Any) -> None:
        """Log a message with additional structured data.

        The keyword arguments appear as extra fields in JSON mode and are
        dropped by the text formatter.

        Args:
            level: Log level
            msg: Log message
            **kwargs: Fields such as template, charset or mime_type
        """
        if self.isEnabledFor(level):
            self.log(level, msg, extra={"extra_data": kwargs})


logging.setLoggerClass(StencilLogger)


def get_logger(name: str = ROOT_LOGGER) -> StencilLogger:
    """Get a stencil logger instance."""
    return logging.getLogger(name)  # type: ignore


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Install a single handler on the ``stencil`` logger.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stderr)
    """
    stream = stream or sys.stderr

    if mode == LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = TextFormatter(
            use_colors=stream.isatty(),
            show_time=mode == LogMode.VERBOSE,
        )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False


def configure_from_cli(verbose: bool = False, quiet: bool = False, ci: bool = False) -> None:
    """Configure logging from the global CLI flags.

    ``--quiet`` wins over ``--verbose`` for the level; ``--ci`` wins over
    ``--verbose`` for the output shape.
    """
    if ci:
        mode = LogMode.JSON
    elif verbose:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode.HUMAN

    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    setup_logging(mode=mode, level=level)
