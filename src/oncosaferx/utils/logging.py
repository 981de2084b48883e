"""
Logging setup shared by the CLI and the API.

Every line reads ``[2024-01-15T09:00:00.123+00:00] WARNING  [oncosaferx.state.auth] ...``.
The console colours the line by level when it is a terminal; the optional
log file gets the same line without colour.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
RESET = "\033[0m"

# per-request access lines from the HTTP stacks
NOISY_LOGGERS = ("aiohttp.access", "uvicorn.access")


class StructuredFormatter(logging.Formatter):
    """One line per record, stamped with the record's own UTC creation time."""

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        line = f"[{self.formatTime(record)}] {record.levelname:8} [{record.name}] {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        if not self.use_color:
            return line
        color = LEVEL_COLORS.get(record.levelno, "")
        return f"{color}{line}{RESET}" if color else line


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def setup_logging(
    level: str = "INFO", log_file: str | None = None, stream: TextIO | None = None
) -> None:
    """
    Route all ``oncosaferx`` loggers through one console handler.

    Args:
        level: Level name, case-insensitive.
        log_file: Also append uncoloured lines to this file.
        stream: Console stream, stdout by default.

    Raises:
        ValueError: for an unknown level name.
    """
    numeric = _resolve_level(level)
    stream = stream or sys.stdout

    root = logging.getLogger()
    root.setLevel(numeric)
    root.handlers.clear()

    console = logging.StreamHandler(stream)
    console.setFormatter(StructuredFormatter(use_color=stream.isatty()))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter(use_color=False))
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING)
