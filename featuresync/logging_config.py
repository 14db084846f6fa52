"""Logging configuration helpers for the featuresync pipeline.

Progress messages go to stdout and problems to stderr, both as plain text.
A rotating copy is kept under ``FEATURESYNC_LOG_DIR`` (``logs`` by default);
setting the variable to an empty string disables the file.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_DIR = os.getenv("FEATURESYNC_LOG_DIR", "logs")
LOG_FILE_NAME = "featuresync.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
CONSOLE_FORMAT = "%(levelname)s %(message)s"
DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def _console_handlers() -> list[logging.Handler]:
    formatter = logging.Formatter(CONSOLE_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_BelowWarning())
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)

    return [stdout_handler, stderr_handler]


def _file_handler() -> logging.Handler | None:
    if not LOG_DIR:
        return None
    os.makedirs(LOG_DIR, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(LOG_DIR, LOG_FILE_NAME),
        maxBytes=1_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return a logger wired to the console streams and the rotating log file."""

    logger = logging.getLogger(name)
    logger.setLevel(DEFAULT_LEVEL)
    logger.propagate = False

    if not logger.handlers:
        handlers = _console_handlers()
        file_handler = _file_handler()
        if file_handler is not None:
            handlers.append(file_handler)
        for handler in handlers:
            logger.addHandler(handler)

    return logger
