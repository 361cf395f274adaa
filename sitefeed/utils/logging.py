"""Logging configuration utilities.

``configure_logging`` initializes the root logger once for the CLI; library
modules only ever call ``get_logger`` and leave handler setup to the caller.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Literal, Optional

LogOutput = Literal["stdout", "stderr", "file", "both"]
LogFormat = Literal["text", "json"]

_TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_JSON_FORMAT = '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'


def configure_logging(
    level: str | int | None = None,
    output: LogOutput | None = None,
    file_path: str | None = None,
    log_format: LogFormat | None = None,
    module: Optional[str] = None,
) -> None:
    """Configure application logging.

    Parameters
    ----------
    level:
        Logging level as a string (e.g., "INFO") or numeric value.
        Defaults to ``LOG_LEVEL`` or INFO.
    output:
        "stdout", "stderr", "file", or "both" (stderr + file). Defaults to
        ``LOG_OUTPUT`` or stderr, so feed XML written to stdout stays clean.
    file_path:
        Log file path for "file"/"both". Defaults to ``LOG_FILE_PATH``.
    log_format:
        "text" or "json". Defaults to ``LOG_FORMAT`` or text.
    module:
        Optional logger name to set the level on in addition to the root.
    """
    # Resolved at call-time so values loaded from .env are respected
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if log_format is None:
        log_format = os.environ.get("LOG_FORMAT", "text").lower()  # type: ignore[assignment]
    if output is None:
        output = os.environ.get("LOG_OUTPUT", "stderr").lower()  # type: ignore[assignment]
    if file_path is None:
        file_path = os.environ.get("LOG_FILE_PATH") or "logs/sitefeed.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(_TEXT_FORMAT if log_format == "text" else _JSON_FORMAT)

    if output in ("stdout", "stderr", "both"):
        stream_handler = logging.StreamHandler(sys.stdout if output == "stdout" else sys.stderr)
        stream_handler.setFormatter(formatter)
        root_logger.addHandler(stream_handler)

    if output in ("file", "both"):
        log_dir = os.path.dirname(file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(file_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if module:
        logging.getLogger(module).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
