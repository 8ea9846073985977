"""Logging setup. stdout carries the MCP stream, so handlers write to stderr."""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path
from typing import Optional, TextIO

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"


def configure_logging(
    level: str = "INFO",
    stream: Optional[TextIO] = None,
    *,
    log_file: Optional[str] = None,
) -> py_logging.Logger:
    resolved = LOG_LEVELS.get(level.upper(), py_logging.INFO)

    logger = py_logging.getLogger("iterm_mcp")
    logger.setLevel(resolved)
    logger.handlers.clear()
    formatter = py_logging.Formatter(_FORMAT)

    handler = py_logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = py_logging.FileHandler(log_path, encoding="utf-8")
        except OSError:
            logger.warning("Could not open log file %s; logging to stderr only", log_path)
        else:
            file_handler.setLevel(py_logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    logger.propagate = False
    return logger
