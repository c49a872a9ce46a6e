# utils/logger.py
"""
Package logging.

n8nflow is a library: importing it only attaches a NullHandler to the
``n8nflow`` logger, so nothing is written anywhere unless the embedding
application configures logging itself or calls :func:`init_logger`.
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

ROOT_LOGGER = "n8nflow"

FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

_COLORS = (
    (logging.ERROR, "\033[91m"),    # red
    (logging.WARNING, "\033[93m"),  # yellow
    (logging.INFO, "\033[92m"),     # green
)

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def level_from_env(default: str = "INFO") -> int:
    """LOG_LEVEL as a logging level; unknown names fall back to INFO."""
    level = logging.getLevelName(os.getenv("LOG_LEVEL", default).upper())
    return level if isinstance(level, int) else logging.INFO


class _StdoutHandler(logging.StreamHandler):
    """Writes to whatever sys.stdout is at emit time (plays well with capture)."""

    def __init__(self) -> None:
        super().__init__(sys.stdout)

    @property
    def stream(self):
        return sys.stdout

    @stream.setter
    def stream(self, value) -> None:
        pass


class _ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        if not sys.stdout.isatty():
            return msg
        for threshold, color in _COLORS:
            if record.levelno >= threshold:
                return f"{color}{msg}\033[0m"
        return msg


def init_logger(
    level: int | None = None,
    log_dir: str | Path | None = None,
    file_name: str = "n8nflow.log",
    file_max_mb: int = 5,
    file_backup: int = 3,
) -> logging.Logger:
    """
    Opt-in console (and optional rotating file) output for the package logger.

    Meant for applications and scripts; the library never calls it. Calling it
    again replaces the handlers it installed earlier.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for h in list(logger.handlers):
        if not isinstance(h, logging.NullHandler):
            logger.removeHandler(h)
    logger.setLevel(level if level is not None else level_from_env())

    console = _StdoutHandler()
    console.setFormatter(_ColorFormatter(fmt=FORMAT, datefmt=DATEFMT))
    logger.addHandler(console)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            filename=str(log_dir / file_name),
            maxBytes=file_max_mb * 1024 * 1024,
            backupCount=file_backup,
            encoding="utf-8",
        )
        fh.setFormatter(logging.Formatter(fmt=FORMAT, datefmt=DATEFMT))
        logger.addHandler(fh)

    return logger


def get_logger(child: str) -> logging.Logger:
    """Child logger under the package logger, e.g. ``n8nflow.checker``."""
    return logging.getLogger(ROOT_LOGGER).getChild(child)
