"""
Logging for the cellar model.

Every module logs through get_logger("cellar.<part>"). Output goes to stdout,
tinted by level, and additionally to CELLAR_LOG_FILE when that is set.
"""

import logging
import os
import sys
from pathlib import Path

FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_TINTS = {
    logging.DEBUG: "\033[90m",
    logging.WARNING: "\033[93m",
    logging.ERROR: "\033[91m",
    logging.CRITICAL: "\033[91m",
}


class TintedFormatter(logging.Formatter):
    def format(self, record):
        line = super().format(record)
        tint = _TINTS.get(record.levelno)
        return f"{tint}{line}\033[0m" if tint else line


def _resolve_level(level):
    if level is None:
        level = os.getenv("LOG_LEVEL", "WARNING")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), None)
        return level if isinstance(level, int) else logging.WARNING
    return level


def setup_logger(name: str, level=None, log_file=None) -> logging.Logger:
    """
    Configure `name` once; later calls return it untouched.

    `level` falls back to LOG_LEVEL (default WARNING), `log_file` to CELLAR_LOG_FILE.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(_resolve_level(level))

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(TintedFormatter(FORMAT))
    logger.addHandler(console)

    log_file = log_file or os.getenv("CELLAR_LOG_FILE")
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        to_file = logging.FileHandler(path, encoding="utf-8")
        to_file.setFormatter(logging.Formatter(FORMAT))
        logger.addHandler(to_file)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    return setup_logger(name)
