"""Application logging utilities."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

_LOG_FILE_NAME = "codeon.log"


def configure_logging(log_directory: Path, level: str = "INFO", console: bool = True) -> logging.Logger:
    """Configure a rotating log file under ``log_directory``."""
    logger = logging.getLogger("codeon")
    if logger.handlers:
        return logger

    logger.setLevel(level.upper())

    log_directory.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_directory / _LOG_FILE_NAME,
        maxBytes=1_048_576,
        backupCount=5,
        encoding="utf-8",
    )
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # A full-screen TUI owns the terminal, so it skips the stream handler.
    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    logger.info("Logger initialised; logs available at %s", handler.baseFilename)
    return logger
