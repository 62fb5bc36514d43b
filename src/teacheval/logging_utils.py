"""Centralized logging configuration for teacheval."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import AppConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _file_handler(log_path: Path) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        log_path,
        maxBytes=2 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(config: AppConfig) -> logging.Logger:
    """Configure the ``teacheval`` logger and return it.

    Calling it again with a config that points at another log file moves the
    file handler there.
    """

    log_path = Path(config.log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("teacheval")
    logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))
    logger.propagate = False

    file_handler = next((h for h in logger.handlers if isinstance(h, RotatingFileHandler)), None)
    if file_handler is not None and Path(file_handler.baseFilename) != log_path.absolute():
        logger.removeHandler(file_handler)
        file_handler.close()
        file_handler = None
    if file_handler is None:
        file_handler = _file_handler(log_path)
        logger.addHandler(file_handler)

    # RotatingFileHandler is a StreamHandler too
    if not any(type(handler) is logging.StreamHandler for handler in logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(logging.WARNING)
        stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(stream_handler)

    logger.debug("Logging initialized at %s level", config.log_level.upper())
    return logger


__all__ = ["LOG_FORMAT", "setup_logging"]
