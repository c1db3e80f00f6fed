"""Logging helpers shared by the simulator and its command line."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Union

DEFAULT_LOGGER_NAME = "demin-sim"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

_LOGGERS: Dict[str, logging.Logger] = {}


def get_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: Optional[Union[int, str]] = None,
) -> logging.Logger:
    """Cached logger with one stream handler; INFO unless ``level`` is given."""
    logger = _LOGGERS.get(name)
    if logger is None:
        logger = logging.getLogger(name)
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
        _LOGGERS[name] = logger

    if level is not None:
        logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger


def reset_logger(name: str = DEFAULT_LOGGER_NAME) -> None:
    """Drop a cached logger and close its handlers (used by tests)."""
    existing = _LOGGERS.pop(name, None)
    if existing is None:
        return
    for handler in list(existing.handlers):
        existing.removeHandler(handler)
        handler.close()
