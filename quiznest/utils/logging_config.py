"""Logging configuration helpers for QuizNest."""

from __future__ import annotations

import logging
from logging import Logger

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PACKAGE_LOGGER = "quiznest"


def configure_logging(level: int | str = logging.INFO) -> Logger:
    """Install the console handler once and return the package logger.

    ``level`` also applies to the ``quiznest`` logger itself so that play-through
    events can be made verbose without turning on debug output for FastAPI.
    """
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    return logger
