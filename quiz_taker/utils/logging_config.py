"""Logging configuration helpers for the quiz taker."""

from __future__ import annotations

import logging
from logging import Logger
import os


def configure_logging() -> Logger:
    """Configure basic logging for the application and return the package logger."""
    level_name = os.getenv("QUIZ_TAKER_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("quiz_taker")
