"""Logging configuration utilities for Package History."""

import logging
import sys
from typing import Optional

from .settings import get_log_level

_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure application-wide logging once.

    Logs go to stderr so console output of change events stays clean on stdout.
    """
    if logging.getLogger().handlers:
        return

    log_level = level or get_log_level()
    logging.basicConfig(level=log_level.upper(), format=_LOG_FORMAT, stream=sys.stderr)
