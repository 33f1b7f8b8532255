"""Application-wide settings and environment loading."""

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()
logger.debug("Environment variables loaded from .env if present")


@lru_cache(maxsize=1)
def get_git_executable() -> str:
    """Return the git executable to invoke for repository access."""
    executable = os.getenv("PKGHISTORY_GIT")
    if executable:
        logger.debug("Git executable overridden", extra={"git": executable})
        return executable
    return "git"


def get_log_level() -> str:
    """Return the configured log level name."""
    return os.getenv("PKGHISTORY_LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO")
