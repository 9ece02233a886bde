"""Logging bootstrap for the course import command."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV_VAR = "COURSE_IMPORT_LOG_LEVEL"


def configure_logging(level: str | None = None) -> None:
    """Configure root logger once; ``level`` overrides the environment."""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    resolved = (level or os.environ.get(LOG_LEVEL_ENV_VAR) or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
