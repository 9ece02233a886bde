"""Temporary storage for extracted and backed-up course content."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from uuid import uuid4

LOGGER = logging.getLogger(__name__)

BACKUP_TEMP_DIR_ENV_VAR = "COURSE_IMPORT_BACKUP_TEMP_DIR"


def get_backup_temp_root() -> Path:
    """Return configured root of backup staging directories."""
    configured = os.environ.get(BACKUP_TEMP_DIR_ENV_VAR)
    if configured:
        return Path(configured).expanduser().resolve()

    return (Path(tempfile.gettempdir()) / "course-import" / "backup").resolve()


class StagingArea:
    """One directory per backup id under a common root."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        """Return root of every staging directory."""
        return self._root

    def new_backup_id(self) -> str:
        """Return an id no other staging directory uses."""
        return uuid4().hex

    def directory(self, backup_id: str) -> Path:
        """Return staging directory of ``backup_id``."""
        return self._root / backup_id

    def purge(self) -> int:
        """Delete every staging directory and return how many were removed."""
        if not self._root.is_dir():
            return 0
        removed = 0
        for child in self._root.iterdir():
            if child.is_dir():
                shutil.rmtree(child, ignore_errors=True)
                removed += 1
        LOGGER.info(
            "event=staging_purged course_id=- root=%s removed=%s",
            self._root,
            removed,
        )
        return removed
