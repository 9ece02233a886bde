"""Backup archive infrastructure package."""

from course_import.infrastructure.archive.filesystem import (
    FileSystemArchiveService,
    FileSystemRestoreController,
)
from course_import.infrastructure.archive.staging import StagingArea, get_backup_temp_root

__all__ = [
    "FileSystemArchiveService",
    "FileSystemRestoreController",
    "StagingArea",
    "get_backup_temp_root",
]
