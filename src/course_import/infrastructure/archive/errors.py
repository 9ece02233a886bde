"""Exceptions for backup archive infrastructure."""

from __future__ import annotations


class ArchiveError(RuntimeError):
    """Base error for backup archive failures."""


class UnsupportedArchiveError(ArchiveError):
    """Raised when a file is neither a zip nor a tar archive."""


class UnsafeArchiveMemberError(ArchiveError):
    """Raised when an archive member would be written outside its destination."""


class BackupContentError(ArchiveError):
    """Raised when staged backup content cannot be read."""
