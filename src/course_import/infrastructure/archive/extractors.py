"""Zip and tar extractors for course backup archives."""

from __future__ import annotations

import tarfile
import zipfile
from pathlib import Path
from typing import Protocol

from course_import.infrastructure.archive.errors import (
    UnsafeArchiveMemberError,
    UnsupportedArchiveError,
)


class BackupExtractor(Protocol):
    """Protocol for backup archive extractors."""

    strategy_name: str

    def accepts(self, archive_path: Path) -> bool:
        """Return whether the archive has this extractor's format."""
        ...

    def extract(self, archive_path: Path, destination: Path) -> int:
        """Extract archive into ``destination`` and return member count."""
        ...


class ZipBackupExtractor:
    """Extractor for zip packed backups."""

    strategy_name = "zip"

    def accepts(self, archive_path: Path) -> bool:
        return zipfile.is_zipfile(archive_path)

    def extract(self, archive_path: Path, destination: Path) -> int:
        with zipfile.ZipFile(archive_path) as archive:
            names = archive.namelist()
            for name in names:
                _ensure_inside(destination, name)
            archive.extractall(destination)
        return len(names)


class TarBackupExtractor:
    """Extractor for tar packed backups, compressed or not."""

    strategy_name = "tar"

    def accepts(self, archive_path: Path) -> bool:
        return tarfile.is_tarfile(archive_path)

    def extract(self, archive_path: Path, destination: Path) -> int:
        with tarfile.open(archive_path) as archive:
            members = [
                member for member in archive.getmembers() if member.isfile() or member.isdir()
            ]
            for member in members:
                _ensure_inside(destination, member.name)
            archive.extractall(destination, members=members, filter="data")
        return len(members)


class CompositeBackupExtractor:
    """Pick the first extractor accepting the archive."""

    def __init__(self, extractors: list[BackupExtractor] | None = None) -> None:
        self._extractors = extractors or [ZipBackupExtractor(), TarBackupExtractor()]

    def extract(self, archive_path: Path, destination: Path) -> tuple[str, int]:
        """Extract and return strategy name and member count."""
        for extractor in self._extractors:
            if extractor.accepts(archive_path):
                return extractor.strategy_name, extractor.extract(archive_path, destination)
        raise UnsupportedArchiveError(f"Unsupported backup archive: {archive_path.name}")


def _ensure_inside(destination: Path, member_name: str) -> None:
    root = destination.resolve()
    target = (root / member_name).resolve()
    if target != root and root not in target.parents:
        raise UnsafeArchiveMemberError(f"Archive member escapes destination: {member_name}")
