"""Shared pytest fixtures for course import tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from course_import.infrastructure.archive.staging import BACKUP_TEMP_DIR_ENV_VAR


@pytest.fixture(autouse=True)
def _isolated_backup_temp_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep staged backups of every test under its own temporary directory."""
    monkeypatch.setenv(BACKUP_TEMP_DIR_ENV_VAR, str(tmp_path / "backup-temp"))
    yield
