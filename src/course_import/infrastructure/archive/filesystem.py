"""Filesystem archive service: extraction, one-course backups and restores."""

from __future__ import annotations

import json
import logging
import tarfile
import zipfile
from pathlib import Path
from xml.etree import ElementTree

from course_import.application.ports import ArchiveService, CourseRepository, RestoreController
from course_import.infrastructure.archive.errors import ArchiveError, BackupContentError
from course_import.infrastructure.archive.extractors import CompositeBackupExtractor
from course_import.infrastructure.archive.staging import StagingArea

LOGGER = logging.getLogger(__name__)

COURSE_CONTENT_FILENAME = "course.json"
LEGACY_CONTENT_FILENAME = "moodle.xml"
BACKUP_FORMAT_VERSION = 1


class FileSystemArchiveService(ArchiveService):
    """Stage backups as ``course.json`` directories under a staging area."""

    def __init__(
        self,
        staging: StagingArea,
        courses: CourseRepository,
        extractor: CompositeBackupExtractor | None = None,
    ) -> None:
        self._staging = staging
        self._courses = courses
        self._extractor = extractor or CompositeBackupExtractor()

    def new_backup_id(self) -> str:
        return self._staging.new_backup_id()

    def backup_directory(self, backup_id: str) -> Path:
        return self._staging.directory(backup_id)

    def extract(self, archive_path: Path, destination: Path) -> bool:
        try:
            strategy, member_count = self._extractor.extract(archive_path, destination)
        except (ArchiveError, OSError, zipfile.BadZipFile, tarfile.TarError) as exc:
            LOGGER.warning(
                "event=backup_extract_error course_id=- path=%s error_type=%s",
                archive_path,
                exc.__class__.__name__,
            )
            return False

        if not _has_backup_content(destination):
            LOGGER.warning(
                "event=backup_content_missing course_id=- path=%s strategy=%s members=%s",
                archive_path,
                strategy,
                member_count,
            )
            return False
        return True

    def backup_single_course(self, course_id: int) -> str:
        content = self._courses.export_course_content(course_id)
        backup_id = self.new_backup_id()
        directory = self.backup_directory(backup_id)
        directory.mkdir(parents=True, exist_ok=False)
        _write_content(directory, {"format_version": BACKUP_FORMAT_VERSION, **content})
        return backup_id

    def open_restore(self, backup_id: str, target_course_id: int) -> RestoreController:
        return FileSystemRestoreController(
            self.backup_directory(backup_id),
            target_course_id,
            self._courses,
        )


class FileSystemRestoreController(RestoreController):
    """Restore one staged backup onto one course.

    The staging directory is left in place; the caller owns its cleanup.
    """

    def __init__(self, directory: Path, target_course_id: int, courses: CourseRepository) -> None:
        self._directory = directory
        self._target_course_id = target_course_id
        self._courses = courses
        self._content: dict[str, object] | None = None

    def requires_conversion(self) -> bool:
        return (
            not (self._directory / COURSE_CONTENT_FILENAME).is_file()
            and (self._directory / LEGACY_CONTENT_FILENAME).is_file()
        )

    def convert(self) -> None:
        content = convert_legacy_backup(self._directory / LEGACY_CONTENT_FILENAME)
        _write_content(self._directory, content)
        LOGGER.info(
            "event=backup_converted course_id=%s directory=%s",
            self._target_course_id,
            self._directory,
        )

    def execute_precheck(self) -> bool:
        try:
            content = _read_content(self._directory)
        except BackupContentError as exc:
            LOGGER.warning(
                "event=restore_precheck_failed course_id=%s directory=%s reason=%s",
                self._target_course_id,
                self._directory,
                exc,
            )
            return False
        self._content = content
        return True

    def execute_plan(self) -> None:
        if self._content is None:
            raise BackupContentError("Restore precheck has not succeeded.")
        self._courses.apply_restored_content(self._target_course_id, self._content)

    def destroy(self) -> None:
        self._content = None


def convert_legacy_backup(xml_path: Path) -> dict[str, object]:
    """Convert a legacy XML course backup to native content."""
    try:
        root = ElementTree.parse(xml_path).getroot()
    except ElementTree.ParseError as exc:
        raise BackupContentError(f"Invalid legacy backup: {exc}") from exc

    header = root.find("./COURSE/HEADER")
    if header is None:
        raise BackupContentError("Legacy backup has no course header.")

    sections: list[dict[str, object]] = []
    for section in root.iterfind("./COURSE/SECTIONS/SECTION"):
        sections.append(
            {
                "number": int(section.findtext("NUMBER", default="0")),
                "summary": section.findtext("SUMMARY", default=""),
            }
        )
    return {
        "format_version": BACKUP_FORMAT_VERSION,
        "fullname": header.findtext("FULLNAME", default=""),
        "shortname": header.findtext("SHORTNAME", default=""),
        "format": header.findtext("FORMAT", default="topics"),
        "summary": header.findtext("SUMMARY", default=""),
        "numsections": len(sections),
        "sections": sections,
    }


def _has_backup_content(directory: Path) -> bool:
    return (directory / COURSE_CONTENT_FILENAME).is_file() or (
        directory / LEGACY_CONTENT_FILENAME
    ).is_file()


def _write_content(directory: Path, content: dict[str, object]) -> None:
    path = directory / COURSE_CONTENT_FILENAME
    path.write_text(json.dumps(content, ensure_ascii=False, indent=2), encoding="utf-8")


def _read_content(directory: Path) -> dict[str, object]:
    path = directory / COURSE_CONTENT_FILENAME
    try:
        content = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise BackupContentError(f"Cannot read {path.name}: {exc.__class__.__name__}") from exc
    if not isinstance(content, dict):
        raise BackupContentError(f"{path.name} is not an object.")
    if content.get("format_version") != BACKUP_FORMAT_VERSION:
        raise BackupContentError(f"Unsupported backup version: {content.get('format_version')}")
    return content
