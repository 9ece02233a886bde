"""Locate and stage backup content to restore onto a new course."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from course_import.application.cache import MISSING, LookupCache
from course_import.application.ports import ArchiveService, CourseRepository
from course_import.domain.course import RestoreHandle
from course_import.domain.messages import message

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RestoreResolution:
    """Outcome of locating restore content.

    ``handle`` is None with no errors when there is nothing to restore.
    """

    handle: RestoreHandle | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        """Return whether locating the content failed."""
        return bool(self.errors)


class RestoreSourceLocator:
    """Resolve a backup file or template course to a staged restore handle."""

    def __init__(
        self,
        archive: ArchiveService,
        courses: CourseRepository,
        cache: LookupCache,
        *,
        use_cache: bool = False,
    ) -> None:
        self._archive = archive
        self._courses = courses
        self._cache = cache
        # Staging directories only survive a restore when temp directories are kept.
        self._use_cache = use_cache

    def resolve(
        self,
        backup_file: str | None = None,
        template_shortname: str | None = None,
        *,
        fallback_backup_id: str | None = None,
    ) -> RestoreResolution:
        """Stage content from ``backup_file``, else from ``template_shortname``.

        With neither source, ``fallback_backup_id`` (content staged elsewhere)
        is returned when given.
        """
        realpath: Path | None = None
        if backup_file:
            realpath = Path(os.path.realpath(backup_file))
            if not realpath.is_file() or not os.access(realpath, os.R_OK):
                return RestoreResolution(
                    errors={"cannotreadbackupfile": message("cannotreadbackupfile")}
                )
            cache_key = f"backup_path:{realpath}"
        elif template_shortname:
            cache_key = f"backup_sn:{template_shortname}"
        elif fallback_backup_id:
            return RestoreResolution(handle=self._handle(fallback_backup_id, None))
        else:
            return RestoreResolution()

        if self._use_cache:
            cached = self._cache.get(cache_key)
            if cached is not MISSING and self._archive.backup_directory(str(cached)).is_dir():
                LOGGER.info(
                    "event=restore_source_cache_hit course_id=- backup_id=%s source=%s",
                    cached,
                    cache_key,
                )
                return RestoreResolution(handle=self._handle(str(cached), cache_key))

        if realpath is not None:
            resolution = self._stage_backup_file(realpath, cache_key)
        else:
            resolution = self._stage_template_course(str(template_shortname), cache_key)

        if self._use_cache and resolution.handle is not None:
            self._cache.set(cache_key, resolution.handle.backup_id)
        return resolution

    def _stage_backup_file(self, backup_path: Path, cache_key: str) -> RestoreResolution:
        backup_id = self._archive.new_backup_id()
        destination = self._archive.backup_directory(backup_id)
        destination.mkdir(parents=True, exist_ok=False)
        if not self._archive.extract(backup_path, destination):
            shutil.rmtree(destination, ignore_errors=True)
            LOGGER.warning(
                "event=backup_extract_failed course_id=- backup_id=%s path=%s",
                backup_id,
                backup_path,
            )
            return RestoreResolution(errors={"invalidbackupfile": message("invalidbackupfile")})

        LOGGER.info(
            "event=backup_extracted course_id=- backup_id=%s path=%s",
            backup_id,
            backup_path,
        )
        return RestoreResolution(handle=self._handle(backup_id, cache_key))

    def _stage_template_course(self, shortname: str, cache_key: str) -> RestoreResolution:
        course_id = self._courses.find_course_id_by_shortname(shortname)
        if course_id is None:
            return RestoreResolution(
                errors={
                    "coursetorestorefromdoesnotexist": message("coursetorestorefromdoesnotexist")
                }
            )

        backup_id = self._archive.backup_single_course(course_id)
        LOGGER.info(
            "event=template_course_backed_up course_id=%s backup_id=%s template=%s",
            course_id,
            backup_id,
            shortname,
        )
        return RestoreResolution(handle=self._handle(backup_id, cache_key))

    def _handle(self, backup_id: str, source_key: str | None) -> RestoreHandle:
        return RestoreHandle(
            backup_id=backup_id,
            directory=self._archive.backup_directory(backup_id),
            source_key=source_key,
        )
