"""Application ports for storage and platform services used by course import."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import Protocol

from course_import.domain.course import CategoryRecord, CourseRecord, CourseSpec
from course_import.domain.enrolment import EnrolmentInstance


class Ambiguous(Enum):
    """Marker returned when a lookup matches more than one record."""

    AMBIGUOUS = "ambiguous"


AMBIGUOUS = Ambiguous.AMBIGUOUS


class CourseRepository(Protocol):
    """Storage port for courses and their enrolment instances."""

    def course_exists_by_shortname(self, shortname: str) -> bool:
        """Return whether a course uses ``shortname``."""
        ...

    def find_course_id_by_shortname(self, shortname: str) -> int | None:
        """Return id of the course using ``shortname``."""
        ...

    def count_courses_with_idnumber(self, idnumber: str) -> int:
        """Return how many courses use ``idnumber``."""
        ...

    def get_course_by_shortname(self, shortname: str) -> CourseRecord | None:
        """Return the course using ``shortname``."""
        ...

    def get_course_by_id(self, course_id: int) -> CourseRecord | None:
        """Return the course with ``course_id``."""
        ...

    def create_course(self, spec: CourseSpec) -> CourseRecord:
        """Persist a new course and return it."""
        ...

    def list_enrolment_instances(self, course_id: int) -> list[EnrolmentInstance]:
        """Return enrolment instances of a course ordered by id."""
        ...

    def add_default_enrolment_instance(self, course_id: int, method: str) -> EnrolmentInstance:
        """Create an enabled instance of ``method`` with default settings."""
        ...

    def update_enrolment_instance(self, instance: EnrolmentInstance) -> None:
        """Persist every field of ``instance``."""
        ...

    def delete_enrolment_instance(self, instance_id: int) -> None:
        """Delete an enrolment instance."""
        ...

    def export_course_content(self, course_id: int) -> dict[str, object]:
        """Return restorable content of a course for a one-course backup."""
        ...

    def apply_restored_content(self, course_id: int, content: Mapping[str, object]) -> None:
        """Merge restored course content onto an existing course."""
        ...

    def mark_context_dirty(self, course_id: int) -> None:
        """Flag cached data derived from the course as stale."""
        ...


class CategoryDirectory(Protocol):
    """Lookup port for course categories."""

    def get_by_id(self, category_id: int) -> CategoryRecord | None:
        """Return category by id, including deleted ones."""
        ...

    def find_by_idnumber(self, idnumber: str) -> int | None:
        """Return id of category using ``idnumber``."""
        ...

    def find_by_name_under_parent(self, name: str, parent_id: int | None) -> int | Ambiguous | None:
        """Return id of the only category named ``name`` under ``parent_id``."""
        ...


class RoleDirectory(Protocol):
    """Lookup port for roles."""

    def list_all_roles(self) -> list[tuple[str, int]]:
        """Return ``(shortname, id)`` for every role."""
        ...


class EnrolmentPluginRegistry(Protocol):
    """Port describing installed enrolment plugins."""

    def list_methods(self) -> list[str]:
        """Return names of installed enrolment methods."""
        ...

    def default_role(self, method: str) -> str | None:
        """Return shortname of the role new instances of ``method`` assign."""
        ...


class RestoreController(Protocol):
    """One restore operation of staged backup content onto a course."""

    def requires_conversion(self) -> bool:
        """Return whether content must be converted before restoring."""
        ...

    def convert(self) -> None:
        """Convert staged content to the native backup format."""
        ...

    def execute_precheck(self) -> bool:
        """Return whether the restore can be executed."""
        ...

    def execute_plan(self) -> None:
        """Restore content onto the target course."""
        ...

    def destroy(self) -> None:
        """Release resources held by the controller."""
        ...


class ArchiveService(Protocol):
    """Port for backup extraction, one-course backups and restores."""

    def new_backup_id(self) -> str:
        """Return a collision-free identifier for a staging directory."""
        ...

    def backup_directory(self, backup_id: str) -> Path:
        """Return staging directory of ``backup_id``."""
        ...

    def extract(self, archive_path: Path, destination: Path) -> bool:
        """Extract backup archive into ``destination``."""
        ...

    def backup_single_course(self, course_id: int) -> str:
        """Back up one course into a fresh staging directory and return its id."""
        ...

    def open_restore(self, backup_id: str, target_course_id: int) -> RestoreController:
        """Prepare restoring ``backup_id`` onto ``target_course_id``."""
        ...


class FormatRegistry(Protocol):
    """Port for course formats and their options."""

    def list_formats(self) -> list[str]:
        """Return names of installed course formats."""
        ...

    def validate_format_options(
        self,
        format_name: str,
        raw: Mapping[str, object],
    ) -> dict[str, object]:
        """Return valid format options for ``format_name`` found in ``raw``."""
        ...

    def get_last_section_number(self, course: CourseRecord) -> int:
        """Return number of the last section of ``course``."""
        ...


class PermissionContext(Protocol):
    """Port answering capability questions for the importing actor."""

    def can_force_language(self, actor_id: int | None, category_id: int) -> bool:
        """Return whether courses created in the category may force a language."""
        ...


class DateRule(Protocol):
    """Port validating course start and end dates."""

    def validate_course_dates(self, course_data: Mapping[str, object]) -> str | None:
        """Return an error code when dates are inconsistent."""
        ...


class CourseImportUnitOfWork(Protocol):
    """Unit-of-work port around course import persistence."""

    courses: CourseRepository
    categories: CategoryDirectory
    roles: RoleDirectory

    def __enter__(self) -> CourseImportUnitOfWork:
        """Start transactional scope."""
        ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Finalize transactional scope."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


CourseImportUnitOfWorkFactory = Callable[[], CourseImportUnitOfWork]
