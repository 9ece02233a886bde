"""Import of one feed row: validate fully, then commit and apply side effects."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import StrEnum
from types import MappingProxyType
from uuid import uuid4

from course_import.application.course_validator import CourseValidator, PreparedCourse
from course_import.application.enrolment_reconciler import (
    EnrolmentReconcileError,
    EnrolmentReconciler,
)
from course_import.application.ports import ArchiveService, CourseRepository
from course_import.application.settings import ImportOptions
from course_import.domain.course import CourseOutcome, CourseRecord, RestoreHandle
from course_import.domain.enrolment import EnrolmentAction
from course_import.domain.messages import message
from course_import.domain.outcome import (
    CommittedStep,
    CourseImportContractError,
    StatusLog,
    ValidationOutcome,
)

LOGGER = logging.getLogger(__name__)


class CourseImportState(StrEnum):
    """Lifecycle of one course import."""

    NEW = "new"
    PREPARED = "prepared"
    PROCESSED = "processed"
    FAILED = "failed"


class CourseImport:
    """Drive one raw record through validation, creation, restore and enrolments.

    ``prepare()`` validates without mutating anything. ``proceed()`` creates
    the course and commits it before the restore and the enrolment changes,
    which are reported step by step and never undo the created course.
    """

    def __init__(
        self,
        raw: Mapping[str, object],
        options: ImportOptions,
        *,
        validator: CourseValidator,
        courses: CourseRepository,
        archive: ArchiveService,
        reconciler: EnrolmentReconciler,
        commit: Callable[[], None],
    ) -> None:
        self._raw = MappingProxyType(dict(raw))
        self._options = options
        self._validator = validator
        self._courses = courses
        self._archive = archive
        self._reconciler = reconciler
        self._commit = commit

        self._correlation_id = str(uuid4())
        self._state = CourseImportState.NEW
        self._errors = ValidationOutcome()
        self._statuses = StatusLog()
        self._steps: list[CommittedStep] = []
        self._prepared: PreparedCourse | None = None
        self._course: CourseRecord | None = None
        self._enrolment_actions: list[EnrolmentAction] = []

    @property
    def state(self) -> CourseImportState:
        """Return current lifecycle state."""
        return self._state

    @property
    def errors(self) -> ValidationOutcome:
        """Return errors recorded so far."""
        return self._errors

    @property
    def statuses(self) -> StatusLog:
        """Return statuses recorded so far."""
        return self._statuses

    @property
    def committed_steps(self) -> list[CommittedStep]:
        """Return side effects performed by ``proceed()`` in order."""
        return list(self._steps)

    @property
    def enrolment_actions(self) -> list[EnrolmentAction]:
        """Return enrolment changes applied by ``proceed()``."""
        return list(self._enrolment_actions)

    @property
    def prepared(self) -> PreparedCourse | None:
        """Return the validated course, if validation succeeded."""
        return self._prepared

    @property
    def course_id(self) -> int:
        """Return id of the created course."""
        if self._state is not CourseImportState.PROCESSED or self._course is None:
            raise CourseImportContractError("The course has not been processed yet.")
        return self._course.id

    def has_errors(self) -> bool:
        """Return whether any error was recorded."""
        return bool(self._errors)

    def prepare(self) -> bool:
        """Validate the record. Returns False when any error was recorded."""
        if self._state is not CourseImportState.NEW:
            raise CourseImportContractError("The course has already been prepared.")

        result = self._validator.validate(self._raw, self._options)
        self._errors.extend(result.errors)
        if not result.ok:
            self._state = CourseImportState.FAILED
            LOGGER.info(
                (
                    "event=course_prepare_failed correlation_id=%s course_id=- "
                    "shortname=%s error_codes=%s"
                ),
                self._correlation_id,
                self._raw.get("shortname", "-"),
                ",".join(self._errors),
            )
            return False

        self._prepared = result.prepared
        self._state = CourseImportState.PREPARED
        LOGGER.info(
            (
                "event=course_prepared correlation_id=%s course_id=- shortname=%s "
                "category_id=%s enrolments=%s restore=%s"
            ),
            self._correlation_id,
            result.prepared.spec.shortname,  # type: ignore[union-attr]
            result.prepared.spec.category_id,  # type: ignore[union-attr]
            len(result.prepared.enrolments),  # type: ignore[union-attr]
            "yes" if result.prepared.restore is not None else "no",  # type: ignore[union-attr]
        )
        return True

    def proceed(self) -> None:
        """Create the course, then restore content and reconcile enrolments."""
        if self._state is CourseImportState.NEW:
            raise CourseImportContractError("The course has not been prepared.")
        if self.has_errors():
            raise CourseImportContractError("Cannot proceed, errors were detected.")
        if self._state is not CourseImportState.PREPARED or self._prepared is None:
            raise CourseImportContractError("The process has already been started.")
        self._state = CourseImportState.PROCESSED
        prepared = self._prepared

        if prepared.outcome is not CourseOutcome.CREATE:
            raise CourseImportContractError(f"Unknown outcome: {prepared.outcome}")

        course = self._courses.create_course(prepared.spec)
        self._commit()
        self._course = course
        self._status("coursecreated")
        self._steps.append(CommittedStep(name="course_created", succeeded=True))
        LOGGER.info(
            "event=course_created correlation_id=%s course_id=%s shortname=%s",
            self._correlation_id,
            course.id,
            course.shortname,
        )

        if prepared.restore is not None:
            self._restore(course, prepared.restore)

        self._reconcile_enrolments(course, prepared)

        self._courses.mark_context_dirty(course.id)
        self._commit()
        self._steps.append(CommittedStep(name="context_marked_dirty", succeeded=True))

    def _restore(self, course: CourseRecord, handle: RestoreHandle) -> None:
        try:
            controller = self._archive.open_restore(handle.backup_id, course.id)
            try:
                if controller.requires_conversion():
                    controller.convert()
                restored = controller.execute_precheck()
                if restored:
                    controller.execute_plan()
            finally:
                controller.destroy()
            self._commit()
        except Exception as exc:
            LOGGER.exception(
                (
                    "event=course_restore_failed correlation_id=%s course_id=%s "
                    "backup_id=%s error_type=%s"
                ),
                self._correlation_id,
                course.id,
                handle.backup_id,
                exc.__class__.__name__,
            )
            restored = False

        if restored:
            self._status("courserestored")
            self._steps.append(
                CommittedStep(name="course_restored", succeeded=True, detail=handle.backup_id)
            )
            LOGGER.info(
                "event=course_restored correlation_id=%s course_id=%s backup_id=%s",
                self._correlation_id,
                course.id,
                handle.backup_id,
            )
        else:
            self._error("errorwhilerestoringcourse")
            self._steps.append(
                CommittedStep(name="restore_failed", succeeded=False, detail=handle.backup_id)
            )

    def _reconcile_enrolments(self, course: CourseRecord, prepared: PreparedCourse) -> None:
        if not prepared.enrolments:
            return
        try:
            self._enrolment_actions = self._reconciler.reconcile(course.id, prepared.enrolments)
            self._commit()
        except Exception as exc:
            if isinstance(exc, EnrolmentReconcileError):
                self._enrolment_actions = exc.completed
            LOGGER.exception(
                (
                    "event=enrolments_failed correlation_id=%s course_id=%s "
                    "applied=%s error_type=%s"
                ),
                self._correlation_id,
                course.id,
                len(self._enrolment_actions),
                exc.__class__.__name__,
            )
            self._error("errorwhileprocessingenrolments")
            self._steps.append(
                CommittedStep(
                    name="enrolments_failed",
                    succeeded=False,
                    detail=_describe_actions(self._enrolment_actions),
                )
            )
            return

        self._status("enrolmentsprocessed")
        self._steps.append(
            CommittedStep(
                name="enrolments_reconciled",
                succeeded=True,
                detail=_describe_actions(self._enrolment_actions),
            )
        )

    def _status(self, code: str) -> None:
        self._statuses.record(code, message(code))

    def _error(self, code: str) -> None:
        self._errors.record(code, message(code))


def _describe_actions(actions: list[EnrolmentAction]) -> str:
    return ",".join(f"{action.method}:{action.kind.value}" for action in actions)
