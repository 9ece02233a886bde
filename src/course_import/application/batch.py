"""Batch use-case importing every row of a course feed."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from course_import.application.cache import ResolverCaches
from course_import.application.category_resolver import CategoryResolver
from course_import.application.course_import import CourseImport
from course_import.application.course_validator import CourseValidator
from course_import.application.enrolment_data import EnrolmentDataExtractor
from course_import.application.enrolment_reconciler import EnrolmentReconciler
from course_import.application.ports import (
    ArchiveService,
    CourseImportUnitOfWork,
    CourseImportUnitOfWorkFactory,
    DateRule,
    EnrolmentPluginRegistry,
    FormatRegistry,
    PermissionContext,
)
from course_import.application.restore_locator import RestoreSourceLocator
from course_import.application.role_resolver import RoleNameResolver
from course_import.application.settings import ImportOptions, ImportSettings
from course_import.domain.course import ImportMode
from course_import.domain.messages import message
from course_import.domain.outcome import CourseImportContractError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportPlatform:
    """Platform services bound to one unit of work."""

    archive: ArchiveService
    formats: FormatRegistry
    permissions: PermissionContext
    date_rule: DateRule
    enrolment_plugins: EnrolmentPluginRegistry


ImportPlatformFactory = Callable[[CourseImportUnitOfWork], ImportPlatform]


class RowResult(BaseModel):
    """Outcome of one feed row."""

    model_config = ConfigDict(extra="forbid")

    line: int = Field(ge=1)
    shortname: str | None = None
    course_id: int | None = None
    statuses: dict[str, str] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def created(self) -> bool:
        """Return whether the row produced a course."""
        return self.course_id is not None


class BatchReport(BaseModel):
    """Aggregated outcome of one feed."""

    model_config = ConfigDict(extra="forbid")

    total: int = 0
    created: int = 0
    failed: int = 0
    rows: list[RowResult] = Field(default_factory=list)

    @classmethod
    def from_rows(cls, rows: list[RowResult]) -> BatchReport:
        """Build report totals from row results."""
        created = sum(1 for row in rows if row.created)
        return cls(total=len(rows), created=created, failed=len(rows) - created, rows=rows)


@dataclass(frozen=True)
class _RowPipeline:
    validator: CourseValidator
    reconciler: EnrolmentReconciler
    restore_locator: RestoreSourceLocator
    platform: ImportPlatform
    uow: CourseImportUnitOfWork


class BatchProcessor:
    """Import rows one by one; a failing row never aborts the batch."""

    def __init__(
        self,
        uow_factory: CourseImportUnitOfWorkFactory,
        platform_factory: ImportPlatformFactory,
        settings: ImportSettings,
        caches: ResolverCaches | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._platform_factory = platform_factory
        self._settings = settings
        self._caches = caches or ResolverCaches()

    def execute(self, rows: Iterable[Mapping[str, object]]) -> BatchReport:
        """Import every row and return the batch report."""
        correlation_id = str(uuid4())
        results: list[RowResult] = []
        with self._uow_factory() as uow:
            pipeline = self._build_pipeline(uow)
            options = ImportOptions(
                mode=ImportMode.CREATE_NEW,
                restore_dir=self._template_restore_dir(pipeline, correlation_id),
                shortname_template=self._settings.shortname_template,
                actor_id=self._settings.actor_id,
            )
            for line, row in enumerate(rows, start=1):
                results.append(self._import_row(pipeline, options, line, row, correlation_id))

        report = BatchReport.from_rows(results)
        LOGGER.info(
            "event=batch_completed correlation_id=%s course_id=- total=%s created=%s failed=%s",
            correlation_id,
            report.total,
            report.created,
            report.failed,
        )
        return report

    def _import_row(
        self,
        pipeline: _RowPipeline,
        options: ImportOptions,
        line: int,
        row: Mapping[str, object],
        correlation_id: str,
    ) -> RowResult:
        raw = build_raw_record(row)
        shortname = raw.get("shortname")
        result = RowResult(line=line, shortname=None if shortname is None else str(shortname))

        importer = CourseImport(
            raw,
            options,
            validator=pipeline.validator,
            courses=pipeline.uow.courses,
            archive=pipeline.platform.archive,
            reconciler=pipeline.reconciler,
            commit=pipeline.uow.commit,
        )
        try:
            if importer.prepare():
                importer.proceed()
        except CourseImportContractError:
            raise
        except Exception as exc:
            pipeline.uow.rollback()
            LOGGER.exception(
                "event=row_failed correlation_id=%s course_id=- line=%s error_type=%s",
                correlation_id,
                line,
                exc.__class__.__name__,
            )
            if "rowfailed" not in importer.errors:
                importer.errors.record("rowfailed", message("rowfailed"))

        result.errors = importer.errors.as_dict()
        result.statuses = importer.statuses.as_dict()
        if importer.prepared is not None and "coursecreated" in importer.statuses:
            result.course_id = importer.course_id
            result.shortname = importer.prepared.spec.shortname
        return result

    def _build_pipeline(self, uow: CourseImportUnitOfWork) -> _RowPipeline:
        platform = self._platform_factory(uow)
        roles = RoleNameResolver(uow.roles, self._caches.roles)
        restore_locator = RestoreSourceLocator(
            platform.archive,
            uow.courses,
            self._caches.backups,
            use_cache=self._settings.keep_temp_directories,
        )
        validator = CourseValidator(
            courses=uow.courses,
            categories=CategoryResolver(uow.categories, self._caches.categories),
            roles=roles,
            enrolments=EnrolmentDataExtractor(
                platform.enrolment_plugins, self._caches.enrolment_plugins
            ),
            restore_locator=restore_locator,
            formats=platform.formats,
            permissions=platform.permissions,
            date_rule=platform.date_rule,
            default_numsections=self._settings.default_numsections,
        )
        reconciler = EnrolmentReconciler(uow.courses, platform.enrolment_plugins, roles)
        return _RowPipeline(
            validator=validator,
            reconciler=reconciler,
            restore_locator=restore_locator,
            platform=platform,
            uow=uow,
        )

    def _template_restore_dir(self, pipeline: _RowPipeline, correlation_id: str) -> str | None:
        template = self._settings.template_course
        if not template:
            return None
        resolution = pipeline.restore_locator.resolve(template_shortname=template)
        if resolution.failed or resolution.handle is None:
            LOGGER.warning(
                "event=template_course_unavailable correlation_id=%s course_id=- template=%s",
                correlation_id,
                template,
            )
            return None
        return resolution.handle.backup_id


def build_raw_record(row: Mapping[str, object]) -> dict[str, object]:
    """Return the raw record of a feed row, without empty cells."""
    raw: dict[str, object] = {}
    for key, value in row.items():
        if not key or value is None:
            continue
        if isinstance(value, str) and value.strip() == "":
            continue
        raw[key.strip()] = value
    return raw
