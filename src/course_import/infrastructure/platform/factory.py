"""Factory helpers for default platform wiring."""

from __future__ import annotations

from course_import.application.batch import ImportPlatform, ImportPlatformFactory
from course_import.application.ports import CourseImportUnitOfWork
from course_import.application.settings import ImportSettings
from course_import.infrastructure.archive.filesystem import FileSystemArchiveService
from course_import.infrastructure.archive.staging import StagingArea
from course_import.infrastructure.platform.formats import StaticFormatRegistry
from course_import.infrastructure.platform.policies import (
    PlatformDateRule,
    SettingsPermissionContext,
    StaticEnrolmentPluginRegistry,
)


def create_platform_factory(
    settings: ImportSettings,
    staging: StagingArea,
) -> ImportPlatformFactory:
    """Return a factory binding default platform services to a unit of work."""
    formats = StaticFormatRegistry()
    permissions = SettingsPermissionContext(
        allow_force_language=settings.allow_force_language
    )
    date_rule = PlatformDateRule()
    enrolment_plugins = StaticEnrolmentPluginRegistry(settings.enrolment_plugins)

    def _create(uow: CourseImportUnitOfWork) -> ImportPlatform:
        return ImportPlatform(
            archive=FileSystemArchiveService(staging, uow.courses),
            formats=formats,
            permissions=permissions,
            date_rule=date_rule,
            enrolment_plugins=enrolment_plugins,
        )

    return _create
