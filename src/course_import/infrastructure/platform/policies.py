"""Enrolment plugins, permissions and course date rule of the platform."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from course_import.application.ports import (
    DateRule,
    EnrolmentPluginRegistry,
    PermissionContext,
)


class StaticEnrolmentPluginRegistry(EnrolmentPluginRegistry):
    """Installed enrolment methods mapped to the role new instances assign."""

    def __init__(self, plugins: Mapping[str, str | None]) -> None:
        self._plugins = dict(plugins)

    def list_methods(self) -> list[str]:
        return list(self._plugins)

    def default_role(self, method: str) -> str | None:
        return self._plugins.get(method)


class SettingsPermissionContext(PermissionContext):
    """Answer capability checks from import settings.

    With ``category_ids`` given, forcing a language is only allowed there.
    """

    def __init__(
        self,
        *,
        allow_force_language: bool,
        category_ids: Iterable[int] | None = None,
    ) -> None:
        self._allow_force_language = allow_force_language
        self._category_ids = None if category_ids is None else frozenset(category_ids)

    def can_force_language(self, actor_id: int | None, category_id: int) -> bool:
        if not self._allow_force_language:
            return False
        return self._category_ids is None or category_id in self._category_ids


class PlatformDateRule(DateRule):
    """An end date needs a start date and must not precede it."""

    def validate_course_dates(self, course_data: Mapping[str, object]) -> str | None:
        enddate = _timestamp(course_data.get("enddate"))
        if not enddate:
            return None
        startdate = _timestamp(course_data.get("startdate"))
        if not startdate:
            return "nostartdatenoenddate"
        if enddate < startdate:
            return "enddatebeforestartdate"
        return None


def _timestamp(value: object) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return 0
