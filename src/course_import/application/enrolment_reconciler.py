"""Reconcile desired enrolment methods against the instances of a course."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping

from course_import.application.dates import parse_period, parse_timestamp
from course_import.application.ports import CourseRepository, EnrolmentPluginRegistry
from course_import.application.role_resolver import RoleNameResolver
from course_import.domain.enrolment import (
    EnrolmentAction,
    EnrolmentActionKind,
    EnrolmentInstance,
    EnrolmentMethodSpec,
    EnrolmentStatus,
)

LOGGER = logging.getLogger(__name__)

# Options consumed by the field update instead of being copied verbatim.
_DIRECTIVE_OPTIONS = frozenset({"startdate", "enddate", "enrolperiod", "role", "name"})


class EnrolmentReconcileError(RuntimeError):
    """Raised when one method fails; carries the actions applied before it."""

    def __init__(self, method: str, completed: list[EnrolmentAction]) -> None:
        super().__init__(f"Enrolment method {method} could not be reconciled.")
        self.method = method
        self.completed = list(completed)


class EnrolmentReconciler:
    """Create, enable and update, disable or delete enrolment instances of a course.

    At most one instance per method is assumed; the first one found is used.
    """

    def __init__(
        self,
        courses: CourseRepository,
        plugins: EnrolmentPluginRegistry,
        roles: RoleNameResolver,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._courses = courses
        self._plugins = plugins
        self._roles = roles
        self._clock = clock

    def reconcile(
        self,
        course_id: int,
        desired: list[EnrolmentMethodSpec],
    ) -> list[EnrolmentAction]:
        """Apply ``desired`` to the course and return the actions taken."""
        if not desired:
            return []

        instances = self._courses.list_enrolment_instances(course_id)
        actions: list[EnrolmentAction] = []
        for spec in desired:
            try:
                action = self._reconcile_one(course_id, spec, instances)
            except Exception as exc:
                raise EnrolmentReconcileError(spec.method, actions) from exc
            actions.append(action)
            LOGGER.info(
                "event=enrolment_reconciled course_id=%s method=%s action=%s instance_id=%s",
                course_id,
                spec.method,
                action.kind.value,
                action.instance_id,
            )
        return actions

    def _reconcile_one(
        self,
        course_id: int,
        spec: EnrolmentMethodSpec,
        instances: list[EnrolmentInstance],
    ) -> EnrolmentAction:
        instance = next((item for item in instances if item.method == spec.method), None)

        if instance is not None and spec.delete:
            self._courses.delete_enrolment_instance(instance.id)
            instances.remove(instance)
            return _action(spec, EnrolmentActionKind.DELETE, instance)
        if instance is not None and spec.disable:
            instance.status = EnrolmentStatus.DISABLED
            self._courses.update_enrolment_instance(instance)
            return _action(spec, EnrolmentActionKind.DISABLE, instance)

        if instance is None:
            instance = self._create_instance(course_id, spec.method)
            instances.append(instance)
            kind = EnrolmentActionKind.CREATE
        else:
            instance.status = EnrolmentStatus.ENABLED
            kind = EnrolmentActionKind.ENABLE
        self._apply_options(instance, spec.options)
        self._courses.update_enrolment_instance(instance)
        return _action(spec, kind, instance)

    def _create_instance(self, course_id: int, method: str) -> EnrolmentInstance:
        instance = self._courses.add_default_enrolment_instance(course_id, method)
        default_role = self._plugins.default_role(method)
        if default_role is not None:
            instance.role_id = self._roles.role_ids().get(default_role, instance.role_id)
        instance.status = EnrolmentStatus.ENABLED
        return instance

    def _apply_options(self, instance: EnrolmentInstance, options: Mapping[str, object]) -> None:
        for key, value in options.items():
            if key not in _DIRECTIVE_OPTIONS:
                instance.options[key] = value
        if "name" in options:
            instance.name = None if options["name"] is None else str(options["name"])

        instance.enrolstartdate = self._timestamp_option(instance, options, "startdate")
        instance.enrolenddate = self._timestamp_option(instance, options, "enddate")

        period: int | None = None
        if "enrolperiod" in options:
            raw_period = options["enrolperiod"]
            period = 0
            if raw_period not in (None, ""):
                parsed = parse_period(raw_period)
                if parsed is None:
                    LOGGER.warning(
                        "event=enrolment_period_unparsed course_id=%s method=%s value=%s",
                        instance.course_id,
                        instance.method,
                        raw_period,
                    )
                else:
                    period = parsed
                instance.enrolperiod = period

        if instance.enrolstartdate > 0 and period is not None:
            instance.enrolenddate = instance.enrolstartdate + period
        if instance.enrolenddate > 0:
            instance.enrolperiod = instance.enrolenddate - instance.enrolstartdate
        if instance.enrolenddate < instance.enrolstartdate:
            instance.enrolenddate = instance.enrolstartdate

        # Unknown roles keep the current role without reporting an error.
        if "role" in options:
            role_id = self._roles.role_ids().get(str(options["role"]))
            if role_id is not None:
                instance.role_id = role_id

        instance.timemodified = int(self._clock())

    def _timestamp_option(
        self,
        instance: EnrolmentInstance,
        options: Mapping[str, object],
        key: str,
    ) -> int:
        if key not in options:
            return 0
        timestamp = parse_timestamp(options[key])
        if timestamp is None:
            LOGGER.warning(
                "event=enrolment_date_unparsed course_id=%s method=%s option=%s value=%s",
                instance.course_id,
                instance.method,
                key,
                options[key],
            )
            return 0
        return timestamp


def _action(
    spec: EnrolmentMethodSpec,
    kind: EnrolmentActionKind,
    instance: EnrolmentInstance,
) -> EnrolmentAction:
    return EnrolmentAction(method=spec.method, kind=kind, instance_id=instance.id)
