"""Unit tests for reconciling desired enrolment methods with a course."""

from __future__ import annotations

import pytest

from course_import.application.cache import InMemoryLookupCache
from course_import.application.enrolment_reconciler import (
    EnrolmentReconcileError,
    EnrolmentReconciler,
)
from course_import.application.role_resolver import RoleNameResolver
from course_import.domain.enrolment import (
    EnrolmentActionKind,
    EnrolmentInstance,
    EnrolmentMethodSpec,
    EnrolmentStatus,
)
from tests.course_import_fakes import (
    FakeCourseRepository,
    FakeEnrolmentPlugins,
    FakeRoleDirectory,
)

COURSE_ID = 42
NOW = 1_700_000_000
JAN_1_2024 = 1704067200


def test_missing_method_is_created_with_plugin_default_role() -> None:
    courses = FakeCourseRepository()
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(COURSE_ID, [EnrolmentMethodSpec(method="manual")])

    assert [action.kind for action in actions] == [EnrolmentActionKind.CREATE]
    instance = courses.instances[actions[0].instance_id]
    assert instance.method == "manual"
    assert instance.status is EnrolmentStatus.ENABLED
    assert instance.role_id == 5
    assert instance.timemodified == NOW


def test_existing_disabled_method_is_enabled_not_duplicated() -> None:
    courses = FakeCourseRepository()
    courses.add_instance(_instance(7, "manual", status=EnrolmentStatus.DISABLED))
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(
        COURSE_ID,
        [EnrolmentMethodSpec.from_options("manual", {"role": "teacher"})],
    )

    assert [(action.kind, action.instance_id) for action in actions] == [
        (EnrolmentActionKind.ENABLE, 7)
    ]
    assert len(courses.instances) == 1
    assert courses.instances[7].status is EnrolmentStatus.ENABLED
    assert courses.instances[7].role_id == 4


def test_delete_flag_removes_existing_instance() -> None:
    courses = FakeCourseRepository()
    courses.add_instance(_instance(7, "self"))
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(
        COURSE_ID,
        [EnrolmentMethodSpec.from_options("self", {"delete": "1"})],
    )

    assert [action.kind for action in actions] == [EnrolmentActionKind.DELETE]
    assert courses.instances == {}


def test_disable_flag_only_touches_status() -> None:
    courses = FakeCourseRepository()
    courses.add_instance(_instance(7, "self", enrolstartdate=JAN_1_2024, role_id=5))
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(
        COURSE_ID,
        [EnrolmentMethodSpec.from_options("self", {"disable": "1", "role": "teacher"})],
    )

    assert [action.kind for action in actions] == [EnrolmentActionKind.DISABLE]
    instance = courses.instances[7]
    assert instance.status is EnrolmentStatus.DISABLED
    assert instance.enrolstartdate == JAN_1_2024
    assert instance.role_id == 5
    assert instance.timemodified == 0


def test_delete_or_disable_without_instance_creates_one() -> None:
    courses = FakeCourseRepository()
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(
        COURSE_ID,
        [EnrolmentMethodSpec.from_options("self", {"delete": "1"})],
    )

    assert [action.kind for action in actions] == [EnrolmentActionKind.CREATE]


def test_period_in_seconds_derives_end_date() -> None:
    courses = FakeCourseRepository()
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(
        COURSE_ID,
        [
            EnrolmentMethodSpec.from_options(
                "manual",
                {"startdate": "2024-01-01", "enrolperiod": "3600"},
            )
        ],
    )

    instance = courses.instances[actions[0].instance_id]
    assert instance.enrolstartdate == JAN_1_2024
    assert instance.enrolenddate == JAN_1_2024 + 3600
    assert instance.enrolperiod == 3600


def test_relative_period_is_measured_from_the_epoch() -> None:
    courses = FakeCourseRepository()
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(
        COURSE_ID,
        [EnrolmentMethodSpec.from_options("manual", {"enrolperiod": "2 weeks"})],
    )

    instance = courses.instances[actions[0].instance_id]
    assert instance.enrolperiod == 14 * 86400
    assert instance.enrolstartdate == 0
    assert instance.enrolenddate == 0


def test_equal_start_and_end_give_zero_period() -> None:
    courses = FakeCourseRepository()
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(
        COURSE_ID,
        [
            EnrolmentMethodSpec.from_options(
                "manual",
                {"startdate": "2024-01-01", "enddate": "2024-01-01"},
            )
        ],
    )

    instance = courses.instances[actions[0].instance_id]
    assert instance.enrolenddate == instance.enrolstartdate == JAN_1_2024
    assert instance.enrolperiod == 0


def test_end_before_start_is_clamped_to_start() -> None:
    courses = FakeCourseRepository()
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(
        COURSE_ID,
        [
            EnrolmentMethodSpec.from_options(
                "manual",
                {"startdate": "2024-01-02", "enddate": "2024-01-01"},
            )
        ],
    )

    instance = courses.instances[actions[0].instance_id]
    assert instance.enrolenddate == instance.enrolstartdate == JAN_1_2024 + 86400


def test_unknown_role_keeps_previous_role_silently() -> None:
    courses = FakeCourseRepository()
    courses.add_instance(_instance(7, "manual", role_id=5))
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(
        COURSE_ID,
        [EnrolmentMethodSpec.from_options("manual", {"role": "wizard"})],
    )

    assert [action.kind for action in actions] == [EnrolmentActionKind.ENABLE]
    assert courses.instances[7].role_id == 5


def test_remaining_options_are_copied_and_name_is_set() -> None:
    courses = FakeCourseRepository()
    reconciler = _make_reconciler(courses)

    actions = reconciler.reconcile(
        COURSE_ID,
        [
            EnrolmentMethodSpec.from_options(
                "self",
                {"name": "Open enrolment", "password": "secret", "customint1": "1"},
            )
        ],
    )

    instance = courses.instances[actions[0].instance_id]
    assert instance.name == "Open enrolment"
    assert instance.options == {"password": "secret", "customint1": "1"}


def test_empty_desired_list_touches_nothing() -> None:
    courses = FakeCourseRepository()
    courses.add_instance(_instance(7, "manual"))

    assert _make_reconciler(courses).reconcile(COURSE_ID, []) == []
    assert list(courses.instances) == [7]



def test_failure_reports_actions_applied_before_it() -> None:
    courses = _FailingUpdatesRepository(failing_method="self")
    reconciler = _make_reconciler(courses)

    with pytest.raises(EnrolmentReconcileError) as raised:
        reconciler.reconcile(
            COURSE_ID,
            [EnrolmentMethodSpec(method="manual"), EnrolmentMethodSpec(method="self")],
        )

    assert raised.value.method == "self"
    assert [(action.method, action.kind) for action in raised.value.completed] == [
        ("manual", EnrolmentActionKind.CREATE)
    ]
    assert isinstance(raised.value.__cause__, RuntimeError)


class _FailingUpdatesRepository(FakeCourseRepository):
    def __init__(self, failing_method: str) -> None:
        super().__init__()
        self._failing_method = failing_method

    def update_enrolment_instance(self, instance: EnrolmentInstance) -> None:
        if instance.method == self._failing_method:
            raise RuntimeError("enrol table locked")
        super().update_enrolment_instance(instance)

def _make_reconciler(courses: FakeCourseRepository) -> EnrolmentReconciler:
    roles = RoleNameResolver(FakeRoleDirectory(), InMemoryLookupCache())
    return EnrolmentReconciler(courses, FakeEnrolmentPlugins(), roles, clock=lambda: NOW)


def _instance(
    instance_id: int,
    method: str,
    *,
    status: EnrolmentStatus = EnrolmentStatus.ENABLED,
    enrolstartdate: int = 0,
    role_id: int | None = None,
) -> EnrolmentInstance:
    return EnrolmentInstance(
        id=instance_id,
        course_id=COURSE_ID,
        method=method,
        status=status,
        enrolstartdate=enrolstartdate,
        role_id=role_id,
    )
