from __future__ import annotations

from course_import.domain.course import CourseRecord
from course_import.infrastructure.platform.formats import StaticFormatRegistry
from course_import.infrastructure.platform.policies import (
    PlatformDateRule,
    SettingsPermissionContext,
    StaticEnrolmentPluginRegistry,
)


def test_format_registry_keeps_valid_options_of_the_format_only() -> None:
    registry = StaticFormatRegistry()

    options = registry.validate_format_options(
        "weeks",
        {"hiddensections": "1", "automaticenddate": "0", "numdiscussions": "5", "fullname": "x"},
    )

    assert registry.list_formats() == ["topics", "weeks", "social", "singleactivity"]
    assert options == {"hiddensections": 1, "automaticenddate": 0}


def test_format_registry_drops_out_of_range_values() -> None:
    registry = StaticFormatRegistry()

    assert registry.validate_format_options("topics", {"hiddensections": "7"}) == {}
    assert registry.validate_format_options("social", {"numdiscussions": "many"}) == {}
    assert registry.validate_format_options(
        "singleactivity", {"activitytype": " quiz "}
    ) == {"activitytype": "quiz"}
    assert registry.validate_format_options("unknown", {"hiddensections": "1"}) == {}


def test_last_section_number_is_the_course_section_count() -> None:
    course = CourseRecord(
        id=1, shortname="T", fullname="T", category_id=1, format="topics", numsections=12
    )

    assert StaticFormatRegistry().get_last_section_number(course) == 12


def test_date_rule_requires_start_before_end() -> None:
    rule = PlatformDateRule()

    assert rule.validate_course_dates({}) is None
    assert rule.validate_course_dates({"startdate": 100}) is None
    assert rule.validate_course_dates({"enddate": 100}) == "nostartdatenoenddate"
    assert rule.validate_course_dates({"startdate": 200, "enddate": 100}) == (
        "enddatebeforestartdate"
    )
    assert rule.validate_course_dates({"startdate": "100", "enddate": "100"}) is None


def test_force_language_permission_follows_settings() -> None:
    assert SettingsPermissionContext(allow_force_language=False).can_force_language(1, 1) is False
    assert SettingsPermissionContext(allow_force_language=True).can_force_language(None, 3)

    scoped = SettingsPermissionContext(allow_force_language=True, category_ids=[2])
    assert scoped.can_force_language(1, 2) is True
    assert scoped.can_force_language(1, 3) is False


def test_enrolment_plugin_registry_reports_default_roles() -> None:
    registry = StaticEnrolmentPluginRegistry({"manual": "student", "guest": None})

    assert registry.list_methods() == ["manual", "guest"]
    assert registry.default_role("manual") == "student"
    assert registry.default_role("guest") is None
    assert registry.default_role("ldap") is None
