"""Unit tests for the ordered course validation checks."""

from __future__ import annotations

from pathlib import Path

import pytest

from course_import.application.cache import ResolverCaches
from course_import.application.category_resolver import CategoryResolver
from course_import.application.course_validator import CourseValidator, ValidationResult
from course_import.application.enrolment_data import EnrolmentDataExtractor
from course_import.application.restore_locator import RestoreSourceLocator
from course_import.application.role_resolver import RoleNameResolver
from course_import.application.settings import ImportOptions
from course_import.domain.course import CourseOutcome, CourseRecord
from tests.course_import_fakes import (
    FakeArchiveService,
    FakeCategoryDirectory,
    FakeCourseRepository,
    FakeDateRule,
    FakeEnrolmentPlugins,
    FakeFormatRegistry,
    FakePermissions,
    FakeRoleDirectory,
    default_categories,
)

EXISTING = CourseRecord(
    id=7,
    shortname="TEMPLATE",
    fullname="Template course",
    category_id=1,
    format="weeks",
    numsections=10,
    idnumber="TPL-1",
)

BASE_ROW = {"shortname": "CS101", "fullname": "Intro to CS", "category": "1"}


def test_minimal_row_produces_course_spec_without_side_effects(tmp_path: Path) -> None:
    courses = FakeCourseRepository([EXISTING])

    result = _validate(tmp_path, dict(BASE_ROW), courses=courses)

    assert result.ok
    assert result.prepared is not None
    assert result.prepared.outcome is CourseOutcome.CREATE
    assert result.prepared.spec.shortname == "CS101"
    assert result.prepared.spec.category_id == 1
    assert result.prepared.spec.numsections == 4
    assert result.prepared.restore is None
    assert result.prepared.enrolments == []
    assert courses.created == []


def test_too_long_shortname_stops_before_any_other_check(tmp_path: Path) -> None:
    row = {"shortname": "x" * 256, "fullname": "Intro", "category": "999"}

    result = _validate(tmp_path, row)

    assert not result.ok
    assert list(result.errors) == ["invalidshortnametoolong"]
    assert "255" in result.errors["invalidshortnametoolong"]


def test_shortname_with_markup_is_invalid(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "shortname": "<b>CS101</b>"})

    assert list(result.errors) == ["invalidshortname"]


def test_existing_shortname_fails_in_create_only_mode(tmp_path: Path) -> None:
    row = {"shortname": "TEMPLATE", "fullname": "Again", "category": "999"}

    result = _validate(tmp_path, row, courses=FakeCourseRepository([EXISTING]))

    assert list(result.errors) == ["courseexistsanduploadnotallowed"]


def test_unresolved_category_reports_every_failed_branch(tmp_path: Path) -> None:
    row = {**BASE_ROW, "category": "999", "category_idnumber": "NOPE"}

    result = _validate(tmp_path, row)

    assert list(result.errors) == [
        "couldnotresolvecatgorybyid",
        "couldnotresolvecatgorybyidnumber",
    ]


def test_missing_category_is_fatal(tmp_path: Path) -> None:
    result = _validate(tmp_path, {"shortname": "CS101", "fullname": "Intro"})

    assert list(result.errors) == ["missingcategory"]


def test_missing_and_too_long_fullname(tmp_path: Path) -> None:
    missing = _validate(tmp_path, {"shortname": "CS101", "category": "1"})
    too_long = _validate(tmp_path, {**BASE_ROW, "fullname": "y" * 255})

    assert list(missing.errors) == ["missingfullname"]
    assert list(too_long.errors) == ["invalidfullnametoolong"]


def test_non_numeric_integer_field_is_rejected(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "newsitems": "lots"})

    assert list(result.errors) == ["invalidnumericfield"]
    assert "newsitems" in result.errors["invalidnumericfield"]


def test_missing_shortname_requires_template(tmp_path: Path) -> None:
    row = {"fullname": "Intro", "category": "1", "idnumber": "cs-101"}

    without_template = _validate(tmp_path, row)
    with_template = _validate(tmp_path, row, options=ImportOptions(shortname_template="%+i"))

    assert list(without_template.errors) == ["missingshortnamenotemplate"]
    assert with_template.prepared is not None
    assert with_template.prepared.spec.shortname == "CS-101"


def test_generated_shortname_must_be_free(tmp_path: Path) -> None:
    row = {"fullname": "Intro", "category": "1", "idnumber": "template"}

    result = _validate(
        tmp_path,
        row,
        courses=FakeCourseRepository([EXISTING]),
        options=ImportOptions(shortname_template="%+i"),
    )

    assert list(result.errors) == ["generatedshortnamealreadyinuse"]


def test_idnumber_already_used_by_another_course(tmp_path: Path) -> None:
    result = _validate(
        tmp_path,
        {**BASE_ROW, "idnumber": "TPL-1"},
        courses=FakeCourseRepository([EXISTING]),
    )

    assert list(result.errors) == ["idnumberalreadyinuse"]


def test_dates_are_normalized_to_timestamps(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "startdate": "2024-01-01", "enddate": "2024-06-30"})

    assert result.prepared is not None
    assert result.prepared.spec.startdate == 1704067200
    assert result.prepared.spec.enddate == 1719705600


def test_unreadable_start_date_is_fatal(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "startdate": "someday"})

    assert list(result.errors) == ["invalidstartdate"]


def test_forced_language_needs_permission(tmp_path: Path) -> None:
    row = {**BASE_ROW, "lang": "fr"}

    denied = _validate(tmp_path, row, permissions=FakePermissions(allow_force_language=False))
    allowed = _validate(tmp_path, row)

    assert list(denied.errors) == ["cannotforcelang"]
    assert allowed.prepared is not None
    assert allowed.prepared.spec.lang == "fr"


def test_date_rule_violation_is_recorded_under_its_code(tmp_path: Path) -> None:
    result = _validate(
        tmp_path,
        dict(BASE_ROW),
        date_rule=FakeDateRule(error="enddatebeforestartdate"),
    )

    assert list(result.errors) == ["enddatebeforestartdate"]


def test_unknown_roles_fail_validation(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "role_student": "Learner", "role_wizard": "Mage"})

    assert list(result.errors) == ["invalidroles"]


def test_role_renames_are_carried_on_the_spec(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "role_student": "Learner"})

    assert result.prepared is not None
    assert dict(result.prepared.spec.role_names) == {"role_5": "Learner"}


def test_unregistered_format_is_rejected(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "format": "grid"})

    assert list(result.errors) == ["invalidcourseformat"]


def test_template_course_supplies_format_options_and_section_count(tmp_path: Path) -> None:
    row = {**BASE_ROW, "templatecourse": "TEMPLATE", "hiddensections": "1"}

    result = _validate(
        tmp_path,
        row,
        courses=FakeCourseRepository([EXISTING]),
        formats=FakeFormatRegistry(last_sections={7: 10}),
    )

    assert result.prepared is not None
    assert dict(result.prepared.spec.format_options) == {"hiddensections": "1"}
    assert result.prepared.spec.numsections == 10
    assert result.prepared.restore is not None
    assert result.prepared.restore.source_key == "backup_sn:TEMPLATE"


def test_explicit_numsections_wins_over_template(tmp_path: Path) -> None:
    row = {**BASE_ROW, "templatecourse": "TEMPLATE", "numsections": "6"}

    result = _validate(
        tmp_path,
        row,
        courses=FakeCourseRepository([EXISTING]),
        formats=FakeFormatRegistry(last_sections={7: 10}),
    )

    assert result.prepared is not None
    assert result.prepared.spec.numsections == 6


@pytest.mark.parametrize("visible", ["2", "-1", "yes"])
def test_visibility_must_be_zero_or_one(tmp_path: Path, visible: str) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "visible": visible})

    assert list(result.errors) == ["invalidvisibilitymode"]


def test_tags_are_split_in_order(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "tags": "intro , cs,programming"})

    assert result.prepared is not None
    assert result.prepared.spec.tags == ("intro", "cs", "programming")


def test_tags_surrounding_whitespace_is_trimmed(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "tags": " a, b ,c"})

    assert result.prepared is not None
    assert result.prepared.spec.tags == ("a", "b", "c")


def test_empty_tags_cell_sets_no_tags(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "tags": ""})

    assert result.ok
    assert result.prepared is not None
    assert result.prepared.spec.tags == ()


def test_missing_template_course_aborts_validation(tmp_path: Path) -> None:
    result = _validate(tmp_path, {**BASE_ROW, "templatecourse": "NOPE"})

    assert list(result.errors) == ["coursetorestorefromdoesnotexist"]


def test_enrolment_specs_are_returned_alongside_the_course(tmp_path: Path) -> None:
    row = {**BASE_ROW, "enrolment_1": "manual", "enrolment_1_role": "teacher"}

    result = _validate(tmp_path, row)

    assert result.prepared is not None
    assert [spec.method for spec in result.prepared.enrolments] == ["manual"]


def _validate(
    tmp_path: Path,
    row: dict[str, object],
    *,
    courses: FakeCourseRepository | None = None,
    options: ImportOptions | None = None,
    formats: FakeFormatRegistry | None = None,
    permissions: FakePermissions | None = None,
    date_rule: FakeDateRule | None = None,
) -> ValidationResult:
    resolved_courses = courses or FakeCourseRepository()
    caches = ResolverCaches()
    validator = CourseValidator(
        courses=resolved_courses,
        categories=CategoryResolver(FakeCategoryDirectory(default_categories()), caches.categories),
        roles=RoleNameResolver(FakeRoleDirectory(), caches.roles),
        enrolments=EnrolmentDataExtractor(FakeEnrolmentPlugins(), caches.enrolment_plugins),
        restore_locator=RestoreSourceLocator(
            FakeArchiveService(tmp_path), resolved_courses, caches.backups
        ),
        formats=formats or FakeFormatRegistry(),
        permissions=permissions or FakePermissions(),
        date_rule=date_rule or FakeDateRule(),
        default_numsections=4,
    )
    return validator.validate(row, options or ImportOptions())
