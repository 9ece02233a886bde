"""Ordered precondition checks turning a feed row into a course spec."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from course_import.application.category_resolver import CategoryResolver
from course_import.application.dates import parse_timestamp
from course_import.application.enrolment_data import EnrolmentDataExtractor
from course_import.application.ports import (
    CourseRepository,
    DateRule,
    FormatRegistry,
    PermissionContext,
)
from course_import.application.restore_locator import RestoreSourceLocator
from course_import.application.role_resolver import RoleNameResolver
from course_import.application.settings import ImportOptions
from course_import.application.text import generate_shortname, is_blank, is_clean_text, split_tags
from course_import.domain.course import (
    COURSE_FIELDS,
    FULLNAME_MAX_LENGTH,
    INTEGER_COURSE_FIELDS,
    OPTION_FIELDS,
    SHORTNAME_MAX_LENGTH,
    CourseOutcome,
    CourseSpec,
    RestoreHandle,
)
from course_import.domain.enrolment import EnrolmentMethodSpec
from course_import.domain.messages import message
from course_import.domain.outcome import ValidationOutcome

LOGGER = logging.getLogger(__name__)


class _Halt(Exception):
    """Stop validation after the first fatal error has been recorded."""


@dataclass(frozen=True)
class PreparedCourse:
    """Everything needed to commit one course."""

    outcome: CourseOutcome
    spec: CourseSpec
    enrolments: list[EnrolmentMethodSpec] = field(default_factory=list)
    restore: RestoreHandle | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Either a prepared course or the errors recorded until validation stopped."""

    prepared: PreparedCourse | None
    errors: ValidationOutcome

    @property
    def ok(self) -> bool:
        """Return whether the row can be committed."""
        return self.prepared is not None and not self.errors


class CourseValidator:
    """Validate a raw feed row in a fixed order, stopping at the first failure."""

    def __init__(
        self,
        *,
        courses: CourseRepository,
        categories: CategoryResolver,
        roles: RoleNameResolver,
        enrolments: EnrolmentDataExtractor,
        restore_locator: RestoreSourceLocator,
        formats: FormatRegistry,
        permissions: PermissionContext,
        date_rule: DateRule,
        default_numsections: int,
    ) -> None:
        self._courses = courses
        self._categories = categories
        self._roles = roles
        self._enrolments = enrolments
        self._restore_locator = restore_locator
        self._formats = formats
        self._permissions = permissions
        self._date_rule = date_rule
        self._default_numsections = default_numsections

    def validate(self, raw: Mapping[str, object], options: ImportOptions) -> ValidationResult:
        """Run every check against ``raw`` and return the prepared course or errors."""
        errors = ValidationOutcome()
        try:
            prepared = self._run_checks(raw, options, errors)
        except _Halt:
            LOGGER.info(
                "event=course_validation_failed course_id=- shortname=%s error_codes=%s",
                raw.get("shortname", "-"),
                ",".join(errors),
            )
            return ValidationResult(prepared=None, errors=errors)
        return ValidationResult(prepared=prepared, errors=errors)

    def _run_checks(
        self,
        raw: Mapping[str, object],
        options: ImportOptions,
        errors: ValidationOutcome,
    ) -> PreparedCourse:
        def fail(code: str, *args: object) -> None:
            errors.record(code, message(code, *args))
            raise _Halt

        def fail_all(found: Mapping[str, str]) -> None:
            errors.extend(found)
            raise _Halt

        raw_shortname = raw.get("shortname")
        shortname = None if is_blank(raw_shortname) else str(raw_shortname)
        import_options = {option: raw.get(option) for option in OPTION_FIELDS}

        # 1. Shortname well-formedness.
        if shortname is not None:
            if not is_clean_text(shortname):
                fail("invalidshortname")
            if len(shortname) > SHORTNAME_MAX_LENGTH:
                fail("invalidshortnametoolong", SHORTNAME_MAX_LENGTH)

        # 2-3. Existence and mode.
        exists = self._exists(shortname)
        if exists:
            if options.can_only_create():
                fail("courseexistsanduploadnotallowed")
        elif not options.can_create():
            fail("coursedoesnotexistandcreatenotallowed")

        # 4. Allow-listed fields only; shortname is kept apart.
        course_data: dict[str, object] = {}
        for field_name, value in raw.items():
            if field_name not in COURSE_FIELDS or field_name == "shortname":
                continue
            if field_name in INTEGER_COURSE_FIELDS and not is_blank(value):
                coerced = _as_int(value)
                if coerced is None:
                    fail("invalidnumericfield", field_name)
                value = coerced
            course_data[field_name] = value

        # 5. Category.
        category_id, category_errors = self._categories.resolve(raw)
        if category_errors:
            fail_all(category_errors)
        if category_id is None:
            fail("missingcategory")
        course_data["category"] = category_id

        # 6. Fullname.
        fullname = course_data.get("fullname")
        if is_blank(fullname):
            fail("missingfullname")
        if len(str(fullname)) > FULLNAME_MAX_LENGTH:
            fail("invalidfullnametoolong", FULLNAME_MAX_LENGTH)

        # 7. A missing shortname needs a template to generate one from.
        if shortname is None and not options.shortname_template:
            fail("missingshortnamenotemplate")

        # 8. ID number must be free.
        idnumber = course_data.get("idnumber")
        if not exists and not is_blank(idnumber):
            if self._courses.count_courses_with_idnumber(str(idnumber)) > 0:
                fail("idnumberalreadyinuse")

        # 9. Dates.
        date_fields = (("startdate", "invalidstartdate"), ("enddate", "invalidenddate"))
        for date_field, error_code in date_fields:
            raw_date = course_data.get(date_field)
            if is_blank(raw_date):
                continue
            timestamp = parse_timestamp(raw_date)
            if timestamp is None:
                fail(error_code, raw_date)
            course_data[date_field] = timestamp

        # 10. Forcing a language needs permission in the target category.
        if not is_blank(course_data.get("lang")):
            if not self._permissions.can_force_language(options.actor_id, int(category_id)):
                fail("cannotforcelang")

        # 11. Only creation is supported.
        if exists:
            fail("courseexistsanduploadnotallowed")

        # 12. Creation defaults.
        outcome = CourseOutcome.CREATE
        if shortname is None:
            shortname = generate_shortname(
                options.shortname_template,
                fullname=str(fullname),
                idnumber=None if is_blank(idnumber) else str(idnumber),
            )
            if (
                shortname is None
                or not is_clean_text(shortname)
                or len(shortname) > SHORTNAME_MAX_LENGTH
            ):
                fail("generatedshortnameinvalid")
            if self._exists(shortname):
                fail("generatedshortnamealreadyinuse")
        course_data["shortname"] = shortname

        # 13. Start and end dates must be consistent.
        date_error = self._date_rule.validate_course_dates(course_data)
        if date_error:
            fail(date_error)

        # 14. Role renaming.
        role_names, role_errors = self._roles.resolve(raw)
        if role_errors:
            fail_all(role_errors)
        course_data.update(role_names)

        # 15. Format.
        course_format = course_data.get("format")
        if not is_blank(course_format) and course_format not in self._formats.list_formats():
            fail("invalidcourseformat")

        # 16. Format options of the chosen format, else of the template course.
        template_shortname = import_options.get("templatecourse")
        options_format = None if is_blank(course_format) else str(course_format)
        if options_format is None and not is_blank(template_shortname):
            template = self._courses.get_course_by_shortname(str(template_shortname))
            if template is not None:
                options_format = template.format
        if options_format is not None:
            course_data["format_options"] = self._formats.validate_format_options(
                options_format, raw
            )

        # 17. Section count.
        course_data["numsections"] = self._numsections(raw, template_shortname)

        # 18. Visibility.
        visible = course_data.get("visible")
        if not is_blank(visible):
            if _as_int(visible) not in (0, 1):
                fail("invalidvisibilitymode")
            course_data["visible"] = _as_int(visible)

        # 19. Tags.
        raw_tags = raw.get("tags")
        if raw_tags is not None and str(raw_tags) != "":
            tags = split_tags(str(raw_tags))
            if tags:
                course_data["tags"] = tags

        enrolments = self._enrolments.extract(raw)

        # 20. Restore source.
        backup_file = import_options.get("backupfile")
        source_file = None if is_blank(backup_file) else str(backup_file)
        source_template = None
        if source_file is None and not is_blank(template_shortname):
            source_template = str(template_shortname)
        resolution = self._restore_locator.resolve(
            source_file,
            source_template,
            fallback_backup_id=options.restore_dir,
        )
        if resolution.failed:
            fail_all(resolution.errors)

        return PreparedCourse(
            outcome=outcome,
            spec=CourseSpec.from_course_data(course_data),
            enrolments=enrolments,
            restore=resolution.handle,
        )

    def _exists(self, shortname: str | None) -> bool:
        if shortname is None:
            return False
        return self._courses.course_exists_by_shortname(shortname)

    def _numsections(self, raw: Mapping[str, object], template_shortname: object) -> int:
        explicit = _as_int(raw.get("numsections"))
        if explicit is not None:
            return explicit
        if not is_blank(template_shortname):
            template = self._courses.get_course_by_shortname(str(template_shortname))
            if template is not None:
                section_count = self._formats.get_last_section_number(template)
                if section_count != 0:
                    return section_count
        return self._default_numsections


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("+-").isdigit():
            return int(text)
    return None
