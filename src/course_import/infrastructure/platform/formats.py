"""Course formats and their option contracts."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from course_import.application.ports import FormatRegistry
from course_import.domain.course import CourseRecord

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormatOption:
    """One option a course format accepts, with its allowed values."""

    name: str
    default: object
    choices: tuple[object, ...] | None = None
    integer: bool = True


@dataclass(frozen=True)
class CourseFormat:
    """Course format with option contracts."""

    name: str
    options: tuple[FormatOption, ...] = ()


_BINARY = (0, 1)

DEFAULT_COURSE_FORMATS: tuple[CourseFormat, ...] = (
    CourseFormat(
        name="topics",
        options=(
            FormatOption("hiddensections", 0, _BINARY),
            FormatOption("coursedisplay", 0, _BINARY),
        ),
    ),
    CourseFormat(
        name="weeks",
        options=(
            FormatOption("hiddensections", 0, _BINARY),
            FormatOption("coursedisplay", 0, _BINARY),
            FormatOption("automaticenddate", 1, _BINARY),
        ),
    ),
    CourseFormat(
        name="social",
        options=(FormatOption("numdiscussions", 10),),
    ),
    CourseFormat(
        name="singleactivity",
        options=(
            FormatOption(
                "activitytype",
                "forum",
                ("assign", "forum", "page", "quiz", "scorm", "url"),
                integer=False,
            ),
        ),
    ),
)


class StaticFormatRegistry(FormatRegistry):
    """Registry of installed formats built from a fixed list."""

    def __init__(self, formats: tuple[CourseFormat, ...] = DEFAULT_COURSE_FORMATS) -> None:
        self._formats = {course_format.name: course_format for course_format in formats}

    def list_formats(self) -> list[str]:
        return list(self._formats)

    def validate_format_options(
        self,
        format_name: str,
        raw: Mapping[str, object],
    ) -> dict[str, object]:
        course_format = self._formats.get(format_name)
        if course_format is None:
            return {}

        validated: dict[str, object] = {}
        for option in course_format.options:
            if option.name not in raw:
                continue
            value = _coerce(option, raw[option.name])
            if value is None:
                LOGGER.warning(
                    "event=format_option_ignored course_id=- format=%s option=%s value=%s",
                    format_name,
                    option.name,
                    raw[option.name],
                )
                continue
            validated[option.name] = value
        return validated

    def get_last_section_number(self, course: CourseRecord) -> int:
        return course.numsections


def _coerce(option: FormatOption, value: object) -> object | None:
    if option.integer:
        text = str(value).strip()
        if not text.lstrip("-").isdigit():
            return None
        coerced: object = int(text)
    else:
        coerced = str(value).strip()
    if option.choices is not None and coerced not in option.choices:
        return None
    return coerced
