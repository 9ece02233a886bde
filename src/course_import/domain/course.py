"""Domain models for courses created from a course feed."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from pathlib import Path
from types import MappingProxyType

SHORTNAME_MAX_LENGTH = 255
FULLNAME_MAX_LENGTH = 254

# Fields copied from a feed row onto the course.
COURSE_FIELDS: tuple[str, ...] = (
    "fullname",
    "shortname",
    "idnumber",
    "category",
    "visible",
    "startdate",
    "enddate",
    "summary",
    "format",
    "theme",
    "lang",
    "newsitems",
    "showgrades",
    "showreports",
    "legacyfiles",
    "maxbytes",
    "groupmode",
    "groupmodeforce",
    "enablecompletion",
)

INTEGER_COURSE_FIELDS: frozenset[str] = frozenset(
    {
        "newsitems",
        "showgrades",
        "showreports",
        "legacyfiles",
        "maxbytes",
        "groupmode",
        "groupmodeforce",
        "enablecompletion",
    }
)

# Out-of-band import options carried by a feed row.
OPTION_FIELDS: tuple[str, ...] = ("backupfile", "templatecourse")


class ImportMode(IntEnum):
    """Import modes supported by the pipeline."""

    CREATE_NEW = 1


class CourseOutcome(StrEnum):
    """What the import does with the course of one row."""

    # TODO: add UPDATE and DELETE once update modes decide how existing
    # course data and enrolments are merged.
    CREATE = "create"


def _frozen(mapping: Mapping[str, object] | None = None) -> Mapping[str, object]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class CourseSpec:
    """Fully resolved course ready to be created."""

    shortname: str
    fullname: str
    category_id: int
    idnumber: str | None = None
    visible: int | None = None
    startdate: int | None = None
    enddate: int | None = None
    summary: str | None = None
    format: str | None = None
    theme: str | None = None
    lang: str | None = None
    newsitems: int | None = None
    showgrades: int | None = None
    showreports: int | None = None
    legacyfiles: int | None = None
    maxbytes: int | None = None
    groupmode: int | None = None
    groupmodeforce: int | None = None
    enablecompletion: int | None = None
    numsections: int = 0
    format_options: Mapping[str, object] = field(default_factory=_frozen)
    role_names: Mapping[str, object] = field(default_factory=_frozen)
    tags: tuple[str, ...] = ()

    @classmethod
    def from_course_data(cls, data: Mapping[str, object]) -> CourseSpec:
        """Build a spec from validated working course data."""
        role_names = {key: value for key, value in data.items() if key.startswith("role_")}
        return cls(
            shortname=str(data["shortname"]),
            fullname=str(data["fullname"]),
            category_id=int(data["category"]),  # type: ignore[call-overload]
            idnumber=_optional_str(data.get("idnumber")),
            visible=_optional_int(data.get("visible")),
            startdate=_optional_int(data.get("startdate")),
            enddate=_optional_int(data.get("enddate")),
            summary=_optional_str(data.get("summary")),
            format=_optional_str(data.get("format")),
            theme=_optional_str(data.get("theme")),
            lang=_optional_str(data.get("lang")),
            newsitems=_optional_int(data.get("newsitems")),
            showgrades=_optional_int(data.get("showgrades")),
            showreports=_optional_int(data.get("showreports")),
            legacyfiles=_optional_int(data.get("legacyfiles")),
            maxbytes=_optional_int(data.get("maxbytes")),
            groupmode=_optional_int(data.get("groupmode")),
            groupmodeforce=_optional_int(data.get("groupmodeforce")),
            enablecompletion=_optional_int(data.get("enablecompletion")),
            numsections=_optional_int(data.get("numsections")) or 0,
            format_options=_frozen(data.get("format_options")),  # type: ignore[arg-type]
            role_names=_frozen(role_names),
            tags=tuple(data.get("tags") or ()),  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class CourseRecord:
    """Stored course as returned by storage."""

    id: int
    shortname: str
    fullname: str
    category_id: int
    format: str
    numsections: int
    idnumber: str | None = None
    summary: str | None = None


@dataclass(frozen=True)
class CategoryRecord:
    """Stored course category."""

    id: int
    name: str
    parent_id: int | None
    idnumber: str | None = None
    deleted: bool = False


@dataclass(frozen=True)
class RestoreHandle:
    """Staged backup content ready to be restored onto a new course."""

    backup_id: str
    directory: Path
    source_key: str | None = None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def _optional_int(value: object) -> int | None:
    if value is None or value == "":
        return None
    return int(value)  # type: ignore[call-overload]
