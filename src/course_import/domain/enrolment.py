"""Domain models for course enrolment methods."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from types import MappingProxyType


class EnrolmentStatus(IntEnum):
    """Enrolment instance status as stored."""

    ENABLED = 0
    DISABLED = 1


class EnrolmentActionKind(StrEnum):
    """Change applied to one enrolment method of a course."""

    CREATE = "create"
    ENABLE = "enable"
    DISABLE = "disable"
    DELETE = "delete"


@dataclass(frozen=True)
class EnrolmentMethodSpec:
    """Desired state of one enrolment method, as described by a feed row."""

    method: str
    options: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))
    delete: bool = False
    disable: bool = False

    @classmethod
    def from_options(cls, method: str, options: Mapping[str, object]) -> EnrolmentMethodSpec:
        """Split ``delete``/``disable`` directives off the raw option map."""
        remaining = dict(options)
        delete = _truthy(remaining.pop("delete", None))
        disable = _truthy(remaining.pop("disable", None))
        return cls(
            method=method,
            options=MappingProxyType(remaining),
            delete=delete,
            disable=disable,
        )


@dataclass
class EnrolmentInstance:
    """Working copy of a stored enrolment instance."""

    id: int
    course_id: int
    method: str
    status: EnrolmentStatus = EnrolmentStatus.ENABLED
    name: str | None = None
    enrolstartdate: int = 0
    enrolenddate: int = 0
    enrolperiod: int = 0
    role_id: int | None = None
    timemodified: int = 0
    options: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class EnrolmentAction:
    """Change applied by the reconciler."""

    method: str
    kind: EnrolmentActionKind
    instance_id: int


def _truthy(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() not in {"", "0", "false", "no", "n", "off"}
    return bool(value)
