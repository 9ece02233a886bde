"""Import settings and per-course import options."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from course_import.domain.course import ImportMode

DEFAULT_ENROLMENT_PLUGINS: dict[str, str | None] = {
    "manual": "student",
    "self": "student",
    "guest": None,
}


class ImportSettings(BaseModel):
    """Site-level settings applied to every imported row."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)

    template_course: str | None = Field(default=None, max_length=255)
    shortname_template: str | None = Field(default=None, max_length=255)
    keep_temp_directories: bool = False
    default_numsections: int = Field(default=4, ge=0, le=52)
    actor_id: int | None = None
    allow_force_language: bool = False
    enrolment_plugins: dict[str, str | None] = Field(
        default_factory=lambda: dict(DEFAULT_ENROLMENT_PLUGINS)
    )


@dataclass(frozen=True)
class ImportOptions:
    """Options handed to the validator of one course."""

    mode: ImportMode = ImportMode.CREATE_NEW
    restore_dir: str | None = None
    shortname_template: str | None = None
    actor_id: int | None = None

    def can_create(self) -> bool:
        """Return whether the mode allows creating courses."""
        return self.mode is ImportMode.CREATE_NEW

    def can_only_create(self) -> bool:
        """Return whether the mode allows nothing but creating courses."""
        return self.mode is ImportMode.CREATE_NEW
