"""Resolve role renaming fields of a feed row."""

from __future__ import annotations

import re
from collections.abc import Mapping

from course_import.application.cache import MISSING, LookupCache
from course_import.application.ports import RoleDirectory
from course_import.domain.messages import message

_ROLE_FIELD_PATTERN = re.compile(r"^role_(.+)$")
_ROLES_CACHE_KEY = "roles"


class RoleNameResolver:
    """Map ``role_<shortname>`` fields to rename directives keyed by role id."""

    def __init__(self, directory: RoleDirectory, cache: LookupCache) -> None:
        self._directory = directory
        self._cache = cache

    def role_ids(self) -> dict[str, int]:
        """Return cached role shortname to id table."""
        cached = self._cache.get(_ROLES_CACHE_KEY)
        if cached is MISSING:
            cached = {shortname: role_id for shortname, role_id in self._directory.list_all_roles()}
            self._cache.set(_ROLES_CACHE_KEY, cached)
        return dict(cached)  # type: ignore[call-overload]

    def resolve(self, raw: Mapping[str, object]) -> tuple[dict[str, object], dict[str, str]]:
        """Return renames (``role_<id>`` to name) and one aggregated error for unknown roles."""
        role_ids = self.role_ids()
        renames: dict[str, object] = {}
        invalid_roles: list[str] = []

        for field_name, value in raw.items():
            match = _ROLE_FIELD_PATTERN.match(field_name)
            if match is None:
                continue
            shortname = match.group(1)
            if shortname not in role_ids:
                invalid_roles.append(shortname)
                continue
            renames[f"role_{role_ids[shortname]}"] = value

        errors: dict[str, str] = {}
        if invalid_roles:
            errors["invalidroles"] = message("invalidroles", ", ".join(invalid_roles))
        return renames, errors
