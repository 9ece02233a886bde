"""Resolve the category of a feed row from id, idnumber or path."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from course_import.application.cache import MISSING, LookupCache
from course_import.application.ports import AMBIGUOUS, CategoryDirectory
from course_import.application.text import is_blank
from course_import.domain.messages import message

LOGGER = logging.getLogger(__name__)

CATEGORY_PATH_SEPARATOR = " / "

# Cached marker for "looked up, nothing found".
_NOT_FOUND = -1


class CategoryResolver:
    """Resolve ``category``, ``category_idnumber`` or ``category_path`` to an id.

    Branches are tried in that order and the first one that resolves wins.
    A branch that fails records its own error before falling through, so the
    caller sees every failed branch even when a later one resolved.
    """

    def __init__(self, directory: CategoryDirectory, cache: LookupCache) -> None:
        self._directory = directory
        self._cache = cache

    def resolve(self, raw: Mapping[str, object]) -> tuple[int | None, dict[str, str]]:
        """Return resolved category id (or None) and errors keyed by code."""
        errors: dict[str, str] = {}
        category_id: int | None = None

        raw_id = raw.get("category")
        # A zero id means "no id given", like an empty cell.
        if not is_blank(raw_id) and raw_id not in (0, "0"):
            category_id = self._resolve_by_id(raw_id)
            if category_id is None:
                errors["couldnotresolvecatgorybyid"] = message("couldnotresolvecatgorybyid")

        raw_idnumber = raw.get("category_idnumber")
        if category_id is None and not is_blank(raw_idnumber):
            category_id = self.resolve_by_idnumber(str(raw_idnumber))
            if category_id is None:
                errors["couldnotresolvecatgorybyidnumber"] = message(
                    "couldnotresolvecatgorybyidnumber"
                )

        raw_path = raw.get("category_path")
        if category_id is None and not is_blank(raw_path):
            category_id = self.resolve_by_path(str(raw_path).split(CATEGORY_PATH_SEPARATOR))
            if category_id is None:
                errors["couldnotresolvecatgorybypath"] = message("couldnotresolvecatgorybypath")

        if errors:
            LOGGER.info(
                "event=category_unresolved course_id=- error_codes=%s",
                ",".join(errors),
            )
        return category_id, errors

    def resolve_by_idnumber(self, idnumber: str) -> int | None:
        """Return id of category with ``idnumber``, caching misses too."""
        cache_key = f"cat_idn_{idnumber}"
        cached = self._cache.get(cache_key)
        if cached is MISSING:
            found = self._directory.find_by_idnumber(idnumber)
            cached = _NOT_FOUND if found is None else found
            self._cache.set(cache_key, cached)
        return None if cached == _NOT_FOUND else int(cached)  # type: ignore[call-overload]

    def resolve_by_path(self, path: list[str]) -> int | None:
        """Walk category names from root to leaf.

        A missing segment and a segment matching several categories are both
        reported as not found.
        """
        cache_key = "cat_path_" + "\x1f".join(path)
        cached = self._cache.get(cache_key)
        if cached is MISSING:
            cached = self._walk_path(path)
            self._cache.set(cache_key, cached)
        return None if cached == _NOT_FOUND else int(cached)  # type: ignore[call-overload]

    def _resolve_by_id(self, raw_id: object) -> int | None:
        try:
            wanted = int(str(raw_id).strip())
        except ValueError:
            return None
        category = self._directory.get_by_id(wanted)
        if category is None or category.deleted:
            return None
        return category.id

    def _walk_path(self, path: list[str]) -> int:
        parent_id: int | None = None
        found: int = _NOT_FOUND
        for name in path:
            if name == "":
                break
            match = self._directory.find_by_name_under_parent(name, parent_id)
            if match is None or match is AMBIGUOUS:
                return _NOT_FOUND
            found = int(match)
            parent_id = found
        return found
