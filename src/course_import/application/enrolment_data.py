"""Extract the desired enrolment methods from a feed row."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from course_import.application.cache import MISSING, LookupCache
from course_import.application.ports import EnrolmentPluginRegistry
from course_import.domain.enrolment import EnrolmentMethodSpec

LOGGER = logging.getLogger(__name__)

_ENROLMENT_FIELD_PATTERN = re.compile(r"^enrolment_(\d+)(?:_(.+))?$")
_PLUGINS_CACHE_KEY = "enrol"


class EnrolmentDataExtractor:
    """Group ``enrolment_<n>`` and ``enrolment_<n>_<option>`` fields per method."""

    def __init__(self, plugins: EnrolmentPluginRegistry, cache: LookupCache) -> None:
        self._plugins = plugins
        self._cache = cache

    def installed_methods(self) -> list[str]:
        """Return cached names of installed enrolment methods."""
        cached = self._cache.get(_PLUGINS_CACHE_KEY)
        if cached is MISSING:
            cached = list(self._plugins.list_methods())
            self._cache.set(_PLUGINS_CACHE_KEY, cached)
        return list(cached)  # type: ignore[call-overload]

    def extract(self, raw: Mapping[str, object]) -> list[EnrolmentMethodSpec]:
        """Return one spec per method, in order of first appearance.

        Methods without an installed plugin are skipped. When two indexes
        name the same method, the later index wins.
        """
        methods: dict[str, str] = {}
        options: dict[str, dict[str, object]] = {}
        for field_name, value in raw.items():
            match = _ENROLMENT_FIELD_PATTERN.match(field_name)
            if match is None:
                continue
            index, option = match.groups()
            index_options = options.setdefault(index, {})
            if option is None:
                methods[index] = str(value)
            else:
                index_options[option] = value

        installed = set(self.installed_methods())
        by_method: dict[str, EnrolmentMethodSpec] = {}
        for index, method in methods.items():
            if method not in installed:
                LOGGER.warning(
                    "event=enrolment_method_skipped course_id=- method=%s index=%s",
                    method,
                    index,
                )
                continue
            by_method[method] = EnrolmentMethodSpec.from_options(method, options[index])
        return list(by_method.values())
