"""Text helpers for course feed values."""

from __future__ import annotations

import re

_TAG_PATTERN = re.compile(r"<[^>]*>")
_CONTROL_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TAG_SPLIT_PATTERN = re.compile(r"\s*,\s*")
_SHORTNAME_PLACEHOLDER_PATTERN = re.compile(r"%([+-]?)([fi])")


def clean_text(value: str) -> str:
    """Strip markup and control characters from plain text input."""
    without_tags = _TAG_PATTERN.sub("", value)
    return _CONTROL_PATTERN.sub("", without_tags)


def is_clean_text(value: str) -> bool:
    """Return whether ``value`` survives ``clean_text`` unchanged."""
    return clean_text(value) == value


def split_tags(raw_tags: str) -> list[str]:
    """Split comma separated tags, dropping empty entries."""
    return [tag for tag in _TAG_SPLIT_PATTERN.split(raw_tags.strip()) if tag]


def generate_shortname(
    template: str | None,
    *,
    fullname: str | None,
    idnumber: str | None,
) -> str | None:
    """Expand ``%f``/``%i`` placeholders of a shortname template.

    ``%+f`` and ``%-f`` (likewise for ``%i``) upper/lower case the value.
    Returns None when the template is empty or expands to nothing.
    """
    if not template:
        return None

    values = {"f": fullname or "", "i": idnumber or ""}

    def _expand(match: re.Match[str]) -> str:
        modifier, placeholder = match.groups()
        value = values[placeholder]
        if modifier == "+":
            return value.upper()
        if modifier == "-":
            return value.lower()
        return value

    generated = _SHORTNAME_PLACEHOLDER_PATTERN.sub(_expand, template).strip()
    return generated or None


def is_blank(value: object) -> bool:
    """Return whether a feed value counts as absent."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    return False
