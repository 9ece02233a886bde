"""Parsing of feed date strings and relative periods into epoch seconds."""

from __future__ import annotations

import calendar
import re
from datetime import UTC, datetime, timedelta

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_DIGITS_PATTERN = re.compile(r"^\d+$")
_PERIOD_TOKEN_PATTERN = re.compile(
    r"([+-]?\s*\d+)\s*"
    r"(seconds?|secs?|minutes?|mins?|hours?|days?|weeks?|fortnights?|months?|years?)\b",
    re.IGNORECASE,
)
_DATE_FORMATS: tuple[str, ...] = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%d.%m.%Y",
    "%d.%m.%Y %H:%M",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
)
_SECONDS_PER_UNIT: dict[str, int] = {
    "sec": 1,
    "min": 60,
    "hour": 3600,
    "day": 86400,
    "week": 7 * 86400,
    "fortnight": 14 * 86400,
}


def parse_timestamp(value: object) -> int | None:
    """Parse a date string or epoch integer into epoch seconds (UTC).

    Returns None when the value cannot be interpreted.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, datetime):
        return _to_epoch(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if _INTEGER_PATTERN.match(text):
        return int(text)

    try:
        return _to_epoch(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    for date_format in _DATE_FORMATS:
        try:
            return _to_epoch(datetime.strptime(text, date_format))
        except ValueError:
            continue
    return None


def parse_period(value: object) -> int | None:
    """Parse an enrolment period into seconds.

    A bare integer string is already seconds. Anything else is read as a
    relative expression such as ``"2 weeks"`` or ``"1 month 3 days"``,
    measured from 1970-01-01 UTC. Returns None when nothing can be parsed.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if _DIGITS_PATTERN.match(text):
        return int(text)
    return parse_relative_period(text)


def parse_relative_period(expression: str) -> int | None:
    """Return seconds between the epoch and the epoch shifted by ``expression``."""
    text = expression.strip().lstrip("+").strip()
    if not text:
        return None

    position = 0
    months = 0
    seconds = 0
    for match in _PERIOD_TOKEN_PATTERN.finditer(text):
        if text[position : match.start()].strip():
            return None
        amount = int(match.group(1).replace(" ", ""))
        unit = match.group(2).lower()
        if unit.startswith("month"):
            months += amount
        elif unit.startswith("year"):
            months += 12 * amount
        else:
            seconds += amount * _unit_seconds(unit)
        position = match.end()

    if position == 0 or text[position:].strip():
        return None

    shifted = _add_months(EPOCH, months) + timedelta(seconds=seconds)
    return _to_epoch(shifted)


def _unit_seconds(unit: str) -> int:
    for prefix, unit_seconds in _SECONDS_PER_UNIT.items():
        if unit.startswith(prefix):
            return unit_seconds
    raise ValueError(f"Unsupported period unit: {unit}")


def _add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _to_epoch(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return int(moment.timestamp())
