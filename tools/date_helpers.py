"""
Date Helpers
Strict parsing and formatting of calendar dates and wall-clock times
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Iterator, Union

from tools.errors import ParseError


DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
# Time part of a stored timestamp: any fraction length, optional Z or offset
_TIMESTAMP_TIME_RE = re.compile(
    r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d(\.\d+)?)?(Z|[+-]\d{2}(:?\d{2})?)?$"
)

DateLike = Union[date, datetime, str]


def parse_date(value: DateLike) -> date:
    """
    Normalise a date-like value to a calendar day.

    Accepts ``date``, ``datetime`` (the day part is kept), ``YYYY-MM-DD``
    strings and ISO-8601 timestamp strings such as ``2024-03-01T09:30:00Z``.

    Raises:
        ParseError: if the value cannot be read as a calendar day
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ParseError(value, "YYYY-MM-DD")

    text = value.strip()
    if _DATE_RE.match(text):
        try:
            return datetime.strptime(text, DATE_FORMAT).date()
        except ValueError:
            raise ParseError(value, "YYYY-MM-DD")

    # Timestamps as stored by the backend, e.g. "2024-03-01 09:30:00.12345+00".
    # Only the calendar day is kept, so the offset is not applied.
    if len(text) > 10 and text[10] in ("T", " ") and _DATE_RE.match(text[:10]):
        if not _TIMESTAMP_TIME_RE.match(text[11:]):
            raise ParseError(value, "ISO-8601 timestamp")
        try:
            return datetime.strptime(text[:10], DATE_FORMAT).date()
        except ValueError:
            raise ParseError(value, "ISO-8601 timestamp")

    raise ParseError(value, "YYYY-MM-DD")


def parse_time(value: Union[time, str]) -> time:
    """
    Parse an ``HH:MM`` (or ``HH:MM:SS``) 24-hour wall-clock time.

    Raises:
        ParseError: if the value is not a valid 24-hour time
    """
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ParseError(value, "HH:MM")

    match = _TIME_RE.match(value.strip())
    if not match:
        raise ParseError(value, "HH:MM")

    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        raise ParseError(value, "HH:MM")
    return time(hour, minute, second)


def format_date(value: DateLike) -> str:
    """Format a date-like value as YYYY-MM-DD"""
    return parse_date(value).strftime(DATE_FORMAT)


def format_time(value: Union[time, str]) -> str:
    """Format a time as zero-padded 24-hour HH:MM"""
    return parse_time(value).strftime(TIME_FORMAT)


def add_hours(value: Union[time, str], hours: int) -> time:
    """Add whole hours to a wall-clock time, wrapping past midnight"""
    t = parse_time(value)
    return time((t.hour + hours) % 24, t.minute)


def days_between(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end, both inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def days_ago(today: date, days: int) -> date:
    """The calendar day ``days`` before ``today``"""
    return today - timedelta(days=days)
