"""
Calendar-date and clock-time normalization.

Every module that touches a booking date goes through these helpers.
Dates are carried as ``datetime.date`` (no time of day, no timezone) and
persisted as ``YYYY-MM-DD`` strings, so a date can never drift to the
previous day when rendered in a zone behind UTC. ISO datetime strings keep
the calendar day they spell out; only real ``datetime`` objects that carry
a timezone are converted to server-local time first.
"""

import re
from datetime import date, datetime, time
from typing import Union

from dateutil.parser import isoparse

from carebook.errors import InvalidFormatError

DateLike = Union[date, datetime, str]

_DATE_PREFIX = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})$")

MINUTES_PER_DAY = 24 * 60


def _date_from_parts(year: str, month: str, day: str, raw: str) -> date:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        raise InvalidFormatError(f"Invalid date: {raw!r}") from None


def to_local_date(value: DateLike) -> date:
    """Normalize a date, datetime, or date string to a local calendar date.

    Raises:
        InvalidFormatError: If the value cannot be read as a date.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        match = _DATE_PREFIX.search(raw)
        if match:
            return _date_from_parts(*match.groups(), raw=value)
        try:
            parsed = isoparse(raw)
        except (ValueError, OverflowError):
            raise InvalidFormatError(
                f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
            ) from None
        return to_local_date(parsed)
    raise InvalidFormatError(f"Invalid date type: {type(value).__name__}")


def format_local_date(value: date) -> str:
    """Format a calendar date as zero-padded ``YYYY-MM-DD``."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def get_date_string(value: DateLike) -> str:
    """Canonical ``YYYY-MM-DD`` for any accepted date input."""
    return format_local_date(to_local_date(value))


def is_same_day(first: DateLike, second: DateLike) -> bool:
    """True when both inputs name the same calendar day."""
    return to_local_date(first) == to_local_date(second)


def day_of_week(value: date) -> int:
    """Weekday with 0 = Sunday .. 6 = Saturday."""
    return (value.weekday() + 1) % 7


def time_to_minutes(value: str) -> int:
    """Convert ``HH:MM`` to minutes since midnight.

    Raises:
        InvalidFormatError: For anything other than a valid 24-hour clock time.
    """
    match = _CLOCK.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidFormatError(f"Invalid time format: {value!r}. Expected HH:MM.")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidFormatError(f"Invalid time: {value!r}")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Inverse of :func:`time_to_minutes`."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidFormatError(f"Minute offset out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def combine_local(value: date, clock: str) -> datetime:
    """Naive server-local datetime for a calendar date and an ``HH:MM`` time."""
    minutes = time_to_minutes(clock)
    return datetime.combine(value, time(minutes // 60, minutes % 60))
