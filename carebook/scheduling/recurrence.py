"""
Recurring booking expansion.

A seed request carrying a ``recurringPattern`` becomes one independent
request per occurrence. Expansion runs before validation so that every
occurrence goes through the full pipeline on its own.

Usage:
    occurrences = expand_recurring_bookings([seed_request])
"""

import logging
import re
from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from carebook.errors import MalformedBookingError
from carebook.schemas.booking_schema import BookingRequest, RecurrenceFrequency
from carebook.scheduling.dates import day_of_week, format_local_date, to_local_date

logger = logging.getLogger(__name__)

DEFAULT_TIME_FRAGMENT = "09:00"
SLOT_PLACEHOLDER = "slot"

_OCCURRENCE_ID = re.compile(r"^(\d{4}-\d{2}-\d{2})_(\d{2}-\d{2})_")


def occurrence_id(occurrence_date: date, start_time: str, worker_id: str) -> str:
    """Deterministic ``{YYYY-MM-DD}_{HH-MM}_{worker}`` identifier."""
    time_fragment = (start_time or DEFAULT_TIME_FRAGMENT).replace(":", "-")
    return f"{format_local_date(occurrence_date)}_{time_fragment}_{worker_id or SLOT_PLACEHOLDER}"


def slot_from_id(booking_id: str) -> Optional[tuple[str, str]]:
    """``(YYYY-MM-DD, HH:MM)`` encoded in an occurrence id, or None for free-form ids.

    >>> slot_from_id("2030-01-07_10-00_w1")
    ('2030-01-07', '10:00')
    """
    match = _OCCURRENCE_ID.match(booking_id)
    if match is None:
        return None
    return match.group(1), match.group(2).replace("-", ":")


def _daily(anchor: date, end: date) -> list[date]:
    return [anchor + timedelta(days=i) for i in range((end - anchor).days + 1)]


def _weekly(anchor: date, end: date, weekdays: set[int], every_other: bool) -> list[date]:
    dates = []
    for offset in range((end - anchor).days + 1):
        if every_other and (offset // 7) % 2 != 0:
            continue
        current = anchor + timedelta(days=offset)
        if day_of_week(current) in weekdays:
            dates.append(current)
    return dates


def _monthly(anchor: date, end: date) -> list[date]:
    dates = []
    months = 0
    current = anchor
    while current <= end:
        dates.append(current)
        months += 1
        # Offset from the anchor so a 31st clamps per month without drifting.
        current = anchor + relativedelta(months=months)
    return dates


def occurrence_dates(request: BookingRequest) -> list[date]:
    """Calendar dates generated by a request's recurrence pattern.

    Raises:
        MalformedBookingError: If the end date precedes the anchor date.
    """
    pattern = request.recurring_pattern
    anchor_source = pattern.start_date if pattern and pattern.start_date else request.date
    if anchor_source is None:
        raise MalformedBookingError(
            "Recurring booking is missing a start date", booking_id=request.id
        )
    anchor = to_local_date(anchor_source)
    if pattern is None:
        return [anchor]

    end = to_local_date(pattern.end_date) if pattern.end_date else anchor
    if end < anchor:
        raise MalformedBookingError(
            f"Recurrence end date {format_local_date(end)} is before its start date "
            f"{format_local_date(anchor)}",
            details={"startDate": format_local_date(anchor), "endDate": format_local_date(end)},
            booking_id=request.id,
        )

    frequency = RecurrenceFrequency(pattern.frequency)
    if frequency == RecurrenceFrequency.DAILY:
        return _daily(anchor, end)
    if frequency == RecurrenceFrequency.MONTHLY:
        return _monthly(anchor, end)

    weekdays = set(pattern.days_of_week or [day_of_week(anchor)])
    return _weekly(anchor, end, weekdays, every_other=frequency == RecurrenceFrequency.BIWEEKLY)


def generate_occurrences(request: BookingRequest) -> list[BookingRequest]:
    """Expand one request into its dated occurrences, pattern stripped."""
    if request.recurring_pattern is None:
        return [request]

    occurrences = [
        request.model_copy(
            update={
                "id": occurrence_id(current, request.start_time, request.worker_id),
                "date": format_local_date(current),
                "recurring_pattern": None,
            }
        )
        for current in occurrence_dates(request)
    ]
    logger.debug(
        "Expanded %s recurrence into %d occurrences", request.recurring_pattern.frequency,
        len(occurrences),
    )
    return occurrences


def expand_recurring_bookings(requests: list[BookingRequest]) -> list[BookingRequest]:
    """Expand every request in submission order."""
    expanded: list[BookingRequest] = []
    for request in requests:
        expanded.extend(generate_occurrences(request))
    return expanded
