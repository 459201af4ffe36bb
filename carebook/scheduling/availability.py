"""
Worker availability and booking conflict checks.

``check_availability`` is a pure predicate over a worker record and a
snapshot of that worker's bookings. Keeping the snapshot consistent with
what gets written is the caller's job (see ``carebook.booking.service``).
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable, Optional

from carebook.schemas.booking_schema import RELEASED_STATUSES
from carebook.schemas.worker_schema import AvailabilityWindow, Worker
from carebook.scheduling.dates import (
    day_of_week,
    format_local_date,
    minutes_to_time,
    time_to_minutes,
    to_local_date,
)

logger = logging.getLogger(__name__)


class AvailabilityIssue(str, Enum):
    """Why a requested time range cannot be booked."""
    NOT_AVAILABLE_THIS_DAY = "not_available_this_day"
    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    SLOT_CONFLICT = "slot_conflict"


@dataclass(frozen=True)
class TimeRange:
    start: str
    end: str

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass
class AvailabilityResult:
    """Outcome of a single availability check."""
    ok: bool
    reason: Optional[AvailabilityIssue] = None
    message: Optional[str] = None
    conflict: Optional[TimeRange] = None
    conflicting_booking_id: Optional[str] = None


def _window_applies(window: AvailabilityWindow, target: date) -> bool:
    if window.day_of_week != day_of_week(target):
        return False
    if window.date_range is None:
        return True
    if window.date_range.start and to_local_date(window.date_range.start) > target:
        return False
    if window.date_range.end and to_local_date(window.date_range.end) < target:
        return False
    return True


def windows_for_date(worker: Worker, target: date) -> list[AvailabilityWindow]:
    """Availability windows that apply on a calendar date."""
    return [w for w in worker.availability if _window_applies(w, target)]


def is_active(booking: dict[str, Any]) -> bool:
    """A booking holds its time range unless it was cancelled or rejected."""
    return booking.get("status") not in RELEASED_STATUSES


def _active_ranges_on(target: date, bookings: Iterable[dict[str, Any]]) -> list[tuple[int, int, dict]]:
    day = format_local_date(target)
    ranges = []
    for booking in bookings:
        if not is_active(booking) or booking.get("date") != day:
            continue
        ranges.append(
            (time_to_minutes(booking["startTime"]), time_to_minutes(booking["endTime"]), booking)
        )
    return ranges


def overlaps(start: int, end: int, other_start: int, other_end: int) -> bool:
    """Half-open interval intersection; touching boundaries do not overlap."""
    return start < other_end and end > other_start


def check_availability(
    worker: Worker,
    target: date,
    start_time: str,
    end_time: str,
    existing_bookings: Iterable[dict[str, Any]],
) -> AvailabilityResult:
    """
    Check that a worker works the requested range and has no overlapping booking.

    ``existing_bookings`` are booking documents (``date`` as ``YYYY-MM-DD``,
    ``startTime``/``endTime`` as ``HH:MM``). Bookings on other dates and
    released bookings are ignored.
    """
    name = worker.display_name
    day = format_local_date(target)
    windows = windows_for_date(worker, target)
    if not windows:
        return AvailabilityResult(
            ok=False,
            reason=AvailabilityIssue.NOT_AVAILABLE_THIS_DAY,
            message=f"{name} is not available on {day}",
        )

    new_start = time_to_minutes(start_time)
    new_end = time_to_minutes(end_time)
    covered = any(
        new_start >= time_to_minutes(w.start_time) and new_end <= time_to_minutes(w.end_time)
        for w in windows
    )
    if not covered:
        return AvailabilityResult(
            ok=False,
            reason=AvailabilityIssue.OUTSIDE_WORKING_HOURS,
            message=f"{name} is not available at {start_time}-{end_time} on {day}",
        )

    for existing_start, existing_end, booking in _active_ranges_on(target, existing_bookings):
        if overlaps(new_start, new_end, existing_start, existing_end):
            conflict = TimeRange(booking["startTime"], booking["endTime"])
            logger.debug("Conflict with %s (%s) on %s", booking.get("id"), conflict, day)
            return AvailabilityResult(
                ok=False,
                reason=AvailabilityIssue.SLOT_CONFLICT,
                message=(
                    f"{name} already has a booking at {conflict} on {day}. "
                    "Please choose a different time."
                ),
                conflict=conflict,
                conflicting_booking_id=booking.get("id"),
            )

    return AvailabilityResult(ok=True)


def get_available_slots(
    worker: Worker,
    target: date,
    existing_bookings: Iterable[dict[str, Any]],
    slot_duration_minutes: int = 60,
) -> list[TimeRange]:
    """Fixed-length free slots inside each window that applies on ``target``."""
    booked = _active_ranges_on(target, existing_bookings)
    slots: list[TimeRange] = []
    for window in windows_for_date(worker, target):
        window_end = time_to_minutes(window.end_time)
        current = time_to_minutes(window.start_time)
        while current + slot_duration_minutes <= window_end:
            slot_end = current + slot_duration_minutes
            if not any(overlaps(current, slot_end, b_start, b_end) for b_start, b_end, _ in booked):
                slots.append(TimeRange(minutes_to_time(current), minutes_to_time(slot_end)))
            current = slot_end
    return slots


def get_available_time_windows(
    worker: Worker,
    target: date,
    existing_bookings: Iterable[dict[str, Any]],
) -> list[TimeRange]:
    """Free gaps between bookings inside the windows that apply on ``target``."""
    booked = sorted((b_start, b_end) for b_start, b_end, _ in _active_ranges_on(target, existing_bookings))
    gaps: list[TimeRange] = []
    for window in sorted(windows_for_date(worker, target), key=lambda w: time_to_minutes(w.start_time)):
        cursor = time_to_minutes(window.start_time)
        window_end = time_to_minutes(window.end_time)
        for b_start, b_end in booked:
            if b_end <= cursor or b_start >= window_end:
                continue
            if b_start > cursor:
                gaps.append(TimeRange(minutes_to_time(cursor), minutes_to_time(b_start)))
            cursor = max(cursor, b_end)
        if cursor < window_end:
            gaps.append(TimeRange(minutes_to_time(cursor), minutes_to_time(window_end)))
    return gaps
