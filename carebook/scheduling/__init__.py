from carebook.scheduling.availability import (
    AvailabilityIssue,
    AvailabilityResult,
    TimeRange,
    check_availability,
    get_available_slots,
    get_available_time_windows,
)
from carebook.scheduling.dates import (
    format_local_date,
    get_date_string,
    time_to_minutes,
    to_local_date,
)
from carebook.scheduling.pricing import calculate_price
from carebook.scheduling.recurrence import expand_recurring_bookings, generate_occurrences

__all__ = [
    "AvailabilityIssue",
    "AvailabilityResult",
    "TimeRange",
    "check_availability",
    "get_available_slots",
    "get_available_time_windows",
    "format_local_date",
    "get_date_string",
    "time_to_minutes",
    "to_local_date",
    "calculate_price",
    "expand_recurring_bookings",
    "generate_occurrences",
]
