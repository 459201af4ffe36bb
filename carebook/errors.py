"""
Typed booking errors.

Each error carries an HTTP-style status code so that whatever sits in front
of the engine (an API route, the console) can render it without a lookup
table. Validation failures abort the whole submission; the offending
occurrence is named through ``booking_id``.
"""

from typing import Any, Optional


class BookingError(Exception):
    """Base class for every failure surfaced by the booking engine."""

    status_code: int = 400
    code: str = "booking_error"

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        booking_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.booking_id = booking_id

    def to_dict(self) -> dict[str, Any]:
        """Render the error as a response body."""
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        if self.booking_id:
            body["bookingId"] = self.booking_id
        return body


class MalformedBookingError(BookingError):
    """Required booking fields are missing or the payload has the wrong shape."""

    code = "malformed_booking"


class InvalidFormatError(BookingError, ValueError):
    """A date or time string could not be parsed."""

    code = "invalid_format"


class InvalidTimeRangeError(BookingError):
    """The end time is not strictly after the start time."""

    code = "invalid_time_range"


class NotFoundError(BookingError):
    """A referenced worker, client, or booking does not exist."""

    status_code = 404
    code = "not_found"


class PolicyViolationError(BookingError):
    """A business rule rejected the booking; different parameters may succeed."""

    status_code = 409
    code = "policy_violation"


class LocationMismatchError(PolicyViolationError):
    code = "location_mismatch"


class InsufficientNoticeError(PolicyViolationError):
    code = "insufficient_notice"


class TierNotOfferedError(PolicyViolationError):
    code = "tier_not_offered"


class NotAvailableThisDayError(PolicyViolationError):
    code = "not_available_this_day"


class OutsideWorkingHoursError(PolicyViolationError):
    code = "outside_working_hours"


class SlotConflictError(PolicyViolationError):
    code = "slot_conflict"


class InvalidTransitionError(PolicyViolationError):
    """Raised when a status change is not valid from the booking's current status."""

    code = "invalid_transition"


class InternalError(BookingError):
    """Unexpected store failure."""

    status_code = 500
    code = "internal_error"
