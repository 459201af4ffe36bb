from carebook.booking.lifecycle import BookingAction, find_transition, next_status
from carebook.booking.service import BookingService
from carebook.booking.validator import OccurrenceValidator, PreparedBooking

__all__ = [
    "BookingService",
    "OccurrenceValidator",
    "PreparedBooking",
    "BookingAction",
    "find_transition",
    "next_status",
]
