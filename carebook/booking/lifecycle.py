"""
Booking status transitions.

Every status change a client or worker can request is listed explicitly.
Anything not in the table is rejected with the set of actions that would
have been valid, mirroring what the dashboards offer per status.

Usage:
    new_status = next_status(BookingStatus.PENDING, BookingAction.ACCEPT)
    assert new_status == BookingStatus.CONFIRMED
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from carebook.errors import InvalidTransitionError
from carebook.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


class BookingAction(str, Enum):
    """Status-changing actions on a persisted booking."""
    ACCEPT = "accept"
    DECLINE = "decline"
    CANCEL = "cancel"
    COMPLETE = "complete"
    RESCHEDULE = "reschedule"


@dataclass(frozen=True)
class StatusTransition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus
    action: BookingAction
    # Timestamp field written when the transition happens.
    stamp_field: Optional[str] = None


TRANSITIONS: list[StatusTransition] = [
    # --- Worker response ---
    StatusTransition(BookingStatus.PENDING, BookingStatus.CONFIRMED,
                     BookingAction.ACCEPT, "confirmedAt"),
    StatusTransition(BookingStatus.PENDING, BookingStatus.REJECTED,
                     BookingAction.DECLINE, "declinedAt"),

    # --- Cancellation ---
    StatusTransition(BookingStatus.PENDING, BookingStatus.CANCELLED,
                     BookingAction.CANCEL, "cancelledAt"),
    StatusTransition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED,
                     BookingAction.CANCEL, "cancelledAt"),

    # --- Visit done ---
    StatusTransition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED,
                     BookingAction.COMPLETE, "completedAt"),

    # --- Reschedule goes back to the worker for confirmation ---
    StatusTransition(BookingStatus.PENDING, BookingStatus.PENDING,
                     BookingAction.RESCHEDULE, "rescheduledAt"),
    StatusTransition(BookingStatus.CONFIRMED, BookingStatus.PENDING,
                     BookingAction.RESCHEDULE, "rescheduledAt"),
]


def valid_actions(status: BookingStatus) -> list[BookingAction]:
    """Actions allowed from a status."""
    return [t.action for t in TRANSITIONS if t.from_status == status]


def find_transition(status: str, action: BookingAction, booking_id: Optional[str] = None) -> StatusTransition:
    """
    Look up the transition for an action from the current status.

    Raises:
        InvalidTransitionError: If the action is not allowed from ``status``.
    """
    try:
        current = BookingStatus(status)
    except ValueError:
        raise InvalidTransitionError(
            f"Booking has unknown status {status!r}", booking_id=booking_id
        ) from None

    for transition in TRANSITIONS:
        if transition.from_status == current and transition.action == action:
            logger.debug(
                "Status transition: %s -> %s (action: %s)",
                current.value, transition.to_status.value, action.value,
            )
            return transition

    valid = [a.value for a in valid_actions(current)]
    raise InvalidTransitionError(
        f"Cannot {action.value} a booking that is '{current.value}'. Valid actions: {valid}",
        details={"status": current.value, "validActions": valid},
        booking_id=booking_id,
    )


def next_status(status: str, action: BookingAction) -> BookingStatus:
    """Status a booking moves to after ``action``."""
    return find_transition(status, action).to_status


def is_terminal(status: str) -> bool:
    """True when no further action is possible."""
    return not valid_actions(BookingStatus(status))
