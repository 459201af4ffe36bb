"""
Per-occurrence booking validation.

Runs the ordered checks for a single occurrence and returns the document
that should be written. The first failing check raises; nothing here
writes to the store.

Check order:
    1. required fields          -> MalformedBookingError / InvalidFormatError
    2. worker and client exist  -> NotFoundError
    3. same city                -> LocationMismatchError
    4. end after start          -> InvalidTimeRangeError
    5. minimum notice           -> InsufficientNoticeError
    6. tier offered             -> TierNotOfferedError
    7. availability, conflicts  -> NotAvailableThisDayError /
                                   OutsideWorkingHoursError / SlotConflictError
    8. price
    9. bookkeeping stamps
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Collection, Iterable, Optional

from carebook.booking.records import (
    RecordReader,
    bookings_for_worker_on,
    load_client,
    load_worker,
)
from carebook.config import BookingConfig, StoreConfig
from carebook.errors import (
    InsufficientNoticeError,
    InvalidFormatError,
    InvalidTimeRangeError,
    LocationMismatchError,
    MalformedBookingError,
    NotAvailableThisDayError,
    NotFoundError,
    OutsideWorkingHoursError,
    SlotConflictError,
    TierNotOfferedError,
)
from carebook.logging_context import booking_context, get_request_logger
from carebook.schemas.booking_schema import RELEASED_STATUSES, BookingRequest, BookingStatus
from carebook.scheduling.availability import AvailabilityIssue, check_availability
from carebook.scheduling.dates import combine_local, format_local_date, time_to_minutes, to_local_date
from carebook.scheduling.pricing import calculate_price
from carebook.scheduling.recurrence import slot_from_id
from carebook.store.base import Document
from carebook.utils import same_city

logger = get_request_logger(__name__)

_AVAILABILITY_ERRORS = {
    AvailabilityIssue.NOT_AVAILABLE_THIS_DAY: NotAvailableThisDayError,
    AvailabilityIssue.OUTSIDE_WORKING_HOURS: OutsideWorkingHoursError,
    AvailabilityIssue.SLOT_CONFLICT: SlotConflictError,
}


@dataclass
class PreparedBooking:
    """A validated occurrence ready to be written."""
    doc_id: str
    document: Document


def to_naive_local(moment: datetime) -> datetime:
    """Server-local wall-clock time without tzinfo."""
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


class OccurrenceValidator:
    """Validates one booking occurrence against worker, client, and existing bookings."""

    def __init__(self, booking_config: BookingConfig, store_config: StoreConfig) -> None:
        self._booking = booking_config
        self._store = store_config

    async def validate(
        self,
        reader: RecordReader,
        request: BookingRequest,
        now: datetime,
        pending: Iterable[Document] = (),
        ignore_booking_id: Optional[str] = None,
        submitted_ids: Collection[str] = (),
    ) -> PreparedBooking:
        """
        Validate an occurrence and build its persisted document.

        Args:
            reader: Store or transaction to read records through.
            request: A single, already-expanded occurrence.
            now: Submission time.
            pending: Documents accepted earlier in the same submission.
            ignore_booking_id: Existing booking to leave out of the conflict
                set (the booking being rescheduled).
            submitted_ids: Requested ids of the occurrences in ``pending``,
                before any suffixing.
        """
        with booking_context(request.id):
            return await self._validate(reader, request, now, pending, ignore_booking_id, submitted_ids)

    async def _validate(
        self,
        reader: RecordReader,
        request: BookingRequest,
        now: datetime,
        pending: Iterable[Document],
        ignore_booking_id: Optional[str],
        submitted_ids: Collection[str],
    ) -> PreparedBooking:
        # 1. Structure
        booking_id = request.id
        if not booking_id:
            raise MalformedBookingError("Each booking must have an id field")
        if request.date is None:
            raise MalformedBookingError(
                f"Booking {booking_id} is missing a date field", booking_id=booking_id
            )
        if not request.worker_id:
            raise MalformedBookingError(
                f"Booking {booking_id} is missing worker ID", booking_id=booking_id
            )
        if not request.client_id:
            raise MalformedBookingError(
                f"Booking {booking_id} is missing client ID", booking_id=booking_id
            )
        try:
            local_date = to_local_date(request.date)
        except InvalidFormatError as exc:
            exc.booking_id = booking_id
            raise
        day = format_local_date(local_date)
        logger.debug("Validating booking %s for %s", booking_id, day)

        # 2. Records
        worker = await load_worker(reader, request.worker_id, self._store)
        if worker is None:
            raise NotFoundError(
                f"PSW worker with ID {request.worker_id} not found", booking_id=booking_id
            )
        client = await load_client(reader, request.client_id, self._store)
        if client is None:
            raise NotFoundError(
                f"Client with ID {request.client_id} not found", booking_id=booking_id
            )
        name = worker.display_name

        # 3. Location
        if not same_city(worker.location, client.location):
            raise LocationMismatchError(
                f"{name} is not available because they are located in "
                f"{worker.location or 'a different city'}. Clients can only book PSW "
                f"workers within {client.location or 'their own city'}.",
                details={
                    "workerLocation": worker.location or None,
                    "clientLocation": client.location or None,
                },
                booking_id=booking_id,
            )

        # 4. Duration
        start_time = request.start_time or self._booking.default_start_time
        end_time = request.end_time or self._booking.default_end_time
        duration = self._duration(start_time, end_time, booking_id)

        # 5. Lead time
        starts_at = combine_local(local_date, start_time)
        notice = starts_at - to_naive_local(now)
        if notice < timedelta(hours=self._booking.min_notice_hours):
            raise InsufficientNoticeError(
                f"Bookings must be requested at least {self._booking.min_notice_hours} "
                f"hours in advance (booking {booking_id} starts {day} {start_time}).",
                details={"startsAt": starts_at.isoformat(), "requestedAt": now.isoformat()},
                booking_id=booking_id,
            )

        # 6. Tier
        service_level = request.service_level or self._booking.default_service_level
        if not worker.offers(service_level):
            raise TierNotOfferedError(
                f"{name} does not offer the {service_level} service level.",
                details={"offered": worker.service_levels},
                booking_id=booking_id,
            )

        # 7. Availability and conflicts
        existing = await bookings_for_worker_on(
            reader, worker, day, self._store, include_embedded=self._booking.merge_embedded_bookings
        )
        existing = [b for b in existing if b["id"] != ignore_booking_id]
        pending = list(pending)
        same_worker_pending = [b for b in pending if b.get("pswWorkerId") == worker.id]
        if booking_id in submitted_ids:
            raise SlotConflictError(
                f"Booking {booking_id} appears more than once in this submission",
                booking_id=booking_id,
            )
        result = check_availability(
            worker, local_date, start_time, end_time, [*existing, *same_worker_pending]
        )
        if not result.ok:
            details = None
            if result.conflict is not None:
                details = {
                    "conflictStart": result.conflict.start,
                    "conflictEnd": result.conflict.end,
                    "conflictingBookingId": result.conflicting_booking_id,
                }
            raise _AVAILABILITY_ERRORS[result.reason](
                result.message, details=details, booking_id=booking_id
            )

        doc_id = booking_id
        if ignore_booking_id is None:
            doc_id = await self._free_document_id(reader, booking_id)

        # 8. Price
        price = request.price
        if price is None:
            price = calculate_price(worker.hourly_rate, service_level, duration)

        # 9. Bookkeeping
        requested_at = request.requested_at or now
        document = request.to_document()
        document.update(
            id=doc_id,
            pswWorkerId=worker.id,
            date=day,
            startTime=start_time,
            endTime=end_time,
            serviceLevel=service_level,
            price=price,
            status=request.status or BookingStatus.PENDING.value,
            createdAt=request.created_at or now,
            requestedAt=requested_at,
            confirmationDeadline=(
                request.confirmation_deadline
                or requested_at + timedelta(hours=self._booking.confirmation_window_hours)
            ),
        )
        document.pop("recurringPattern", None)
        return PreparedBooking(doc_id=doc_id, document=document)

    @staticmethod
    def _duration(start_time: str, end_time: str, booking_id: str) -> int:
        try:
            duration = time_to_minutes(end_time) - time_to_minutes(start_time)
        except InvalidFormatError as exc:
            exc.booking_id = booking_id
            raise
        if duration <= 0:
            raise InvalidTimeRangeError(
                f"Invalid time range for booking {booking_id}: {start_time}-{end_time}",
                details={"startTime": start_time, "endTime": end_time},
                booking_id=booking_id,
            )
        return duration

    async def _free_document_id(self, reader: RecordReader, booking_id: str) -> str:
        """The requested id, or a suffixed one when its holder has let the slot go.

        A released booking keeps its document, and so does a rescheduled one
        whose id still names the slot it moved away from. Rebooking that slot
        must not overwrite either.
        """
        candidate = booking_id
        attempt = 1
        while True:
            existing = await reader.get(self._store.bookings_collection, candidate)
            if existing is None:
                return candidate
            if self._holds_slot(candidate, existing):
                raise SlotConflictError(
                    f"Booking {candidate} already exists", booking_id=booking_id
                )
            attempt += 1
            candidate = f"{booking_id}_r{attempt}"

    @staticmethod
    def _holds_slot(doc_id: str, existing: Document) -> bool:
        if existing.get("status") in RELEASED_STATUSES:
            return False
        slot = slot_from_id(doc_id)
        if slot is None:
            return True
        return (existing.get("date"), existing.get("startTime")) == slot
