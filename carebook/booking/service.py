"""
Booking submission and lifecycle service.

Every write goes through one store transaction: the occurrences of a
submission are validated against the store as seen inside the transaction
and written together, so either every occurrence is persisted or none is.

Usage:
    service = BookingService(store)
    result = await service.submit([{"clientId": "c1", "pswWorkerId": "w1", ...}])
    await service.accept(result.booking_ids[0])
"""

from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import ValidationError

from carebook.booking.lifecycle import BookingAction, find_transition
from carebook.booking.records import bookings_for_worker_on, load_worker, normalize_booking_document
from carebook.booking.validator import OccurrenceValidator
from carebook.config import BookingConfig, SearchConfig, StoreConfig, settings
from carebook.errors import (
    BookingError,
    InternalError,
    MalformedBookingError,
    NotFoundError,
    SlotConflictError,
)
from carebook.logging_context import get_request_logger, new_request_id
from carebook.schemas.booking_schema import BookingRequest, BookingStatus, SubmissionResult
from carebook.scheduling.availability import TimeRange, get_available_slots
from carebook.scheduling.dates import format_local_date, get_date_string, to_local_date
from carebook.scheduling.recurrence import expand_recurring_bookings
from carebook.store.base import Document, DocumentExistsError, DocumentStore, Filter, StoreError

logger = get_request_logger(__name__)

# Recomputed when a booking moves to a new slot.
_RESTAMPED_FIELDS = ("price", "requestedAt", "confirmationDeadline", "confirmedAt")


def _parse_requests(payload: Any) -> list[BookingRequest]:
    if not isinstance(payload, list) or not payload:
        raise MalformedBookingError("Bookings must be provided as a non-empty array")

    requests: list[BookingRequest] = []
    for index, item in enumerate(payload):
        if isinstance(item, BookingRequest):
            requests.append(item)
            continue
        if not isinstance(item, dict):
            raise MalformedBookingError(f"Booking at index {index} must be an object")
        try:
            requests.append(BookingRequest.model_validate(item))
        except ValidationError as exc:
            raise MalformedBookingError(
                f"Booking at index {index} is invalid",
                details={
                    "index": index,
                    "errors": exc.errors(include_url=False, include_context=False, include_input=False),
                },
                booking_id=item.get("id"),
            ) from exc
    return requests


class BookingService:
    """Validates, persists, and transitions bookings in a document store."""

    def __init__(
        self,
        store: DocumentStore,
        booking_config: BookingConfig = settings.booking,
        store_config: StoreConfig = settings.store,
        search_config: SearchConfig = settings.search,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._booking_config = booking_config
        self._store_config = store_config
        self._search_config = search_config
        self._clock = clock
        self._validator = OccurrenceValidator(booking_config, store_config)

    @property
    def _bookings(self) -> str:
        return self._store_config.bookings_collection

    # ------------------------------------------------------------------ #
    # Submission
    # ------------------------------------------------------------------ #

    async def submit(self, payload: Any) -> SubmissionResult:
        """
        Validate and persist a batch of booking requests.

        Recurring requests are expanded first; every occurrence must pass
        validation or nothing is written.

        Raises:
            BookingError: The first failing occurrence, or InternalError
                when the store itself fails.
        """
        request_id = new_request_id("SUB")
        now = self._clock()
        booking_ids: list[str] = []
        try:
            occurrences = expand_recurring_bookings(_parse_requests(payload))
            logger.debug("Submission %s has %d occurrences", request_id, len(occurrences))
            async with self._store.transaction() as txn:
                accepted: list[Document] = []
                requested: set[str] = set()
                for occurrence in occurrences:
                    prepared = await self._validator.validate(
                        txn, occurrence, now, pending=accepted, submitted_ids=requested
                    )
                    txn.create(self._bookings, prepared.doc_id, prepared.document)
                    accepted.append(prepared.document)
                    requested.add(occurrence.id)
                    booking_ids.append(prepared.doc_id)
        except BookingError as exc:
            logger.warning("Submission rejected (%s): %s", exc.code, exc.message)
            raise
        except DocumentExistsError as exc:
            logger.warning("Submission lost a race for %s", exc.doc_id)
            raise SlotConflictError(
                f"Booking {exc.doc_id} already exists", booking_id=exc.doc_id
            ) from exc
        except StoreError as exc:
            logger.error("Store failure while saving submission: %s", exc)
            raise InternalError("Failed to save bookings") from exc

        logger.info("Saved %d bookings", len(booking_ids))
        return SubmissionResult(count=len(booking_ids), booking_ids=booking_ids)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def accept(self, booking_id: str) -> Document:
        """Worker confirms a pending booking."""
        return await self._transition(booking_id, BookingAction.ACCEPT)

    async def decline(self, booking_id: str, reason: Optional[str] = None) -> Document:
        """Worker rejects a pending booking; its slot is released."""
        extra = {"declineReason": reason} if reason else None
        return await self._transition(booking_id, BookingAction.DECLINE, extra)

    async def cancel(self, booking_id: str, reason: Optional[str] = None) -> Document:
        extra = {"cancellationReason": reason} if reason else None
        return await self._transition(booking_id, BookingAction.CANCEL, extra)

    async def complete(self, booking_id: str) -> Document:
        return await self._transition(booking_id, BookingAction.COMPLETE)

    async def _transition(
        self,
        booking_id: str,
        action: BookingAction,
        extra: Optional[Document] = None,
    ) -> Document:
        new_request_id(action.value[:3].upper())
        now = self._clock()
        try:
            async with self._store.transaction() as txn:
                current = await self._require(txn, booking_id)
                transition = find_transition(
                    current.get("status") or BookingStatus.CONFIRMED.value, action, booking_id
                )
                fields: Document = {"status": transition.to_status.value, transition.stamp_field: now}
                fields.update(extra or {})
                txn.update(self._bookings, booking_id, fields)
        except StoreError as exc:
            logger.error("Store failure during %s of %s: %s", action.value, booking_id, exc)
            raise InternalError(f"Failed to {action.value} booking {booking_id}") from exc

        logger.info(
            "Booking %s: %s -> %s", booking_id, transition.from_status.value,
            transition.to_status.value,
        )
        return await self.get_booking(booking_id)

    async def reschedule(
        self,
        booking_id: str,
        date: Any,
        start_time: str,
        end_time: str,
    ) -> Document:
        """
        Move a booking to a new date and time.

        The move is validated like a new occurrence (location, duration, lead
        time, tier, availability, conflicts), ignoring the booking's own old
        slot. The booking is repriced and goes back to ``pending`` under the
        same id.
        """
        new_request_id("RSC")
        now = self._clock()
        try:
            async with self._store.transaction() as txn:
                current = await self._require(txn, booking_id)
                transition = find_transition(
                    current.get("status") or BookingStatus.CONFIRMED.value,
                    BookingAction.RESCHEDULE,
                    booking_id,
                )
                data = {k: v for k, v in current.items() if k not in _RESTAMPED_FIELDS}
                data.update(
                    id=booking_id,
                    date=date,
                    startTime=start_time,
                    endTime=end_time,
                    status=transition.to_status.value,
                )
                try:
                    request = BookingRequest.model_validate(data)
                except ValidationError as exc:
                    raise MalformedBookingError(
                        f"Booking {booking_id} cannot be rescheduled: {exc}", booking_id=booking_id
                    ) from exc
                prepared = await self._validator.validate(
                    txn, request, now, ignore_booking_id=booking_id
                )
                prepared.document[transition.stamp_field] = now
                txn.set(self._bookings, booking_id, prepared.document)
        except BookingError as exc:
            logger.warning("Reschedule of %s rejected (%s): %s", booking_id, exc.code, exc.message)
            raise
        except StoreError as exc:
            logger.error("Store failure while rescheduling %s: %s", booking_id, exc)
            raise InternalError(f"Failed to reschedule booking {booking_id}") from exc

        logger.info(
            "Booking %s rescheduled to %s %s-%s",
            booking_id, prepared.document["date"], start_time, end_time,
        )
        return await self.get_booking(booking_id)

    async def _require(self, reader, booking_id: str) -> Document:
        current = await reader.get(self._bookings, booking_id)
        if current is None:
            raise NotFoundError(f"Booking {booking_id} not found", booking_id=booking_id)
        return current

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get_booking(self, booking_id: str) -> Document:
        raw = await self._require(self._store, booking_id)
        return normalize_booking_document(raw) or raw

    async def list_bookings(
        self,
        worker_id: Optional[str] = None,
        client_id: Optional[str] = None,
        date: Any = None,
    ) -> list[Document]:
        """Bookings matching every given filter, ordered by date and start time."""
        filters: list[Filter] = []
        if worker_id:
            filters.append(("pswWorkerId", "==", worker_id))
        if client_id:
            filters.append(("clientId", "==", client_id))
        if date is not None:
            filters.append(("date", "==", get_date_string(date)))

        bookings = []
        for raw in await self._store.query(self._bookings, filters):
            booking = normalize_booking_document(raw)
            if booking is not None:
                bookings.append(booking)
        bookings.sort(key=lambda b: (b["date"], b["startTime"], b["id"]))
        return bookings

    async def available_slots(self, worker_id: str, date: Any) -> list[TimeRange]:
        """Free fixed-length slots for a worker on a date."""
        worker = await load_worker(self._store, worker_id, self._store_config)
        if worker is None:
            raise NotFoundError(f"PSW worker with ID {worker_id} not found")
        target = to_local_date(date)
        existing = await bookings_for_worker_on(
            self._store,
            worker,
            format_local_date(target),
            self._store_config,
            include_embedded=self._booking_config.merge_embedded_bookings,
        )
        return get_available_slots(
            worker, target, existing, self._search_config.slot_duration_minutes
        )
