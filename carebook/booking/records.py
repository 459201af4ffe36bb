"""
Worker, client, and booking record access.

Functions here accept anything with the store's ``get``/``query`` coroutines,
so the same code reads committed data directly or inside a transaction.
"""

import logging
from datetime import datetime
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from carebook.config import StoreConfig
from carebook.errors import InternalError, InvalidFormatError
from carebook.schemas.booking_schema import BookingStatus
from carebook.schemas.worker_schema import Client, Worker
from carebook.scheduling.dates import get_date_string
from carebook.store.base import Document, Filter

logger = logging.getLogger(__name__)

# Legacy booking copies may lack times; these match the historical defaults.
FALLBACK_START_TIME = "09:00"
FALLBACK_END_TIME = "10:00"


class RecordReader(Protocol):
    async def get(self, collection: str, doc_id: str) -> Optional[Document]: ...

    async def query(self, collection: str, filters: list[Filter]) -> list[Document]: ...


async def load_worker(reader: RecordReader, worker_id: str, config: StoreConfig) -> Optional[Worker]:
    """Fetch and parse a worker record, or None if absent."""
    raw = await reader.get(config.workers_collection, worker_id)
    if raw is None:
        return None
    try:
        return Worker.model_validate(raw)
    except ValidationError as exc:
        raise InternalError(f"Worker record {worker_id} is invalid: {exc}") from exc


async def load_client(reader: RecordReader, client_id: str, config: StoreConfig) -> Optional[Client]:
    """Fetch and parse a client record, or None if absent."""
    raw = await reader.get(config.clients_collection, client_id)
    if raw is None:
        return None
    try:
        return Client.model_validate(raw)
    except ValidationError as exc:
        raise InternalError(f"Client record {client_id} is invalid: {exc}") from exc


def _as_datetime(value: Any) -> Any:
    """Timestamps come back either as datetime or as ISO strings."""
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


def normalize_booking_document(raw: Document, worker_id: Optional[str] = None) -> Optional[Document]:
    """Coerce a stored booking into canonical shape.

    ``date`` becomes ``YYYY-MM-DD``, times and status get their historical
    defaults, timestamp fields become ``datetime``. Returns None for records
    whose date cannot be read, since they cannot be placed on a calendar.
    """
    if raw.get("date") is None:
        return None
    try:
        day = get_date_string(raw["date"])
    except InvalidFormatError:
        logger.warning("Skipping booking %s with unreadable date %r", raw.get("id"), raw["date"])
        return None

    document = dict(raw)
    document["date"] = day
    document["startTime"] = raw.get("startTime") or FALLBACK_START_TIME
    document["endTime"] = raw.get("endTime") or FALLBACK_END_TIME
    document["status"] = raw.get("status") or BookingStatus.CONFIRMED.value
    owner = raw.get("pswWorkerId") or worker_id or "worker"
    document["id"] = (
        raw.get("id") or raw.get("bookingId") or f"{owner}_{document['startTime']}_{day}"
    )
    for key in ("createdAt", "requestedAt", "confirmationDeadline", "confirmedAt"):
        if key in document:
            document[key] = _as_datetime(document[key])
    return document


async def bookings_for_worker_on(
    reader: RecordReader,
    worker: Worker,
    day: str,
    config: StoreConfig,
    include_embedded: bool = True,
) -> list[Document]:
    """Bookings for one worker on one ``YYYY-MM-DD`` day.

    The booking collection is authoritative. The worker's embedded booking
    list is merged underneath it, so on an id clash the collection copy wins.
    """
    merged: dict[str, Document] = {}
    if include_embedded:
        for raw in worker.bookings:
            booking = normalize_booking_document(raw, worker.id)
            if booking is not None and booking["date"] == day:
                merged[booking["id"]] = booking

    rows = await reader.query(
        config.bookings_collection,
        [("pswWorkerId", "==", worker.id), ("date", "==", day)],
    )
    for raw in rows:
        booking = normalize_booking_document(raw, worker.id)
        if booking is not None:
            merged[booking["id"]] = booking
    return list(merged.values())
