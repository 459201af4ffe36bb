"""Shared test fixtures and helpers."""

from datetime import datetime
from typing import Any, Optional

import pytest

from carebook.booking.service import BookingService
from carebook.config import settings
from carebook.store.memory import InMemoryDocumentStore
from carebook.store.seed import load_seed

# Tuesday morning; every booking date below is comfortably past the notice window.
NOW = datetime(2030, 1, 1, 9, 0)
MONDAY = "2030-01-07"
TUESDAY = "2030-01-08"

WORKERS = settings.store.workers_collection
CLIENTS = settings.store.clients_collection
BOOKINGS = settings.store.bookings_collection


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def service(store):
    return BookingService(store, clock=lambda: NOW)


def make_worker(
    worker_id: str = "w1",
    first_name: str = "Anna",
    last_name: str = "Kowalski",
    location: str = "Toronto",
    hourly_rate: float = 20.0,
    availability: Optional[list[dict]] = None,
    service_levels: Optional[list[str]] = None,
    specialties: Optional[list[str]] = None,
    bookings: Optional[list[dict]] = None,
) -> dict[str, Any]:
    """Worker record available Mondays 08:00-17:00 unless told otherwise."""
    worker = {
        "id": worker_id,
        "firstName": first_name,
        "lastName": last_name,
        "location": location,
        "hourlyRate": hourly_rate,
        "availability": availability
        if availability is not None
        else [{"dayOfWeek": 1, "startTime": "08:00", "endTime": "17:00"}],
        "specialties": specialties or [],
        "bookings": bookings or [],
    }
    if service_levels is not None:
        worker["serviceLevels"] = service_levels
    return worker


def make_client(client_id: str = "c1", location: str = "Toronto") -> dict[str, Any]:
    return {"id": client_id, "firstName": "Dana", "lastName": "Li", "location": location}


def make_booking(
    booking_id: str = "b1",
    worker_id: str = "w1",
    client_id: str = "c1",
    date: Any = MONDAY,
    start_time: str = "10:00",
    end_time: str = "11:00",
    **extra: Any,
) -> dict[str, Any]:
    """Booking request payload item."""
    booking = {
        "id": booking_id,
        "pswWorkerId": worker_id,
        "clientId": client_id,
        "date": date,
        "startTime": start_time,
        "endTime": end_time,
    }
    booking.update(extra)
    return booking


async def seed(
    store: InMemoryDocumentStore,
    workers: Optional[list[dict]] = None,
    clients: Optional[list[dict]] = None,
    bookings: Optional[list[dict]] = None,
) -> None:
    """Seed a store with one Toronto worker and client by default."""
    await load_seed(
        store,
        {
            "workers": workers if workers is not None else [make_worker()],
            "clients": clients if clients is not None else [make_client()],
            "bookings": bookings or [],
        },
    )
