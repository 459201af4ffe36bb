"""
Worker discovery: filtering, ranking, and per-date availability.

``search_workers`` is a pure function over an in-memory worker list.
``discover_workers`` loads the directory from a store, applies the search,
and optionally attaches each worker's free slots for a date.

Usage:
    filters = parse_search_query({"minRate": "20", "sortBy": "rate"})
    matches = search_workers(workers, filters)
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from carebook.booking.records import bookings_for_worker_on
from carebook.config import BookingConfig, SearchConfig, StoreConfig, settings
from carebook.errors import InternalError, InvalidFormatError
from carebook.schemas.search_schema import SortKey, WorkerSearchFilters
from carebook.schemas.worker_schema import Worker
from carebook.scheduling.availability import TimeRange, get_available_slots
from carebook.scheduling.dates import format_local_date, to_local_date
from carebook.store.base import DocumentStore
from carebook.utils import normalize_city

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no", ""}


@dataclass
class WorkerMatch:
    """A search hit, with free slots when a date was requested."""
    worker: Worker
    available_slots: Optional[list[TimeRange]] = None

    def to_dict(self) -> dict[str, Any]:
        body = self.worker.model_dump(by_alias=True, exclude={"bookings"})
        if self.available_slots is not None:
            body["availableSlots"] = [
                {"startTime": s.start, "endTime": s.end} for s in self.available_slots
            ]
        return body


def _matches_keyword(worker: Worker, keyword: str) -> bool:
    needle = keyword.lower()
    return (
        needle in worker.full_name.lower()
        or needle in worker.location.lower()
        or needle in " ".join(worker.specialties).lower()
    )


def _sort_key(sort_by: SortKey):
    if sort_by == SortKey.RATE:
        return lambda w: w.hourly_rate
    if sort_by == SortKey.NAME:
        return lambda w: w.full_name.casefold()
    return lambda w: w.location.casefold()


def search_workers(workers: list[Worker], filters: WorkerSearchFilters) -> list[Worker]:
    """Filter and order workers. All filters combine with AND.

    The input list is not modified. Without ``sort_by`` the input order is
    kept; sorting is stable, so ties also keep input order.
    """
    results = list(workers)

    if filters.keyword:
        results = [w for w in results if _matches_keyword(w, filters.keyword)]

    if filters.min_rate is not None:
        results = [w for w in results if w.hourly_rate >= filters.min_rate]
    if filters.max_rate is not None:
        results = [w for w in results if w.hourly_rate <= filters.max_rate]

    if filters.location:
        needle = filters.location.lower()
        results = [
            w for w in results
            if needle in w.location.lower() or needle in normalize_city(w.location)
        ]

    if filters.specialty:
        needle = filters.specialty.lower()
        results = [w for w in results if any(needle in s.lower() for s in w.specialties)]

    if filters.service_level:
        results = [w for w in results if w.offers(filters.service_level)]

    if filters.match_client_city_only and filters.client_location:
        client_city = normalize_city(filters.client_location)
        results = [w for w in results if normalize_city(w.location) == client_city]

    if filters.available_days_of_week:
        wanted = set(filters.available_days_of_week)
        results = [
            w for w in results if any(window.day_of_week in wanted for window in w.availability)
        ]

    if filters.sort_by:
        results.sort(key=_sort_key(SortKey(filters.sort_by)))

    return results


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise InvalidFormatError(
            f"{name} must be a number, got {raw!r}", details={name: raw}
        ) from None


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise InvalidFormatError(f"{name} must be true or false, got {raw!r}", details={name: raw})


def _parse_days(name: str, raw: str) -> list[int]:
    days = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit() or not 0 <= int(part) <= 6:
            raise InvalidFormatError(
                f"{name} must be a comma-separated list of days 0-6, got {raw!r}",
                details={name: raw},
            )
        days.append(int(part))
    return days


def parse_search_query(params: Mapping[str, str]) -> WorkerSearchFilters:
    """
    Build filters from query-string style parameters.

    Recognised keys: keyword, minRate, maxRate, location, specialty,
    serviceLevel, clientLocation, matchClientCityOnly,
    availableDaysOfWeek (or availableDays, comma separated), sortBy.
    Empty values are treated as absent.

    Raises:
        InvalidFormatError: A value cannot be parsed.
    """
    values: dict[str, Any] = {}
    for key, field_name in (
        ("keyword", "keyword"),
        ("location", "location"),
        ("specialty", "specialty"),
        ("clientLocation", "client_location"),
    ):
        if params.get(key):
            values[field_name] = params[key]

    for key, field_name in (("minRate", "min_rate"), ("maxRate", "max_rate")):
        if params.get(key):
            values[field_name] = _parse_float(key, params[key])

    if params.get("matchClientCityOnly") is not None:
        values["match_client_city_only"] = _parse_bool(
            "matchClientCityOnly", params["matchClientCityOnly"]
        )

    days_key = "availableDaysOfWeek" if params.get("availableDaysOfWeek") else "availableDays"
    if params.get(days_key):
        values["available_days_of_week"] = _parse_days(days_key, params[days_key])

    if params.get("serviceLevel"):
        values["service_level"] = params["serviceLevel"]
    if params.get("sortBy"):
        values["sort_by"] = params["sortBy"]

    try:
        return WorkerSearchFilters(**values)
    except ValidationError as exc:
        raise InvalidFormatError(
            "Invalid search parameters",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


async def discover_workers(
    store: DocumentStore,
    filters: WorkerSearchFilters,
    on_date: Any = None,
    store_config: StoreConfig = settings.store,
    search_config: SearchConfig = settings.search,
    booking_config: BookingConfig = settings.booking,
) -> list[WorkerMatch]:
    """
    Search the worker directory held in ``store``.

    When ``on_date`` is given each match carries its free slots for that
    date, computed against the booking collection (and the embedded booking
    cache when enabled).
    """
    workers = []
    for raw in await store.list_documents(store_config.workers_collection):
        try:
            workers.append(Worker.model_validate(raw))
        except ValidationError as exc:
            raise InternalError(f"Worker record {raw.get('id')} is invalid: {exc}") from exc

    matches = search_workers(workers, filters)
    logger.info("Worker search matched %d of %d workers", len(matches), len(workers))
    if on_date is None:
        return [WorkerMatch(worker) for worker in matches]

    target = to_local_date(on_date)
    day = format_local_date(target)
    results = []
    for worker in matches:
        existing = await bookings_for_worker_on(
            store, worker, day, store_config,
            include_embedded=booking_config.merge_embedded_bookings,
        )
        slots = get_available_slots(
            worker, target, existing, search_config.slot_duration_minutes
        )
        results.append(WorkerMatch(worker, slots))
    return results
