"""Load workers, clients, and bookings from a JSON-style mapping into a store."""

import logging
from typing import Any

from carebook.config import StoreConfig, settings
from carebook.errors import MalformedBookingError
from carebook.scheduling.dates import get_date_string
from carebook.store.base import DocumentStore

logger = logging.getLogger(__name__)


async def load_seed(
    store: DocumentStore,
    data: dict[str, list[dict[str, Any]]],
    store_config: StoreConfig = settings.store,
) -> dict[str, int]:
    """Write seed records in one transaction and return per-collection counts.

    Expected keys: ``workers``, ``clients``, ``bookings``; each record needs
    an ``id``. Booking dates are normalized to ``YYYY-MM-DD``.
    """
    targets = {
        "workers": store_config.workers_collection,
        "clients": store_config.clients_collection,
        "bookings": store_config.bookings_collection,
    }
    counts = {key: 0 for key in targets}

    async with store.transaction() as txn:
        for key, collection in targets.items():
            for record in data.get(key, []):
                doc_id = record.get("id")
                if not doc_id:
                    raise MalformedBookingError(f"Seed {key} record is missing an id")
                document = dict(record)
                if key == "bookings" and document.get("date") is not None:
                    document["date"] = get_date_string(document["date"])
                txn.set(collection, doc_id, document)
                counts[key] += 1

    logger.info(
        "Seeded %d workers, %d clients, %d bookings",
        counts["workers"], counts["clients"], counts["bookings"],
    )
    return counts
