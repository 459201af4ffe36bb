"""
Console entry point for the booking engine.

Loads a seed file (workers, clients, bookings) into an in-memory store and
runs one command against it. Nothing is persisted between runs.

Usage:
    python main.py book data/sample_seed.json bookings.json
    python main.py search data/sample_seed.json minRate=20 sortBy=rate
    python main.py search data/sample_seed.json --date 2030-01-07 location=toronto
    python main.py slots data/sample_seed.json w-anna 2030-01-07
"""

import argparse
import asyncio
import json
import sys
from typing import Any

from carebook.booking import BookingService
from carebook.config import settings
from carebook.errors import BookingError
from carebook.search import discover_workers, parse_search_query
from carebook.store import InMemoryDocumentStore, load_seed


GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def _read_json(path: str) -> Any:
    with open(path, encoding="utf-8") as handle:
        return json.load(handle)


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, default=str))


def _parse_params(pairs: list[str]) -> dict[str, str]:
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise SystemExit(f"Search parameters must look like key=value, got {pair!r}")
        params[key] = value
    return params


async def _seeded_store(seed_path: str) -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    await load_seed(store, _read_json(seed_path), settings.store)
    return store


async def _book(args: argparse.Namespace) -> None:
    store = await _seeded_store(args.seed)
    service = BookingService(store)
    result = await service.submit(_read_json(args.bookings))
    print(f"{GREEN}Saved {result.count} booking(s){RESET}")
    _print_json(await service.list_bookings())


async def _search(args: argparse.Namespace) -> None:
    store = await _seeded_store(args.seed)
    filters = parse_search_query(_parse_params(args.params))
    matches = await discover_workers(store, filters, on_date=args.date)
    _print_json({"total": len(matches), "workers": [m.to_dict() for m in matches]})


async def _slots(args: argparse.Namespace) -> None:
    store = await _seeded_store(args.seed)
    slots = await BookingService(store).available_slots(args.worker_id, args.date)
    _print_json([{"startTime": s.start, "endTime": s.end} for s in slots])


def main() -> None:
    parser = argparse.ArgumentParser(description=f"{settings.app_name} booking console")
    commands = parser.add_subparsers(dest="command", required=True)

    book = commands.add_parser("book", help="Submit a bookings payload against a seed")
    book.add_argument("seed", help="JSON file with workers, clients and bookings")
    book.add_argument("bookings", help="JSON array of booking requests")
    book.set_defaults(handler=_book)

    search = commands.add_parser("search", help="Search the worker directory")
    search.add_argument("seed")
    search.add_argument("params", nargs="*", help="Filters as key=value (e.g. minRate=20)")
    search.add_argument("--date", default=None, help="Attach free slots for YYYY-MM-DD")
    search.set_defaults(handler=_search)

    slots = commands.add_parser("slots", help="Free slots for one worker on a date")
    slots.add_argument("seed")
    slots.add_argument("worker_id")
    slots.add_argument("date")
    slots.set_defaults(handler=_slots)

    args = parser.parse_args()
    try:
        asyncio.run(args.handler(args))
    except BookingError as exc:
        print(f"{RED}[{exc.status_code}] {exc.message}{RESET}", file=sys.stderr)
        _print_json(exc.to_dict())
        sys.exit(1)


if __name__ == "__main__":
    main()
