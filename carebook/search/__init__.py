from carebook.search.engine import (
    WorkerMatch,
    discover_workers,
    parse_search_query,
    search_workers,
)

__all__ = ["search_workers", "parse_search_query", "discover_workers", "WorkerMatch"]
