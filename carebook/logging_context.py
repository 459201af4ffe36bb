"""Submission and occurrence context for log records.

Every booking submission and lifecycle action runs under a request ID.
While a single occurrence is validated, its booking ID is also held in
context, so a rejection in the log stream names both the submission and
the occurrence that caused it, even when submissions interleave.

Usage:
    from carebook.logging_context import booking_context, get_request_logger, new_request_id

    logger = get_request_logger(__name__)
    new_request_id("SUB")
    with booking_context("2030-01-07_10-00_w1"):
        logger.info("Checking conflicts")  # → [SUB-1a2b3c4d 2030-01-07_10-00_w1] Checking conflicts
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

NO_REQUEST_ID = "NO_REQUEST_ID"
NO_BOOKING_ID = "-"

_request_id: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST_ID)
_booking_id: ContextVar[str] = ContextVar("booking_id", default=NO_BOOKING_ID)


def set_request_id(request_id: str) -> None:
    """Set the submission ID for the current async context."""
    _request_id.set(request_id)


def get_request_id() -> str:
    return _request_id.get()


def new_request_id(prefix: str = "SUB") -> str:
    """Generate and install a fresh ID, e.g. ``SUB-1a2b3c4d`` or ``RSC-...``."""
    request_id = f"{prefix}-{uuid.uuid4().hex[:8]}"
    set_request_id(request_id)
    return request_id


def get_booking_id() -> str:
    """Booking ID of the occurrence being processed, or ``-`` outside one."""
    return _booking_id.get()


@contextmanager
def booking_context(booking_id: Optional[str]) -> Iterator[str]:
    """Tag log records with an occurrence's booking ID for the block's duration."""
    value = booking_id or NO_BOOKING_ID
    token = _booking_id.set(value)
    try:
        yield value
    finally:
        _booking_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Injects request_id and booking_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        record.booking_id = _booking_id.get()  # type: ignore[attr-defined]
        return True


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger with the RequestIdFilter attached.

    Formatters can then use ``%(request_id)s`` and ``%(booking_id)s``.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestIdFilter) for f in logger.filters):
        logger.addFilter(RequestIdFilter())
    return logger
