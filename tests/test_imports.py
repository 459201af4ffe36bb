"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestPackageReExports:
    def test_booking_package(self):
        from carebook.booking import BookingAction, BookingService, OccurrenceValidator
        assert BookingAction.ACCEPT == "accept"
        assert BookingService is not None
        assert OccurrenceValidator is not None

    def test_scheduling_package(self):
        from carebook.scheduling import calculate_price, check_availability, to_local_date
        assert calculate_price(10, "basic", 60) == 10.0
        assert callable(check_availability)
        assert callable(to_local_date)

    def test_search_package(self):
        from carebook.search import discover_workers, parse_search_query, search_workers
        assert callable(discover_workers)
        assert parse_search_query({}).sort_by is None
        assert search_workers([], parse_search_query({})) == []

    def test_store_package(self):
        from carebook.store import DocumentStore, InMemoryDocumentStore, load_seed
        assert issubclass(InMemoryDocumentStore, DocumentStore)
        assert callable(load_seed)


class TestErrorHierarchy:
    def test_policy_errors_are_conflicts(self):
        from carebook.errors import (
            InsufficientNoticeError,
            LocationMismatchError,
            PolicyViolationError,
            SlotConflictError,
        )
        for cls in (InsufficientNoticeError, LocationMismatchError, SlotConflictError):
            assert issubclass(cls, PolicyViolationError)
            assert cls.status_code == 409

    def test_invalid_format_is_value_error(self):
        from carebook.errors import BookingError, InvalidFormatError
        assert issubclass(InvalidFormatError, ValueError)
        assert issubclass(InvalidFormatError, BookingError)

    def test_to_dict(self):
        from carebook.errors import SlotConflictError
        err = SlotConflictError("taken", details={"conflictStart": "10:00"}, booking_id="b1")
        assert err.to_dict() == {
            "error": "taken",
            "code": "slot_conflict",
            "details": {"conflictStart": "10:00"},
            "bookingId": "b1",
        }

    def test_to_dict_omits_empty_fields(self):
        from carebook.errors import InternalError
        assert InternalError("boom").to_dict() == {"error": "boom", "code": "internal_error"}


class TestLoggingContext:
    def test_new_request_id_is_installed(self):
        from carebook.logging_context import get_request_id, new_request_id
        request_id = new_request_id("SUB")
        assert request_id.startswith("SUB-")
        assert len(request_id) == len("SUB-") + 8
        assert get_request_id() == request_id

    def test_filter_adds_request_id(self):
        import logging

        from carebook.logging_context import RequestIdFilter, set_request_id
        set_request_id("SUB-test")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestIdFilter().filter(record)
        assert record.request_id == "SUB-test"

    def test_booking_context_is_scoped(self):
        from carebook.logging_context import NO_BOOKING_ID, booking_context, get_booking_id
        assert get_booking_id() == NO_BOOKING_ID
        with booking_context("2030-01-07_10-00_w1") as booking_id:
            assert booking_id == "2030-01-07_10-00_w1"
            assert get_booking_id() == "2030-01-07_10-00_w1"
        assert get_booking_id() == NO_BOOKING_ID

    def test_filter_adds_booking_id(self):
        import logging

        from carebook.logging_context import RequestIdFilter, booking_context
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        with booking_context("b1"):
            RequestIdFilter().filter(record)
        assert record.booking_id == "b1"
