"""Tests for date helpers, recurrence expansion, availability, and pricing."""

import time
from datetime import date, datetime

import pytest

from carebook.errors import InvalidFormatError, InvalidTimeRangeError, MalformedBookingError
from carebook.schemas.booking_schema import BookingRequest
from carebook.schemas.worker_schema import Worker
from carebook.scheduling.availability import (
    AvailabilityIssue,
    TimeRange,
    check_availability,
    get_available_slots,
    get_available_time_windows,
)
from carebook.scheduling.dates import (
    day_of_week,
    format_local_date,
    get_date_string,
    is_same_day,
    minutes_to_time,
    time_to_minutes,
    to_local_date,
)
from carebook.scheduling.pricing import calculate_price
from carebook.scheduling.recurrence import (
    expand_recurring_bookings,
    generate_occurrences,
    occurrence_id,
    slot_from_id,
)
from tests.conftest import make_worker

MONDAY = date(2025, 1, 6)


@pytest.fixture(params=["America/Los_Angeles", "Pacific/Kiritimati", "UTC"])
def process_tz(request, monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", request.param)
    time.tzset()
    yield request.param
    monkeypatch.undo()
    time.tzset()


def _request(pattern=None, **overrides) -> BookingRequest:
    data = {
        "id": "seed",
        "pswWorkerId": "w1",
        "clientId": "c1",
        "date": "2025-01-06",
        "startTime": "10:00",
        "endTime": "11:00",
    }
    data.update(overrides)
    if pattern is not None:
        data["recurringPattern"] = pattern
    return BookingRequest.model_validate(data)


def _booking(start: str, end: str, status: str = "confirmed", day: str = "2025-01-06", **extra):
    return {"id": f"{day}_{start}", "date": day, "startTime": start, "endTime": end,
            "status": status, **extra}


class TestDates:
    def test_date_string_keeps_calendar_day(self):
        assert to_local_date("2025-03-15") == date(2025, 3, 15)
        assert to_local_date("2025-03-15T23:30:00Z") == date(2025, 3, 15)

    @pytest.mark.parametrize("raw,expected", [
        ("2025-03-15", date(2025, 3, 15)),
        ("2025-12-31", date(2025, 12, 31)),
        ("2025-03-15T00:30:00Z", date(2025, 3, 15)),
        ("2025-03-15T23:30:00-05:00", date(2025, 3, 15)),
        ("2025-03-15T12:00:00.000+14:00", date(2025, 3, 15)),
    ])
    def test_normalization_ignores_process_timezone(self, process_tz, raw, expected):
        assert to_local_date(raw) == expected
        assert to_local_date(format_local_date(expected)) == expected
        assert get_date_string(get_date_string(raw)) == format_local_date(expected)

    def test_naive_datetime_and_date(self):
        assert get_date_string(datetime(2025, 3, 5, 22, 0)) == "2025-03-05"
        assert get_date_string(date(2025, 3, 5)) == "2025-03-05"

    @pytest.mark.parametrize("value", ["2025-02-30", "tomorrow", "", 20250305])
    def test_unreadable_dates(self, value):
        with pytest.raises(InvalidFormatError):
            to_local_date(value)

    def test_is_same_day(self):
        assert is_same_day("2025-03-05", date(2025, 3, 5))
        assert not is_same_day("2025-03-05", "2025-03-06")

    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week(date(2025, 1, 5)) == 0
        assert day_of_week(MONDAY) == 1
        assert day_of_week(date(2025, 1, 11)) == 6

    @pytest.mark.parametrize("value,minutes", [("09:30", 570), ("9:05", 545), ("00:00", 0), ("23:59", 1439)])
    def test_time_to_minutes(self, value, minutes):
        assert time_to_minutes(value) == minutes

    @pytest.mark.parametrize("value", ["24:00", "10:60", "10am", "10", ""])
    def test_bad_times(self, value):
        with pytest.raises(InvalidFormatError):
            time_to_minutes(value)

    def test_minutes_to_time(self):
        assert minutes_to_time(570) == "09:30"
        with pytest.raises(InvalidFormatError):
            minutes_to_time(1440)


class TestRecurrence:
    def test_slot_is_read_back_from_occurrence_id(self):
        doc_id = occurrence_id(MONDAY, "10:30", "w1")
        assert slot_from_id(doc_id) == ("2025-01-06", "10:30")
        assert slot_from_id(f"{doc_id}_r2") == ("2025-01-06", "10:30")
        assert slot_from_id("b1") is None

    def test_non_recurring_is_unchanged(self):
        request = _request()
        assert generate_occurrences(request) == [request]

    def test_weekly_on_mondays(self):
        occurrences = generate_occurrences(_request(
            {"frequency": "weekly", "startDate": "2025-01-06", "endDate": "2025-01-27",
             "daysOfWeek": [1]}
        ))
        assert [o.date for o in occurrences] == [
            "2025-01-06", "2025-01-13", "2025-01-20", "2025-01-27",
        ]
        assert occurrences[0].id == "2025-01-06_10-00_w1"
        assert all(o.recurring_pattern is None for o in occurrences)

    def test_weekly_several_days(self):
        occurrences = generate_occurrences(_request(
            {"frequency": "weekly", "startDate": "2025-01-06", "endDate": "2025-01-12",
             "daysOfWeek": [1, 3, 5]}
        ))
        assert [o.date for o in occurrences] == ["2025-01-06", "2025-01-08", "2025-01-10"]

    def test_biweekly_skips_alternate_weeks(self):
        occurrences = generate_occurrences(_request(
            {"frequency": "biweekly", "startDate": "2025-01-06", "endDate": "2025-02-03",
             "daysOfWeek": [1]}
        ))
        assert [o.date for o in occurrences] == ["2025-01-06", "2025-01-20", "2025-02-03"]

    def test_daily(self):
        occurrences = generate_occurrences(_request(
            {"frequency": "daily", "startDate": "2025-01-06", "endDate": "2025-01-08"}
        ))
        assert len(occurrences) == 3

    def test_monthly_clamps_without_drift(self):
        occurrences = generate_occurrences(_request(
            {"frequency": "monthly", "startDate": "2025-01-31", "endDate": "2025-04-30"},
            date="2025-01-31",
        ))
        assert [o.date for o in occurrences] == [
            "2025-01-31", "2025-02-28", "2025-03-31", "2025-04-30",
        ]

    def test_missing_end_date_yields_anchor_only(self):
        occurrences = generate_occurrences(_request({"frequency": "daily"}))
        assert [o.date for o in occurrences] == ["2025-01-06"]

    def test_end_before_start(self):
        with pytest.raises(MalformedBookingError) as exc_info:
            generate_occurrences(_request(
                {"frequency": "weekly", "startDate": "2025-01-06", "endDate": "2025-01-01"}
            ))
        assert exc_info.value.details == {"startDate": "2025-01-06", "endDate": "2025-01-01"}

    def test_expand_keeps_submission_order(self):
        requests = [
            _request({"frequency": "daily", "startDate": "2025-01-06", "endDate": "2025-01-07"}),
            _request(id="single", date="2025-01-02"),
        ]
        expanded = expand_recurring_bookings(requests)
        assert [o.id for o in expanded] == ["2025-01-06_10-00_w1", "2025-01-07_10-00_w1", "single"]

    def test_invalid_day_of_week_rejected_by_schema(self):
        with pytest.raises(ValueError):
            _request({"frequency": "weekly", "daysOfWeek": [7]})


class TestAvailability:
    @pytest.fixture
    def worker(self):
        return Worker.model_validate(make_worker())

    def test_inside_window_is_ok(self, worker):
        result = check_availability(worker, MONDAY, "10:00", "11:00", [])
        assert result.ok
        assert result.reason is None

    def test_no_window_that_day(self, worker):
        result = check_availability(worker, date(2025, 1, 7), "10:00", "11:00", [])
        assert result.reason == AvailabilityIssue.NOT_AVAILABLE_THIS_DAY
        assert result.message == "Anna Kowalski is not available on 2025-01-07"

    def test_past_end_of_window(self, worker):
        result = check_availability(worker, MONDAY, "16:30", "17:30", [])
        assert result.reason == AvailabilityIssue.OUTSIDE_WORKING_HOURS

    def test_overlap_reports_conflicting_range(self, worker):
        result = check_availability(worker, MONDAY, "10:30", "11:30", [_booking("10:00", "11:00")])
        assert result.reason == AvailabilityIssue.SLOT_CONFLICT
        assert result.conflict == TimeRange("10:00", "11:00")
        assert "10:00-11:00" in result.message

    def test_touching_boundaries_do_not_conflict(self, worker):
        existing = [_booking("09:00", "10:00"), _booking("11:00", "12:00")]
        assert check_availability(worker, MONDAY, "10:00", "11:00", existing).ok

    @pytest.mark.parametrize("status", ["cancelled", "rejected"])
    def test_released_bookings_are_ignored(self, worker, status):
        existing = [_booking("10:00", "11:00", status=status)]
        assert check_availability(worker, MONDAY, "10:00", "11:00", existing).ok

    def test_other_dates_are_ignored(self, worker):
        existing = [_booking("10:00", "11:00", day="2025-01-13")]
        assert check_availability(worker, MONDAY, "10:00", "11:00", existing).ok

    def test_date_range_limits_window(self):
        worker = Worker.model_validate(make_worker(availability=[
            {"dayOfWeek": 1, "startTime": "08:00", "endTime": "17:00",
             "dateRange": {"start": "2025-01-13"}},
        ]))
        result = check_availability(worker, MONDAY, "10:00", "11:00", [])
        assert result.reason == AvailabilityIssue.NOT_AVAILABLE_THIS_DAY
        assert check_availability(worker, date(2025, 1, 13), "10:00", "11:00", []).ok

    def test_slots_and_windows(self, worker):
        existing = [_booking("10:00", "11:30"), _booking("13:00", "14:00", status="cancelled")]
        slots = get_available_slots(worker, MONDAY, existing, slot_duration_minutes=120)
        assert slots == [
            TimeRange("08:00", "10:00"),
            TimeRange("12:00", "14:00"),
            TimeRange("14:00", "16:00"),
        ]
        windows = get_available_time_windows(worker, MONDAY, existing)
        assert windows == [TimeRange("08:00", "10:00"), TimeRange("11:30", "17:00")]


class TestPricing:
    def test_basic_hour(self):
        assert calculate_price(20, "basic", 60) == 20.0

    def test_enhanced_ninety_minutes(self):
        assert calculate_price(20, "enhanced", 90) == 36.0

    def test_rounds_half_up(self):
        assert calculate_price(25.5, "premium", 45) == 26.78

    def test_non_positive_duration(self):
        with pytest.raises(InvalidTimeRangeError):
            calculate_price(20, "basic", 0)

    def test_unknown_tier(self):
        with pytest.raises(MalformedBookingError):
            calculate_price(20, "gold", 60)
