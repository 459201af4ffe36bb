"""Tests for configuration loading and validation."""

from dataclasses import replace

import pytest

from carebook.config import (
    AppConfig,
    BookingConfig,
    SearchConfig,
    StoreConfig,
    _safe_bool,
    _safe_int,
    _validate_config,
)


def _config(**booking_overrides) -> AppConfig:
    return AppConfig(booking=replace(BookingConfig(), **booking_overrides))


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_negative_notice(self):
        with pytest.raises(ValueError, match="MIN_NOTICE_HOURS"):
            _validate_config(_config(min_notice_hours=-1))

    def test_zero_confirmation_window(self):
        with pytest.raises(ValueError, match="CONFIRMATION_WINDOW_HOURS"):
            _validate_config(_config(confirmation_window_hours=0))

    def test_bad_default_time(self):
        with pytest.raises(ValueError, match="DEFAULT_START_TIME"):
            _validate_config(_config(default_start_time="9am"))

    def test_default_end_before_start(self):
        with pytest.raises(ValueError, match="DEFAULT_END_TIME must be after"):
            _validate_config(_config(default_start_time="10:00", default_end_time="09:00"))

    def test_unknown_default_tier(self):
        with pytest.raises(ValueError, match="DEFAULT_SERVICE_LEVEL"):
            _validate_config(_config(default_service_level="gold"))

    def test_empty_collection_name(self):
        config = AppConfig(store=replace(StoreConfig(), bookings_collection=" "))
        with pytest.raises(ValueError, match="BOOKINGS_COLLECTION"):
            _validate_config(config)

    def test_zero_slot_duration(self):
        config = AppConfig(search=replace(SearchConfig(), slot_duration_minutes=0))
        with pytest.raises(ValueError, match="SLOT_DURATION_MINUTES"):
            _validate_config(config)


class TestEnvParsing:
    def test_safe_int_reads_env(self, monkeypatch):
        monkeypatch.setenv("CAREBOOK_TEST_INT", "36")
        assert _safe_int("CAREBOOK_TEST_INT", "24") == 36

    def test_safe_int_default(self, monkeypatch):
        monkeypatch.delenv("CAREBOOK_TEST_INT", raising=False)
        assert _safe_int("CAREBOOK_TEST_INT", "24") == 24

    def test_safe_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("CAREBOOK_TEST_INT", "lots")
        with pytest.raises(ValueError, match="CAREBOOK_TEST_INT"):
            _safe_int("CAREBOOK_TEST_INT", "24")

    @pytest.mark.parametrize("raw,expected", [("true", True), ("Yes", True), ("0", False), ("off", False)])
    def test_safe_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("CAREBOOK_TEST_FLAG", raw)
        assert _safe_bool("CAREBOOK_TEST_FLAG", "true") is expected

    def test_safe_bool_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("CAREBOOK_TEST_FLAG", "maybe")
        with pytest.raises(ValueError, match="CAREBOOK_TEST_FLAG"):
            _safe_bool("CAREBOOK_TEST_FLAG", "true")
