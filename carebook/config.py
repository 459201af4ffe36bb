"""
Centralized configuration with environment variable overrides.

Booking policy windows, default visit times, and store collection names
are configurable here. Service-tier multipliers are deliberately not:
they live in ``carebook.scheduling.pricing`` as constants.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from carebook.logging_context import RequestIdFilter

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(request_id)s %(booking_id)s] %(levelname)s: %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class BookingConfig:
    """Booking policy settings."""

    min_notice_hours: int = _safe_int("MIN_NOTICE_HOURS", "24")
    confirmation_window_hours: int = _safe_int("CONFIRMATION_WINDOW_HOURS", "12")
    default_start_time: str = os.getenv("DEFAULT_START_TIME", "09:00")
    default_end_time: str = os.getenv("DEFAULT_END_TIME", "10:00")
    default_service_level: str = os.getenv("DEFAULT_SERVICE_LEVEL", "basic")
    merge_embedded_bookings: bool = _safe_bool("MERGE_EMBEDDED_BOOKINGS", "true")


@dataclass(frozen=True)
class StoreConfig:
    """Document store collection names."""

    workers_collection: str = os.getenv("WORKERS_COLLECTION", "psw_workers")
    clients_collection: str = os.getenv("CLIENTS_COLLECTION", "clients")
    bookings_collection: str = os.getenv("BOOKINGS_COLLECTION", "bookings")


@dataclass(frozen=True)
class SearchConfig:
    """Worker discovery settings."""

    slot_duration_minutes: int = _safe_int("SLOT_DURATION_MINUTES", "60")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    booking: BookingConfig = field(default_factory=BookingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "carebook")


def _validate_time(name: str, value: str) -> int:
    parts = value.split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"{name} must be HH:MM, got {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"{name} must be HH:MM, got {value!r}")
    return hours * 60 + minutes


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.booking.min_notice_hours < 0:
        raise ValueError(
            f"MIN_NOTICE_HOURS must be >= 0, got {config.booking.min_notice_hours}"
        )
    if config.booking.confirmation_window_hours < 1:
        raise ValueError(
            "CONFIRMATION_WINDOW_HOURS must be >= 1, "
            f"got {config.booking.confirmation_window_hours}"
        )

    start = _validate_time("DEFAULT_START_TIME", config.booking.default_start_time)
    end = _validate_time("DEFAULT_END_TIME", config.booking.default_end_time)
    if end <= start:
        raise ValueError(
            "DEFAULT_END_TIME must be after DEFAULT_START_TIME, got "
            f"{config.booking.default_start_time}-{config.booking.default_end_time}"
        )

    if config.booking.default_service_level not in ("basic", "enhanced", "premium"):
        raise ValueError(
            "DEFAULT_SERVICE_LEVEL must be basic, enhanced or premium, "
            f"got {config.booking.default_service_level!r}"
        )

    for env_name, value in [
        ("WORKERS_COLLECTION", config.store.workers_collection),
        ("CLIENTS_COLLECTION", config.store.clients_collection),
        ("BOOKINGS_COLLECTION", config.store.bookings_collection),
    ]:
        if not value.strip():
            raise ValueError(f"{env_name} must not be empty")

    if config.search.slot_duration_minutes < 1:
        raise ValueError(
            f"SLOT_DURATION_MINUTES must be >= 1, got {config.search.slot_duration_minutes}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
