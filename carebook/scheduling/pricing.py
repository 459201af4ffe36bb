"""Visit pricing: hourly rate x service-tier multiplier x duration."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from carebook.errors import InvalidTimeRangeError, MalformedBookingError
from carebook.schemas.booking_schema import ServiceLevel

SERVICE_LEVEL_MULTIPLIERS: dict[ServiceLevel, Decimal] = {
    ServiceLevel.BASIC: Decimal("1.0"),
    ServiceLevel.ENHANCED: Decimal("1.2"),
    ServiceLevel.PREMIUM: Decimal("1.4"),
}

_CENTS = Decimal("0.01")


def calculate_price(
    hourly_rate: float,
    service_level: Union[ServiceLevel, str],
    duration_minutes: int,
) -> float:
    """Price of a visit rounded half-up to cents.

    Raises:
        InvalidTimeRangeError: If the duration is not strictly positive.
        MalformedBookingError: If the service level is unknown.
    """
    if duration_minutes <= 0:
        raise InvalidTimeRangeError(f"Duration must be positive, got {duration_minutes} minutes")
    try:
        multiplier = SERVICE_LEVEL_MULTIPLIERS[ServiceLevel(service_level)]
    except ValueError:
        raise MalformedBookingError(f"Unknown service level: {service_level!r}") from None

    amount = Decimal(str(hourly_rate)) * multiplier * Decimal(duration_minutes) / Decimal(60)
    return float(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))
