"""Shared utilities used across the booking engine."""

import re
from typing import Optional

_STREET_NUMBER = re.compile(r"^\d")


def normalize_city(value: Optional[str]) -> str:
    """Reduce a city or street address to a comparable, lower-cased city key.

    A leading street-address segment (one that starts with a digit) is
    dropped so a client's full address compares equal to a worker's city.

    Examples:
        >>> normalize_city("  Toronto ")
        'toronto'
        >>> normalize_city("12 King St W, Toronto")
        'toronto'
        >>> normalize_city("Ottawa, ON")
        'ottawa, on'
    """
    if not value:
        return ""
    parts = [part.strip() for part in value.split(",") if part.strip()]
    if not parts:
        return value.strip().lower()
    if _STREET_NUMBER.match(parts[0]) and len(parts) > 1:
        parts = parts[1:]
    return ", ".join(parts).lower()


def same_city(first: Optional[str], second: Optional[str]) -> bool:
    """True when both locations are present and normalize to the same city."""
    first_city = normalize_city(first)
    return bool(first_city) and first_city == normalize_city(second)
