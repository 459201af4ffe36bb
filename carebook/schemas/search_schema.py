"""Worker discovery filter model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from carebook.schemas.booking_schema import ServiceLevel


class SortKey(str, Enum):
    RATE = "rate"
    NAME = "name"
    LOCATION = "location"


class WorkerSearchFilters(BaseModel):
    """Discovery filters. Everything is optional; unset filters match all workers."""
    keyword: Optional[str] = None
    min_rate: Optional[float] = None
    max_rate: Optional[float] = None
    location: Optional[str] = None
    specialty: Optional[str] = None
    service_level: Optional[ServiceLevel] = None
    client_location: Optional[str] = None
    match_client_city_only: bool = False
    available_days_of_week: list[int] = Field(default_factory=list)
    sort_by: Optional[SortKey] = None
