"""Worker, client, and availability models."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from carebook.schemas.booking_schema import DateInput, ServiceLevel


class DateRange(BaseModel):
    """Inclusive validity range of an availability window. Either end may be open."""
    start: Optional[DateInput] = None
    end: Optional[DateInput] = None


class AvailabilityWindow(BaseModel):
    """A weekly working window. 0 = Sunday .. 6 = Saturday."""

    model_config = ConfigDict(populate_by_name=True)

    day_of_week: int = Field(alias="dayOfWeek", ge=0, le=6)
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    date_range: Optional[DateRange] = Field(default=None, alias="dateRange")


class Worker(BaseModel):
    """PSW directory record."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, extra="allow")

    id: str
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    location: str = ""
    hourly_rate: float = Field(default=0.0, alias="hourlyRate")
    availability: list[AvailabilityWindow] = Field(default_factory=list)
    service_levels: Optional[list[ServiceLevel]] = Field(default=None, alias="serviceLevels")
    specialties: list[str] = Field(default_factory=list)
    age: Optional[int] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    # Legacy denormalized copy of the worker's bookings.
    bookings: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("availability", "specialties", "bookings", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        return self.full_name or "Worker"

    def offers(self, service_level: str) -> bool:
        """A worker with no declared tiers offers every tier."""
        if self.service_levels is None:
            return True
        return service_level in self.service_levels


class Client(BaseModel):
    """Client directory record. ``location`` may be a full street address."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    location: str = ""
    age: Optional[int] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
