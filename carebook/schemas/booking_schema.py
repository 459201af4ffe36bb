"""Booking request, recurrence, and submission result models."""

import datetime as dt
from enum import Enum
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DateInput = Union[dt.datetime, dt.date, str]


class ServiceLevel(str, Enum):
    """Pricing/quality tier of a visit."""
    BASIC = "basic"
    ENHANCED = "enhanced"
    PREMIUM = "premium"


class BookingStatus(str, Enum):
    """Lifecycle status of a persisted booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


# Statuses that no longer hold their time range.
RELEASED_STATUSES = frozenset({BookingStatus.CANCELLED.value, BookingStatus.REJECTED.value})


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class RecurringPattern(BaseModel):
    """Recurrence descriptor carried only by a seed request."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    frequency: RecurrenceFrequency
    start_date: Optional[DateInput] = Field(default=None, alias="startDate")
    end_date: Optional[DateInput] = Field(default=None, alias="endDate")
    days_of_week: Optional[list[int]] = Field(default=None, alias="daysOfWeek")

    @field_validator("days_of_week")
    @classmethod
    def _check_days(cls, value: Optional[list[int]]) -> Optional[list[int]]:
        if value is not None:
            for day in value:
                if not 0 <= day <= 6:
                    raise ValueError(f"daysOfWeek entries must be 0-6, got {day}")
        return value


class BookingRequest(BaseModel):
    """One raw booking request as submitted by a client.

    Unknown keys (``clientName``, ``pswWorkerName``, ...) are kept and
    written through to the persisted document.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        extra="allow",
    )

    id: Optional[str] = None
    client_id: Optional[str] = Field(default=None, alias="clientId")
    worker_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("pswWorkerId", "workerId", "userId", "worker_id"),
        serialization_alias="pswWorkerId",
    )
    date: Optional[DateInput] = None
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")
    service_level: Optional[ServiceLevel] = Field(default=None, alias="serviceLevel")
    status: Optional[BookingStatus] = None
    recurring_pattern: Optional[RecurringPattern] = Field(default=None, alias="recurringPattern")
    price: Optional[float] = None
    created_at: Optional[dt.datetime] = Field(default=None, alias="createdAt")
    requested_at: Optional[dt.datetime] = Field(default=None, alias="requestedAt")
    confirmation_deadline: Optional[dt.datetime] = Field(
        default=None, alias="confirmationDeadline"
    )
    confirmed_at: Optional[dt.datetime] = Field(default=None, alias="confirmedAt")

    def to_document(self) -> dict:
        """Dump to wire-named fields, dropping unset values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SubmissionResult(BaseModel):
    """Outcome of a successful submission."""
    count: int
    booking_ids: list[str] = Field(default_factory=list)
