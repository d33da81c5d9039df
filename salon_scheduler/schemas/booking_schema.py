"""Booking models, requests and customer-facing views."""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from salon_scheduler.utils import generate_manage_token


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Only these statuses hold their interval on the calendar.
OCCUPYING_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)
TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Booking(BaseModel):
    """A stored booking row."""

    id: str
    service_id: str
    date: dt.date
    start_time: str
    end_time: str
    # Service preparation minutes held after end_time, snapshotted at booking time.
    preparation_time: int = Field(default=0, ge=0)
    status: BookingStatus = BookingStatus.CONFIRMED
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    promo_code: Optional[str] = None
    is_system_booking: bool = False
    system_action_day: Optional[int] = Field(default=None, ge=1, le=4)
    calendar_event_id: Optional[str] = None
    manage_token: str = Field(default_factory=generate_manage_token)
    created_at: dt.datetime = Field(default_factory=_utcnow)

    @property
    def occupies(self) -> bool:
        return self.status in OCCUPYING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class CreateBookingRequest(BaseModel):
    """Validated customer booking request."""

    service_id: str
    date: dt.date
    start_time: str
    customer_name: str = Field(min_length=1)
    customer_phone: str = Field(min_length=1)
    customer_email: Optional[str] = None
    promo_code: Optional[str] = None

    @field_validator("customer_name", "customer_phone", "start_time")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("customer_email", "promo_code")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class ManageBookingView(BaseModel):
    """What a customer sees behind their manage link."""

    id: str
    service_name: str
    date: dt.date
    start_time: str
    end_time: str
    status: BookingStatus
    customer_name: str
    cancel_hours_before: int
    can_modify: bool
