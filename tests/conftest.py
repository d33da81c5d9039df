"""Shared test fixtures and helpers."""

from datetime import date, datetime
from typing import Optional

import pytest

from salon_scheduler.booking.lifecycle import BookingManager
from salon_scheduler.notifications.calendar_sync import RecordingCalendarSync
from salon_scheduler.notifications.dispatcher import RecordingNotifier
from salon_scheduler.schemas.booking_schema import Booking, BookingStatus, CreateBookingRequest
from salon_scheduler.schemas.service_schema import Service
from salon_scheduler.schemas.settings_schema import SchedulingSettings
from salon_scheduler.store import InMemoryStore

# Monday 2026-10-19, 08:00 local time.
NOW = datetime(2026, 10, 19, 8, 0)
MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)

PHONE = "+37061234567"


@pytest.fixture
def settings():
    return SchedulingSettings()


@pytest.fixture
def store():
    store = InMemoryStore()
    store.save_service(make_service())
    store.save_service(make_service("colour", "Colouring", duration=120, sort_order=2))
    return store


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def calendar():
    return RecordingCalendarSync()


@pytest.fixture
def manager(store, settings, notifier, calendar):
    return BookingManager(
        store,
        settings=settings,
        notifier=notifier,
        calendar_sync=calendar,
        clock=lambda: NOW,
    )


def make_service(
    service_id: str = "cut",
    name: str = "Haircut",
    duration: int = 60,
    **kwargs,
) -> Service:
    """Helper to create a Service with sensible defaults."""
    kwargs.setdefault("sort_order", 1)
    return Service(id=service_id, name=name, duration=duration, **kwargs)


def make_booking(
    start_time: str = "10:00",
    end_time: str = "11:00",
    target: date = TUESDAY,
    status: BookingStatus = BookingStatus.CONFIRMED,
    booking_id: Optional[str] = None,
    **kwargs,
) -> Booking:
    """Helper to create a Booking without going through the manager."""
    kwargs.setdefault("service_id", "cut")
    kwargs.setdefault("customer_name", "Jane Doe")
    kwargs.setdefault("customer_phone", PHONE)
    return Booking(
        id=booking_id or f"BK-{start_time.replace(':', '')}-{target:%m%d}",
        date=target,
        start_time=start_time,
        end_time=end_time,
        status=status,
        **kwargs,
    )


def make_request(
    start_time: str = "10:00",
    target: date = TUESDAY,
    service_id: str = "cut",
    phone: str = PHONE,
    **kwargs,
) -> CreateBookingRequest:
    """Helper to create a customer booking request."""
    kwargs.setdefault("customer_name", "Jane Doe")
    kwargs.setdefault("customer_email", "jane@example.com")
    return CreateBookingRequest(
        service_id=service_id,
        date=target,
        start_time=start_time,
        customer_phone=phone,
        **kwargs,
    )
