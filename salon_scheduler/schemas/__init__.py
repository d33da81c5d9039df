from salon_scheduler.schemas.booking_schema import (
    Booking,
    BookingStatus,
    CreateBookingRequest,
    ManageBookingView,
)
from salon_scheduler.schemas.client_schema import Client, ClientCheck
from salon_scheduler.schemas.exception_schema import (
    ExceptionType,
    OneOffException,
    RangeException,
    RecurringException,
    build_exception,
)
from salon_scheduler.schemas.service_schema import Service
from salon_scheduler.schemas.settings_schema import SchedulingSettings

__all__ = [
    "Booking", "BookingStatus", "CreateBookingRequest", "ManageBookingView",
    "Client", "ClientCheck",
    "ExceptionType", "OneOffException", "RangeException", "RecurringException",
    "build_exception",
    "Service", "SchedulingSettings",
]
