"""
Error taxonomy for the scheduling engine and booking lifecycle.

Every error carries a stable ``code`` and a generic ``public_message``.
Customer-facing surfaces show only the public message; admin surfaces may
show the code and the internal detail (``str(error)``).
"""

from typing import Any


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    code = "scheduling_error"
    public_message = "Something went wrong. Please try again later."
    retryable = False


class InvalidFormatError(SchedulingError):
    """Malformed time, date, or exception row."""

    code = "invalid_format"
    public_message = "Some of the details entered are not valid."


class InvalidServiceDurationError(SchedulingError):
    """Service duration is zero or negative."""

    code = "invalid_service_duration"
    public_message = "This service cannot be booked right now."


class ServiceNotFoundError(SchedulingError):
    code = "service_not_found"
    public_message = "This service is not available."


class BookingNotFoundError(SchedulingError):
    code = "booking_not_found"
    public_message = "Booking not found."


class ClientNotFoundError(SchedulingError):
    code = "client_not_found"
    public_message = "Client not found."


class ExceptionNotFoundError(SchedulingError):
    code = "exception_not_found"
    public_message = "Schedule exception not found."


class SlotUnavailableError(SchedulingError):
    """The requested interval was taken between availability read and commit.

    Callers should re-fetch availability and let the user pick again rather
    than retrying automatically.
    """

    code = "slot_unavailable"
    public_message = "This time is no longer available. Please choose another time."
    retryable = True


class InvalidTransitionError(SchedulingError):
    """Raised when a status change is not allowed from the current status."""

    code = "invalid_transition"
    public_message = "This booking cannot be changed in that way."


class WindowExpiredError(SchedulingError):
    """Self-service cancellation attempted inside the cancellation window."""

    code = "window_expired"
    public_message = "It is too late to cancel this booking online. Please call us."


class NotModifiableError(SchedulingError):
    """The booking is in a terminal status."""

    code = "not_modifiable"
    public_message = "This booking can no longer be changed."


class UnauthorizedError(SchedulingError):
    """Admin operation without valid credentials. Raised by the auth layer."""

    code = "unauthorized"
    public_message = "Not authorized."


def to_public_error(exc: Exception) -> dict[str, Any]:
    """Customer-facing payload: generic message, no internal detail."""
    if isinstance(exc, SchedulingError):
        return {"success": False, "message": exc.public_message, "retryable": exc.retryable}
    return {"success": False, "message": SchedulingError.public_message, "retryable": False}


def to_admin_error(exc: Exception) -> dict[str, Any]:
    """Admin-facing payload including the specific error kind."""
    if isinstance(exc, SchedulingError):
        return {
            "success": False,
            "code": exc.code,
            "message": str(exc) or exc.public_message,
            "retryable": exc.retryable,
        }
    return {"success": False, "code": "internal_error", "message": str(exc), "retryable": False}
