"""
Customer self-service through the manage link.

The link carries an opaque token. Anyone holding it may view the booking and
cancel it, as long as the appointment is at least ``cancel_hours_before``
hours away.
"""

import datetime as dt
import logging
from typing import TYPE_CHECKING, Optional

from salon_scheduler.engine.timeutils import combine
from salon_scheduler.schemas.booking_schema import Booking, ManageBookingView

if TYPE_CHECKING:
    from salon_scheduler.booking.lifecycle import BookingManager

logger = logging.getLogger(__name__)


def can_modify(booking: Booking, now: dt.datetime, cancel_hours_before: int) -> bool:
    """Whether the customer may still cancel the booking.

    Both ``now`` and the booking start are naive local wall-clock times.
    The boundary itself is allowed: exactly ``cancel_hours_before`` hours
    ahead still counts.
    """
    if booking.is_terminal:
        return False
    starts_at = combine(booking.date, booking.start_time)
    return now + dt.timedelta(hours=cancel_hours_before) <= starts_at


class SelfServicePortal:
    """Lookup and cancellation keyed by manage token."""

    def __init__(self, manager: "BookingManager") -> None:
        self._manager = manager

    def lookup(self, token: str, now: Optional[dt.datetime] = None) -> ManageBookingView:
        """The customer's view of their booking.

        Raises:
            BookingNotFoundError: Unknown token.
        """
        now = now or self._manager.now()
        booking = self._manager.get_booking_by_token(token)
        hours = self._manager.settings.cancel_hours_before
        return ManageBookingView(
            id=booking.id,
            service_name=self._manager.service_name(booking),
            date=booking.date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            status=booking.status,
            customer_name=booking.customer_name,
            cancel_hours_before=hours,
            can_modify=can_modify(booking, now, hours),
        )

    def cancel(self, token: str, now: Optional[dt.datetime] = None) -> Booking:
        """Cancel through the manage link.

        Raises:
            BookingNotFoundError: Unknown token.
            NotModifiableError: Already cancelled, completed or a no-show.
            WindowExpiredError: Too close to the appointment.
        """
        booking = self._manager.self_service_cancel(token, now=now)
        logger.info("Booking %s cancelled by customer", booking.id)
        return booking
