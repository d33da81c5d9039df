"""Tests for manage-link lookup and customer cancellation."""

from datetime import datetime, timedelta

import pytest

from salon_scheduler.booking.self_service import SelfServicePortal, can_modify
from salon_scheduler.errors import BookingNotFoundError, NotModifiableError, WindowExpiredError
from salon_scheduler.schemas.booking_schema import BookingStatus
from salon_scheduler.schemas.notification_schema import NotificationKind
from tests.conftest import TUESDAY, make_booking, make_request

# Tuesday 2026-10-20 at 10:00.
APPOINTMENT = datetime(2026, 10, 20, 10, 0)


@pytest.fixture
def portal(manager):
    return SelfServicePortal(manager)


@pytest.fixture
def booking(manager):
    return manager.create_booking(make_request("10:00", target=TUESDAY))


class TestCanModify:
    def test_well_before(self):
        assert can_modify(make_booking("10:00"), APPOINTMENT - timedelta(days=2), 24)

    def test_exactly_on_boundary(self):
        assert can_modify(make_booking("10:00"), APPOINTMENT - timedelta(hours=24), 24)

    def test_inside_window(self):
        assert not can_modify(make_booking("10:00"), APPOINTMENT - timedelta(hours=23, minutes=59), 24)

    def test_terminal(self):
        booking = make_booking("10:00", status=BookingStatus.CANCELLED)
        assert not can_modify(booking, APPOINTMENT - timedelta(days=5), 24)


class TestLookup:
    def test_view(self, portal, booking):
        view = portal.lookup(booking.manage_token, now=APPOINTMENT - timedelta(days=1, hours=1))
        assert view.id == booking.id
        assert view.service_name == "Haircut"
        assert view.cancel_hours_before == 24
        assert view.can_modify

    def test_view_inside_window(self, portal, booking):
        view = portal.lookup(booking.manage_token, now=APPOINTMENT - timedelta(hours=2))
        assert not view.can_modify

    def test_unknown_token(self, portal):
        with pytest.raises(BookingNotFoundError):
            portal.lookup("not-a-token")

    def test_empty_token(self, portal):
        with pytest.raises(BookingNotFoundError):
            portal.lookup("")


class TestCancel:
    def test_cancel_with_more_than_window_left(self, portal, booking, notifier):
        notifier.reset()
        cancelled = portal.cancel(
            booking.manage_token, now=APPOINTMENT - timedelta(hours=24, minutes=1)
        )
        assert cancelled.status == BookingStatus.CANCELLED
        [request] = notifier.requests
        assert request.kind == NotificationKind.CANCELLATION
        assert request.send_sms and request.send_email

    def test_cancel_just_inside_window(self, portal, booking, store):
        with pytest.raises(WindowExpiredError):
            portal.cancel(booking.manage_token, now=APPOINTMENT - timedelta(hours=23, minutes=59))
        assert store.get_booking(booking.id).status == BookingStatus.CONFIRMED

    def test_cancel_twice(self, portal, booking):
        now = APPOINTMENT - timedelta(days=1, hours=1)
        portal.cancel(booking.manage_token, now=now)
        with pytest.raises(NotModifiableError):
            portal.cancel(booking.manage_token, now=now)

    def test_unknown_token(self, portal):
        with pytest.raises(BookingNotFoundError):
            portal.cancel("not-a-token", now=APPOINTMENT)

    def test_uses_manager_clock_by_default(self, portal, booking):
        # Manager clock is Monday 08:00, 26 hours ahead of the appointment.
        assert portal.cancel(booking.manage_token).status == BookingStatus.CANCELLED
