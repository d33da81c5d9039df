"""Tests for the booking lifecycle manager."""

import threading
from datetime import date

import pytest

from salon_scheduler.booking.lifecycle import BookingManager
from salon_scheduler.errors import (
    BookingNotFoundError,
    InvalidFormatError,
    InvalidTransitionError,
    NotModifiableError,
    ServiceNotFoundError,
    SlotUnavailableError,
)
from salon_scheduler.notifications.calendar_sync import CalendarAction
from salon_scheduler.schemas.booking_schema import BookingStatus
from salon_scheduler.schemas.client_schema import Client
from salon_scheduler.schemas.exception_schema import OneOffException
from salon_scheduler.schemas.notification_schema import NotificationKind
from salon_scheduler.schemas.service_schema import ServiceUpdate
from salon_scheduler.booking.catalog import ServiceCatalog
from tests.conftest import MONDAY, NOW, PHONE, SUNDAY, TUESDAY, make_request, make_service


class TestCreateBooking:
    def test_confirmed_for_new_client(self, manager, store):
        booking = manager.create_booking(make_request("10:00"))
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.end_time == "11:00"
        assert booking.manage_token
        assert store.get_booking(booking.id) == booking

    def test_creates_client_on_first_booking(self, manager, store):
        manager.create_booking(make_request("10:00", phone="+370 612 34567"))
        client = store.get_client(PHONE)
        assert client is not None
        assert client.name == "Jane Doe"
        assert client.email == "jane@example.com"

    def test_blacklisted_phone_is_pending(self, manager, store, notifier):
        store.save_client(Client(phone=PHONE, is_blacklisted=True, blacklist_reason="no-show"))
        booking = manager.create_booking(make_request("10:00"))

        assert booking.status == BookingStatus.PENDING
        kinds = [r.kind for r in notifier.requests]
        assert kinds == [NotificationKind.PENDING_APPROVAL, NotificationKind.BLACKLIST_WARNING]
        assert notifier.requests[0].blacklist_reason == "no-show"

    def test_notifies_and_syncs(self, manager, notifier, calendar):
        booking = manager.create_booking(make_request("10:00"))
        assert [r.kind for r in notifier.requests] == [NotificationKind.BOOKING_CREATED]
        assert notifier.requests[0].service_name == "Haircut"
        assert calendar.calls == [(booking.id, CalendarAction.CREATE)]

    def test_unknown_service(self, manager):
        with pytest.raises(ServiceNotFoundError):
            manager.create_booking(make_request("10:00", service_id="nope"))

    def test_inactive_service(self, manager, store):
        ServiceCatalog(store).deactivate("cut")
        with pytest.raises(ServiceNotFoundError):
            manager.create_booking(make_request("10:00"))

    def test_malformed_time(self, manager):
        with pytest.raises(InvalidFormatError):
            manager.create_booking(make_request("10h00"))

    def test_taken_slot_rejected(self, manager):
        manager.create_booking(make_request("10:00"))
        with pytest.raises(SlotUnavailableError):
            manager.create_booking(make_request("10:30", phone="+37060000001"))

    def test_break_after_booking_enforced(self, manager):
        manager.create_booking(make_request("10:00"))
        with pytest.raises(SlotUnavailableError):
            manager.create_booking(make_request("11:00", phone="+37060000001"))
        booking = manager.create_booking(make_request("11:15", phone="+37060000001"))
        assert booking.start_time == "11:15"

    def test_cancelled_booking_frees_slot(self, manager):
        first = manager.create_booking(make_request("10:00"))
        manager.cancel(first.id)
        second = manager.create_booking(make_request("10:00", phone="+37060000001"))
        assert second.status == BookingStatus.CONFIRMED

    def test_sunday_rejected(self, manager):
        with pytest.raises(SlotUnavailableError):
            manager.create_booking(make_request("10:00", target=SUNDAY))

    def test_blocked_interval_rejected(self, manager, store):
        store.save_exception(
            OneOffException(date=TUESDAY, exception_type="block", start_time="12:00", end_time="13:00")
        )
        with pytest.raises(SlotUnavailableError):
            manager.create_booking(make_request("11:30"))

    def test_past_date_rejected(self, manager):
        with pytest.raises(SlotUnavailableError):
            manager.create_booking(make_request("10:00", target=date(2026, 10, 18)))

    def test_beyond_horizon_rejected(self, manager):
        with pytest.raises(SlotUnavailableError):
            manager.create_booking(make_request("10:00", target=date(2027, 1, 1)))

    def test_today_after_now_allowed(self, manager):
        booking = manager.create_booking(make_request("09:00", target=MONDAY))
        assert booking.date == MONDAY

    def test_preparation_time_held(self, manager, store):
        store.save_service(make_service("prep", "Perm", duration=60, preparation_time=30))
        booking = manager.create_booking(make_request("10:00", service_id="prep"))
        assert booking.end_time == "11:00"
        # 17:00 + 60 + 30 runs past closing.
        with pytest.raises(SlotUnavailableError):
            manager.create_booking(make_request("17:00", service_id="prep", phone="+37060000001"))

    def test_existing_preparation_time_blocks_later_booking(self, manager, store):
        store.save_service(make_service("perm", "Perm", duration=120, preparation_time=30))
        perm = manager.create_booking(make_request("10:00", service_id="perm"))
        assert (perm.end_time, perm.preparation_time) == ("12:00", 30)

        # Held until 12:30, plus the 15 minute break.
        with pytest.raises(SlotUnavailableError):
            manager.create_booking(make_request("12:15", phone="+37060000001"))
        with pytest.raises(SlotUnavailableError):
            manager.create_booking(make_request("12:30", phone="+37060000001"))
        assert manager.create_booking(make_request("12:45", phone="+37060000001"))

    @pytest.mark.parametrize("first", ["perm", "cut"])
    def test_preparation_overlap_rejected_in_either_order(self, manager, store, first):
        store.save_service(make_service("perm", "Perm", duration=120, preparation_time=30))
        requests = {
            "perm": make_request("10:00", service_id="perm"),
            "cut": make_request("12:15", phone="+37060000001"),
        }
        second = "cut" if first == "perm" else "perm"

        manager.create_booking(requests[first])
        with pytest.raises(SlotUnavailableError):
            manager.create_booking(requests[second])

    def test_notification_failure_does_not_fail_booking(self, store, settings, calendar):
        class Broken:
            def dispatch(self, request):
                raise RuntimeError("mail server down")

        manager = BookingManager(
            store, settings=settings, notifier=Broken(), calendar_sync=calendar, clock=lambda: NOW
        )
        booking = manager.create_booking(make_request("10:00"))
        assert store.get_booking(booking.id) is not None

    def test_calendar_failure_does_not_fail_booking(self, store, settings, notifier):
        class Broken:
            def sync(self, booking_id, action):
                raise RuntimeError("calendar down")

        manager = BookingManager(
            store, settings=settings, notifier=notifier, calendar_sync=Broken(), clock=lambda: NOW
        )
        booking = manager.create_booking(make_request("10:00"))
        assert booking.status == BookingStatus.CONFIRMED


class TestConcurrentCommit:
    def test_only_one_of_racing_requests_commits(self, manager, store):
        results = []
        barrier = threading.Barrier(8)

        def attempt(i):
            barrier.wait()
            try:
                manager.create_booking(make_request("10:00", phone=f"+3706000000{i}"))
                results.append("ok")
            except SlotUnavailableError:
                results.append("taken")

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == 1
        assert results.count("taken") == 7
        assert len(store.list_bookings(date=TUESDAY)) == 1


class TestUpdateStatus:
    def test_complete(self, manager, calendar):
        booking = manager.create_booking(make_request("10:00"))
        updated = manager.update_status(booking.id, BookingStatus.COMPLETED)
        assert updated.status == BookingStatus.COMPLETED
        assert calendar.calls[-1] == (booking.id, CalendarAction.UPDATE)

    def test_cancel_via_status_deletes_calendar_event(self, manager, calendar):
        booking = manager.create_booking(make_request("10:00"))
        manager.update_status(booking.id, BookingStatus.CANCELLED)
        assert calendar.calls[-1] == (booking.id, CalendarAction.DELETE)

    def test_cancelled_cannot_change(self, manager):
        booking = manager.create_booking(make_request("10:00"))
        manager.cancel(booking.id)
        for status in BookingStatus:
            with pytest.raises(InvalidTransitionError):
                manager.update_status(booking.id, status)

    def test_unknown_booking(self, manager):
        with pytest.raises(BookingNotFoundError):
            manager.update_status("BK-MISSING", BookingStatus.COMPLETED)

    def test_no_show_creates_blacklisted_client(self, manager, store):
        booking = manager.create_booking(make_request("10:00", phone="+37069999999"))
        store.reset()
        store.save_service(make_service())
        store.insert_booking(booking)

        manager.update_status(booking.id, BookingStatus.NO_SHOW)
        client = store.get_client("+37069999999")
        assert client is not None
        assert client.is_blacklisted
        assert client.no_show_count == 1
        assert client.blacklist_reason == "no-show"

    def test_no_show_keeps_existing_reason(self, manager, store):
        booking = manager.create_booking(make_request("10:00"))
        store.save_client(Client(phone=PHONE, blacklist_reason="late twice", no_show_count=2))
        manager.update_status(booking.id, BookingStatus.NO_SHOW)
        client = store.get_client(PHONE)
        assert client.no_show_count == 3
        assert client.blacklist_reason == "late twice"

    def test_pending_can_be_confirmed(self, manager, store):
        store.save_client(Client(phone=PHONE, is_blacklisted=True))
        booking = manager.create_booking(make_request("10:00"))
        assert manager.update_status(booking.id, BookingStatus.CONFIRMED).status == BookingStatus.CONFIRMED


class TestReschedule:
    def test_move_within_day(self, manager, store):
        booking = manager.create_booking(make_request("10:00"))
        moved = manager.reschedule(booking.id, TUESDAY, "10:30")
        assert moved.id == booking.id
        assert (moved.start_time, moved.end_time) == ("10:30", "11:30")
        assert moved.manage_token == booking.manage_token
        assert store.get_booking(booking.id).start_time == "10:30"

    def test_move_to_other_day(self, manager):
        booking = manager.create_booking(make_request("10:00"))
        moved = manager.reschedule(booking.id, date(2026, 10, 21), "14:00")
        assert moved.date == date(2026, 10, 21)

    def test_explicit_end(self, manager):
        booking = manager.create_booking(make_request("10:00"))
        moved = manager.reschedule(booking.id, TUESDAY, "13:00", "14:30")
        assert moved.end_time == "14:30"

    def test_end_before_start_rejected(self, manager):
        booking = manager.create_booking(make_request("10:00"))
        with pytest.raises(InvalidFormatError):
            manager.reschedule(booking.id, TUESDAY, "13:00", "12:00")

    def test_collision_rejected(self, manager):
        booking = manager.create_booking(make_request("10:00"))
        manager.create_booking(make_request("14:00", phone="+37060000001"))
        with pytest.raises(SlotUnavailableError):
            manager.reschedule(booking.id, TUESDAY, "13:30")

    def test_terminal_rejected(self, manager):
        booking = manager.create_booking(make_request("10:00"))
        manager.update_status(booking.id, BookingStatus.COMPLETED)
        with pytest.raises(NotModifiableError):
            manager.reschedule(booking.id, TUESDAY, "12:00")

    def test_notifications_only_when_asked(self, manager, notifier):
        booking = manager.create_booking(make_request("10:00"))
        notifier.reset()
        manager.reschedule(booking.id, TUESDAY, "12:00")
        assert notifier.requests == []

        manager.reschedule(booking.id, TUESDAY, "13:00", notify_sms=True)
        [request] = notifier.requests
        assert request.kind == NotificationKind.RESCHEDULE
        assert request.send_sms and not request.send_email

    def test_change_service(self, manager):
        booking = manager.create_booking(make_request("10:00"))
        moved = manager.reschedule(booking.id, TUESDAY, "10:00", service_id="colour")
        assert moved.service_id == "colour"
        assert moved.end_time == "12:00"

    def test_change_service_updates_preparation(self, manager, store):
        store.save_service(make_service("perm", "Perm", duration=60, preparation_time=20))
        booking = manager.create_booking(make_request("10:00"))
        moved = manager.reschedule(booking.id, TUESDAY, "10:00", service_id="perm")
        assert moved.preparation_time == 20
        assert store.get_booking(booking.id).preparation_time == 20

    def test_explicit_end_keeps_preparation_held(self, manager, store):
        store.save_service(make_service("perm", "Perm", duration=60, preparation_time=30))
        booking = manager.create_booking(make_request("10:00", service_id="perm"))
        manager.create_booking(make_request("13:45", phone="+37060000001"))

        # 12:00-13:30 plus 30 minutes of preparation reaches into the 13:45 booking.
        with pytest.raises(SlotUnavailableError):
            manager.reschedule(booking.id, TUESDAY, "12:00", "13:30")
        moved = manager.reschedule(booking.id, TUESDAY, "12:00", "13:15")
        assert (moved.end_time, moved.preparation_time) == ("13:15", 30)


class TestCancel:
    def test_cancel(self, manager, calendar):
        booking = manager.create_booking(make_request("10:00"))
        cancelled = manager.cancel(booking.id)
        assert cancelled.status == BookingStatus.CANCELLED
        assert calendar.calls[-1] == (booking.id, CalendarAction.DELETE)

    def test_cancel_twice_rejected(self, manager):
        booking = manager.create_booking(make_request("10:00"))
        manager.cancel(booking.id)
        with pytest.raises(NotModifiableError):
            manager.cancel(booking.id)

    def test_cancel_flags(self, manager, notifier):
        booking = manager.create_booking(make_request("10:00"))
        notifier.reset()
        manager.cancel(booking.id, notify_email=True)
        [request] = notifier.requests
        assert request.kind == NotificationKind.CANCELLATION
        assert request.send_email and not request.send_sms


class TestSystemBookings:
    def test_bypasses_blacklist_and_is_confirmed(self, manager, store, notifier, calendar):
        booking = manager.create_system_booking("cut", TUESDAY, "10:00", action_day=4)
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.is_system_booking
        assert booking.system_action_day == 4
        assert booking.customer_name == "SISTEMA"
        assert notifier.requests == []
        assert calendar.calls == [(booking.id, CalendarAction.CREATE)]

    def test_still_checked_at_commit(self, manager):
        manager.create_booking(make_request("10:00"))
        with pytest.raises(SlotUnavailableError):
            manager.create_system_booking("cut", TUESDAY, "10:30")


class TestListBookings:
    def test_ordered_and_filtered(self, manager):
        later = manager.create_booking(make_request("14:00"))
        earlier = manager.create_booking(make_request("10:00", phone="+37060000001"))
        other_day = manager.create_booking(make_request("09:00", target=date(2026, 10, 21), phone="+37060000002"))
        manager.cancel(later.id)

        assert [b.id for b in manager.list_bookings()] == [earlier.id, later.id, other_day.id]
        assert [b.id for b in manager.list_bookings(status=BookingStatus.CANCELLED)] == [later.id]
        assert [b.id for b in manager.list_bookings(date_from=date(2026, 10, 21))] == [other_day.id]


class TestServiceUpdateUsesNewDuration:
    def test_duration_change_applies_to_new_bookings(self, manager, store):
        ServiceCatalog(store).update("cut", ServiceUpdate(duration=30))
        booking = manager.create_booking(make_request("10:00"))
        assert booking.end_time == "10:30"
