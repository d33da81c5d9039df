"""
Booking lifecycle manager.

Owns every booking mutation: customer bookings, system (filler) bookings,
status changes, reschedules and cancellations. Each mutation re-validates
the requested interval inside ``store.transaction()`` so two requests racing
for the same slot cannot both commit; the loser gets ``SlotUnavailableError``.

Side effects (notifications, calendar sync) run after the write and never
change the outcome of the mutation.

Usage:
    manager = BookingManager(store)
    booking = manager.create_booking(CreateBookingRequest(...))
    manager.update_status(booking.id, BookingStatus.COMPLETED)
"""

import datetime as dt
from typing import Optional

from salon_scheduler.booking.availability import Clock, default_clock, load_settings
from salon_scheduler.booking.clients import ClientRegistry
from salon_scheduler.booking.self_service import can_modify
from salon_scheduler.config import FillerConfig, settings as app_settings
from salon_scheduler.engine.resolver import resolve_exceptions
from salon_scheduler.engine.slot_generator import is_interval_free
from salon_scheduler.engine.status_machine import BookingStatusMachine
from salon_scheduler.engine.timeutils import calculate_end_time, time_to_minutes
from salon_scheduler.errors import (
    BookingNotFoundError,
    InvalidFormatError,
    NotModifiableError,
    ServiceNotFoundError,
    SlotUnavailableError,
    WindowExpiredError,
)
from salon_scheduler.logging_context import get_request_logger
from salon_scheduler.notifications.calendar_sync import (
    CalendarAction,
    CalendarSync,
    NullCalendarSync,
    sync_quietly,
)
from salon_scheduler.notifications.dispatcher import (
    NotificationDispatcher,
    TemplateNotifier,
    fire_and_forget,
)
from salon_scheduler.schemas.booking_schema import (
    OCCUPYING_STATUSES,
    Booking,
    BookingStatus,
    CreateBookingRequest,
)
from salon_scheduler.schemas.notification_schema import NotificationKind, NotificationRequest
from salon_scheduler.schemas.service_schema import Service
from salon_scheduler.schemas.settings_schema import SchedulingSettings
from salon_scheduler.store import SchedulingStore, new_booking_id
from salon_scheduler.utils import normalize_phone

logger = get_request_logger(__name__)


class BookingManager:
    """Validates and commits booking mutations against the store."""

    def __init__(
        self,
        store: SchedulingStore,
        settings: Optional[SchedulingSettings] = None,
        notifier: Optional[NotificationDispatcher] = None,
        calendar_sync: Optional[CalendarSync] = None,
        clock: Clock = default_clock,
        filler_config: Optional[FillerConfig] = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self._notifier = notifier or TemplateNotifier(store.list_templates)
        self._calendar = calendar_sync or NullCalendarSync()
        self._clock = clock
        self._filler = filler_config or app_settings.filler
        self.clients = ClientRegistry(store)

    @property
    def settings(self) -> SchedulingSettings:
        if self._settings is not None:
            return self._settings
        return load_settings(self._store)

    def now(self) -> dt.datetime:
        return self._clock()

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def get_booking(self, booking_id: str) -> Booking:
        booking = self._store.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        return booking

    def get_booking_by_token(self, token: str) -> Booking:
        booking = self._store.get_booking_by_token(token) if token else None
        if booking is None:
            raise BookingNotFoundError("No booking for this manage token")
        return booking

    def list_bookings(
        self,
        status: Optional[BookingStatus] = None,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
    ) -> list[Booking]:
        """Admin listing ordered by date, then start time."""
        return self._store.list_bookings(
            date_from=date_from,
            date_to=date_to,
            statuses=[status] if status is not None else None,
        )

    def service_name(self, booking: Booking) -> str:
        service = self._store.get_service(booking.service_id)
        return service.name if service else booking.service_id

    def _service(self, service_id: str, bookable: bool = True) -> Service:
        service = self._store.get_service(service_id)
        if service is None or (bookable and not service.is_active):
            raise ServiceNotFoundError(f"Service {service_id} not found or inactive")
        return service

    # ------------------------------------------------------------------ #
    # Commit-time validation
    # ------------------------------------------------------------------ #

    def _ensure_free(
        self,
        target: dt.date,
        start_time: str,
        end_time: str,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        """Re-check an interval against the current state of the store.

        Must be called inside ``store.transaction()``.

        Raises:
            SlotUnavailableError: If the interval is outside the open hours or
                collides with a booking or a blocked interval.
        """
        free = is_interval_free(
            self.settings,
            start_time,
            end_time,
            self._store.list_bookings(date=target, statuses=OCCUPYING_STATUSES),
            resolve_exceptions(target, self._store.list_exceptions()),
            target,
            exclude_booking_id=exclude_booking_id,
        )
        if not free:
            raise SlotUnavailableError(f"{target} {start_time}-{end_time} is no longer available")

    def _check_horizon(self, target: dt.date, start_time: str) -> None:
        now = self.now()
        last = now.date() + dt.timedelta(days=self.settings.booking_days_ahead)
        if target < now.date() or target > last:
            raise SlotUnavailableError(f"{target} is outside the booking window")
        if target == now.date() and time_to_minutes(start_time) <= now.hour * 60 + now.minute:
            raise SlotUnavailableError(f"{target} {start_time} has already started")

    # ------------------------------------------------------------------ #
    # Side effects
    # ------------------------------------------------------------------ #

    def _notify(
        self,
        booking: Booking,
        kind: NotificationKind,
        send_sms: bool = True,
        send_email: bool = True,
        blacklist_reason: Optional[str] = None,
    ) -> None:
        service = self._store.get_service(booking.service_id)
        request = NotificationRequest(
            kind=kind,
            booking_id=booking.id,
            manage_token=booking.manage_token,
            service_name=service.name if service else booking.service_id,
            service_price=f"{service.price:.2f}" if service else None,
            date=booking.date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            customer_name=booking.customer_name,
            customer_phone=booking.customer_phone,
            customer_email=booking.customer_email,
            send_sms=send_sms,
            send_email=send_email,
            blacklist_reason=blacklist_reason,
        )
        fire_and_forget(self._notifier, request)

    def _sync(self, booking: Booking, action: CalendarAction) -> None:
        sync_quietly(self._calendar, booking.id, action)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def create_booking(self, request: CreateBookingRequest) -> Booking:
        """Commit a customer booking.

        Blacklisted phones get a pending booking that waits for admin
        approval; everyone else is confirmed immediately.

        Raises:
            ServiceNotFoundError: Unknown or inactive service.
            InvalidFormatError: Malformed start time.
            SlotUnavailableError: The interval is taken or outside the window.
        """
        service = self._service(request.service_id)
        end_time = calculate_end_time(request.start_time, service.duration)
        held_until = calculate_end_time(request.start_time, service.total_minutes)
        phone = normalize_phone(request.customer_phone)
        if not phone:
            raise InvalidFormatError(f"Invalid phone number: {request.customer_phone!r}")

        self._check_horizon(request.date, request.start_time)

        with self._store.transaction():
            client = self.clients.get_by_phone(phone)
            blacklisted = client is not None and client.is_blacklisted
            self._ensure_free(request.date, request.start_time, held_until)
            booking = Booking(
                id=new_booking_id(),
                service_id=service.id,
                date=request.date,
                start_time=request.start_time,
                end_time=end_time,
                preparation_time=service.preparation_time,
                status=BookingStatus.PENDING if blacklisted else BookingStatus.CONFIRMED,
                customer_name=request.customer_name,
                customer_phone=phone,
                customer_email=request.customer_email,
                promo_code=request.promo_code,
            )
            self._store.insert_booking(booking)
            self.clients.ensure(phone, name=request.customer_name, email=request.customer_email)

        logger.info(
            "Booking created: %s %s on %s at %s (%s)",
            booking.id, service.name, booking.date, booking.start_time, booking.status.value,
        )

        if blacklisted:
            reason = client.blacklist_reason if client else None
            self._notify(booking, NotificationKind.PENDING_APPROVAL, blacklist_reason=reason)
            self._notify(booking, NotificationKind.BLACKLIST_WARNING, blacklist_reason=reason)
        else:
            self._notify(booking, NotificationKind.BOOKING_CREATED)
        self._sync(booking, CalendarAction.CREATE)
        return booking

    def create_system_booking(
        self,
        service_id: str,
        target: dt.date,
        start_time: str,
        action_day: Optional[int] = None,
    ) -> Booking:
        """Commit a filler booking under the placeholder identity.

        Skips the blacklist and the booking horizon, always confirmed, and
        sends no customer notifications. The interval is still re-validated.
        """
        service = self._service(service_id)
        end_time = calculate_end_time(start_time, service.duration)
        held_until = calculate_end_time(start_time, service.total_minutes)

        with self._store.transaction():
            self._ensure_free(target, start_time, held_until)
            booking = Booking(
                id=new_booking_id(),
                service_id=service.id,
                date=target,
                start_time=start_time,
                end_time=end_time,
                preparation_time=service.preparation_time,
                status=BookingStatus.CONFIRMED,
                customer_name=self._filler.placeholder_name,
                customer_phone=self._filler.placeholder_phone,
                is_system_booking=True,
                system_action_day=action_day,
            )
            self._store.insert_booking(booking)

        logger.info(
            "System booking created: %s %s on %s at %s (day %s)",
            booking.id, service.name, target, start_time, action_day,
        )
        self._sync(booking, CalendarAction.CREATE)
        return booking

    def update_status(self, booking_id: str, new_status: BookingStatus) -> Booking:
        """Admin status change.

        Marking a booking as a no-show blacklists the customer's phone.

        Raises:
            BookingNotFoundError: Unknown booking.
            InvalidTransitionError: The change is not in the transition table.
        """
        with self._store.transaction():
            booking = self.get_booking(booking_id)
            BookingStatusMachine.transition(booking.status, new_status)
            booking = self._store.update_booking(booking.model_copy(update={"status": new_status}))

            if new_status == BookingStatus.NO_SHOW and not booking.is_system_booking:
                self.clients.record_no_show(booking.customer_phone, name=booking.customer_name)

        logger.info("Booking %s status -> %s", booking_id, new_status.value)
        if new_status == BookingStatus.CANCELLED:
            self._sync(booking, CalendarAction.DELETE)
        else:
            self._sync(booking, CalendarAction.UPDATE)
        return booking

    def reschedule(
        self,
        booking_id: str,
        new_date: dt.date,
        new_start: str,
        new_end: Optional[str] = None,
        service_id: Optional[str] = None,
        notify_sms: bool = False,
        notify_email: bool = False,
    ) -> Booking:
        """Move a booking, optionally changing its service.

        Without ``new_end`` the end is derived from the service duration. The
        booking keeps its id, status and manage token.

        Raises:
            NotModifiableError: The booking is in a terminal status.
            InvalidFormatError: ``new_end`` is not after ``new_start``.
            SlotUnavailableError: The new interval is taken.
        """
        with self._store.transaction():
            booking = self.get_booking(booking_id)
            if booking.is_terminal:
                raise NotModifiableError(
                    f"Booking {booking_id} is {booking.status.value} and cannot be moved"
                )

            service = self._service(service_id or booking.service_id, bookable=service_id is not None)
            if new_end is None:
                end_time = calculate_end_time(new_start, service.duration)
            else:
                if time_to_minutes(new_end) <= time_to_minutes(new_start):
                    raise InvalidFormatError(f"End time {new_end} must be after start time {new_start}")
                end_time = new_end
            held_until = calculate_end_time(end_time, service.preparation_time)

            self._ensure_free(new_date, new_start, held_until, exclude_booking_id=booking.id)
            booking = self._store.update_booking(
                booking.model_copy(
                    update={
                        "date": new_date,
                        "start_time": new_start,
                        "end_time": end_time,
                        "preparation_time": service.preparation_time,
                        "service_id": service.id,
                    }
                )
            )

        logger.info("Booking %s moved to %s %s-%s", booking_id, new_date, new_start, end_time)
        if (notify_sms or notify_email) and not booking.is_system_booking:
            self._notify(
                booking, NotificationKind.RESCHEDULE, send_sms=notify_sms, send_email=notify_email
            )
        self._sync(booking, CalendarAction.UPDATE)
        return booking

    def cancel(
        self, booking_id: str, notify_sms: bool = False, notify_email: bool = False
    ) -> Booking:
        """Cancel a pending or confirmed booking.

        Raises:
            NotModifiableError: The booking is already in a terminal status.
        """
        with self._store.transaction():
            booking = self.get_booking(booking_id)
            if booking.is_terminal:
                raise NotModifiableError(
                    f"Booking {booking_id} is {booking.status.value} and cannot be cancelled"
                )
            BookingStatusMachine.transition(booking.status, BookingStatus.CANCELLED)
            booking = self._store.update_booking(
                booking.model_copy(update={"status": BookingStatus.CANCELLED})
            )

        logger.info("Booking cancelled: %s", booking_id)
        if (notify_sms or notify_email) and not booking.is_system_booking:
            self._notify(
                booking, NotificationKind.CANCELLATION, send_sms=notify_sms, send_email=notify_email
            )
        self._sync(booking, CalendarAction.DELETE)
        return booking

    def self_service_cancel(self, token: str, now: Optional[dt.datetime] = None) -> Booking:
        """Customer cancellation through the manage link.

        Allowed only while at least ``cancel_hours_before`` hours remain
        before the appointment. The customer is notified on every channel.

        Raises:
            BookingNotFoundError: Unknown token.
            NotModifiableError: The booking is in a terminal status.
            WindowExpiredError: The cancellation window has passed.
        """
        now = now or self.now()
        booking = self.get_booking_by_token(token)
        if booking.is_terminal:
            raise NotModifiableError(f"Booking {booking.id} is {booking.status.value}")
        if not can_modify(booking, now, self.settings.cancel_hours_before):
            raise WindowExpiredError(
                f"Booking {booking.id} starts within {self.settings.cancel_hours_before}h"
            )
        return self.cancel(booking.id, notify_sms=True, notify_email=True)

    def tag_system_booking(self, booking_id: str, action_day: int) -> Booking:
        """Record which filler offset last acted on a system booking."""
        with self._store.transaction():
            booking = self.get_booking(booking_id)
            return self._store.update_booking(
                booking.model_copy(update={"system_action_day": action_day})
            )
