"""
Availability queries.

Wires the store into the pure engine: loads a day's bookings and exceptions,
resolves the exceptions and asks the slot generator for free slots. Used by
the customer booking flow (slot list and month calendar) and by the filler
scheduler.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from salon_scheduler.config import settings as app_settings
from salon_scheduler.engine.resolver import ResolvedInterval, resolve_exceptions
from salon_scheduler.engine.slot_generator import GridSlot, Slot, generate_day_grid, generate_slots
from salon_scheduler.errors import ServiceNotFoundError
from salon_scheduler.schemas.booking_schema import OCCUPYING_STATUSES, Booking
from salon_scheduler.schemas.service_schema import Service
from salon_scheduler.schemas.settings_schema import SchedulingSettings
from salon_scheduler.store import SchedulingStore
from salon_scheduler.utils import business_now

logger = logging.getLogger(__name__)

Clock = Callable[[], dt.datetime]


def default_clock() -> dt.datetime:
    return business_now(app_settings.schedule.timezone)


def load_settings(store: SchedulingStore) -> SchedulingSettings:
    """Settings from the persisted rows, falling back to the environment config."""
    rows = store.get_settings_rows()
    if not rows:
        return SchedulingSettings.from_config(app_settings.schedule)
    return SchedulingSettings.from_rows(rows)


@dataclass(frozen=True)
class DayAvailability:
    """Slot count for one calendar date."""

    date: dt.date
    slot_count: int

    @property
    def available(self) -> bool:
        return self.slot_count > 0


@dataclass(frozen=True)
class CalendarAvailability:
    days: list[DayAvailability]
    max_date: dt.date


class AvailabilityService:
    """Free-slot lookups for a service on a date or a run of dates."""

    def __init__(
        self,
        store: SchedulingStore,
        settings: Optional[SchedulingSettings] = None,
        clock: Clock = default_clock,
    ) -> None:
        self._store = store
        self._settings = settings
        self._clock = clock

    @property
    def settings(self) -> SchedulingSettings:
        if self._settings is not None:
            return self._settings
        return load_settings(self._store)

    def _service(self, service_id: str) -> Service:
        service = self._store.get_service(service_id)
        if service is None or not service.is_active:
            raise ServiceNotFoundError(f"Service {service_id} not found or inactive")
        return service

    def day_bookings(self, target: dt.date) -> list[Booking]:
        """Bookings holding time on ``target``."""
        return self._store.list_bookings(date=target, statuses=OCCUPYING_STATUSES)

    def day_intervals(self, target: dt.date) -> list[ResolvedInterval]:
        return resolve_exceptions(target, self._store.list_exceptions())

    def max_date(self, today: Optional[dt.date] = None) -> dt.date:
        today = today or self._clock().date()
        return today + dt.timedelta(days=self.settings.booking_days_ahead)

    def free_slots(
        self,
        duration: int,
        target: dt.date,
        granularity: Optional[int] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> list[Slot]:
        """Free slots for a raw duration, ignoring the booking horizon."""
        return generate_slots(
            self.settings,
            duration,
            self.day_bookings(target),
            self.day_intervals(target),
            target,
            granularity=granularity,
            exclude_booking_id=exclude_booking_id,
        )

    def slots_for(self, service_id: str, target: dt.date) -> list[Slot]:
        """Slots a customer may book for the service on ``target``.

        Dates before today or after the booking horizon have none. On today
        itself, slots that have already started are dropped.

        Raises:
            ServiceNotFoundError: If the service is missing or inactive.
        """
        service = self._service(service_id)
        now = self._clock()
        if target < now.date() or target > self.max_date(now.date()):
            return []

        slots = self.free_slots(service.total_minutes, target)
        if target == now.date():
            current = now.hour * 60 + now.minute
            slots = [s for s in slots if s.start_minutes > current]
        return slots

    def day_grid(self, service_id: str, target: dt.date) -> list[GridSlot]:
        """Every grid position with an availability flag, for the time picker."""
        service = self._service(service_id)
        return generate_day_grid(
            self.settings,
            service.total_minutes,
            self.day_bookings(target),
            self.day_intervals(target),
            target,
        )

    def calendar(
        self, service_id: str, start: Optional[dt.date] = None, days: Optional[int] = None
    ) -> CalendarAvailability:
        """Per-date slot counts from ``start`` for ``days`` dates.

        ``days`` defaults to the booking horizon.
        """
        today = self._clock().date()
        start = start or today
        days = self.settings.booking_days_ahead if days is None else days

        result = []
        for offset in range(days):
            target = start + dt.timedelta(days=offset)
            result.append(DayAvailability(target, len(self.slots_for(service_id, target))))

        logger.debug(
            "Calendar for %s from %s: %d of %d day(s) bookable",
            service_id, start, sum(1 for d in result if d.available), days,
        )
        return CalendarAvailability(days=result, max_date=self.max_date(today))
