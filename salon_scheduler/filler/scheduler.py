"""
Filler-booking scheduler.

A daily job that keeps the public calendar looking lived-in by placing
synthetic system bookings on the next four days:

    offset 4   create 1 booking, unless one tagged 4 already exists
    offset 3   top up to 2 bookings tagged 3
    offset 2   cancel or move one system booking, once per date
    offset 1   create 1 booking, unless one tagged 1 already exists

Offsets are processed in the order 4, 3, 2, 1. Each offset runs on its own:
a failure is recorded in the report and the run moves on, and actions
already committed are kept. Running the job twice on the same day does not
add more bookings.

Usage:
    scheduler = FillerScheduler(store, manager, rng=random.Random(7))
    report = scheduler.run(date(2026, 10, 19))
    report.actions  # [FillerAction(offset=4, ...), ...]
"""

import datetime as dt
import random
from dataclasses import dataclass, field
from typing import Optional

from salon_scheduler.booking.availability import AvailabilityService
from salon_scheduler.booking.lifecycle import BookingManager
from salon_scheduler.config import FillerConfig, settings as app_settings
from salon_scheduler.filler.selection import Candidate, collect_candidates, pick_candidate
from salon_scheduler.logging_context import get_request_logger, new_request_id
from salon_scheduler.schemas.booking_schema import OCCUPYING_STATUSES, Booking
from salon_scheduler.schemas.service_schema import Service
from salon_scheduler.store import SchedulingStore

logger = get_request_logger(__name__)

OFFSETS = (4, 3, 2, 1)
OFFSET_3_TARGET = 2


@dataclass(frozen=True)
class FillerAction:
    offset: int
    date: dt.date
    action: str  # created | cancelled | moved | skipped
    booking_id: Optional[str] = None
    detail: str = ""


@dataclass
class FillerRunReport:
    """What one run did, per offset."""

    run_date: dt.date
    actions: list[FillerAction] = field(default_factory=list)
    errors: dict[int, str] = field(default_factory=dict)

    def by_action(self, action: str) -> list[FillerAction]:
        return [a for a in self.actions if a.action == action]

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        changed = [a for a in self.actions if a.action != "skipped"]
        if not changed:
            return "No actions needed"
        return f"System bookings processed: {len(changed)} action(s)"


class FillerScheduler:
    """Runs the daily filler-booking job."""

    def __init__(
        self,
        store: SchedulingStore,
        manager: BookingManager,
        filler_config: Optional[FillerConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._store = store
        self._manager = manager
        self._config = filler_config or app_settings.filler
        self._rng = rng or random.Random()
        self._availability = AvailabilityService(store, clock=manager.now)

    def run(self, today: Optional[dt.date] = None) -> FillerRunReport:
        today = today or self._manager.now().date()
        new_request_id("FILLER")
        report = FillerRunReport(run_date=today)

        services = self._store.list_services(active_only=True)
        if not services:
            logger.info("Filler run %s: no active services", today)
            return report

        handlers = {
            4: self._run_single,
            3: self._run_top_up,
            2: self._run_shuffle,
            1: self._run_single,
        }
        for offset in OFFSETS:
            target = today + dt.timedelta(days=offset)
            try:
                handlers[offset](offset, target, services, report)
            except Exception as exc:
                logger.exception("Filler offset %d for %s failed", offset, target)
                report.errors[offset] = str(exc)

        logger.info("Filler run %s: %s", today, report.message)
        return report

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _system_bookings(self, target: dt.date, occupying_only: bool = True) -> list[Booking]:
        return self._store.list_bookings(
            date=target,
            statuses=OCCUPYING_STATUSES if occupying_only else None,
            system_only=True,
        )

    def _pick(
        self,
        services: list[Service],
        target: dt.date,
        moving: Optional[Booking] = None,
    ) -> Optional[Candidate]:
        """Random free candidate on the date.

        A booking being moved is left out of the occupancy check and cannot
        land on its current start time with its current service.
        """
        candidates = collect_candidates(
            services,
            self._manager.settings,
            self._availability.day_bookings(target),
            self._availability.day_intervals(target),
            target,
            granularity=self._config.granularity,
            exclude_booking_id=moving.id if moving else None,
        )
        if moving is not None:
            candidates = [
                c for c in candidates
                if (c.start_time, c.service.id) != (moving.start_time, moving.service_id)
            ]
        return pick_candidate(candidates, self._rng)

    def _create(
        self, offset: int, target: dt.date, services: list[Service], report: FillerRunReport
    ) -> None:
        candidate = self._pick(services, target)
        if candidate is None:
            report.actions.append(FillerAction(offset, target, "skipped", detail="no free slot"))
            return
        booking = self._manager.create_system_booking(
            candidate.service.id, target, candidate.start_time, action_day=offset
        )
        report.actions.append(
            FillerAction(
                offset, target, "created", booking.id,
                f"{candidate.service.name} at {candidate.start_time}",
            )
        )

    # ------------------------------------------------------------------ #
    # Offsets
    # ------------------------------------------------------------------ #

    def _run_single(
        self, offset: int, target: dt.date, services: list[Service], report: FillerRunReport
    ) -> None:
        tags = [b.system_action_day for b in self._system_bookings(target)]
        if offset in tags:
            logger.debug("Offset %d for %s already done", offset, target)
            return
        self._create(offset, target, services, report)

    def _run_top_up(
        self, offset: int, target: dt.date, services: list[Service], report: FillerRunReport
    ) -> None:
        tags = [b.system_action_day for b in self._system_bookings(target)]
        missing = max(0, OFFSET_3_TARGET - tags.count(offset))
        for _ in range(missing):
            self._create(offset, target, services, report)

    def _run_shuffle(
        self, offset: int, target: dt.date, services: list[Service], report: FillerRunReport
    ) -> None:
        """Cancel or move one system booking on the date.

        The touched booking is re-tagged with ``offset``; a date that already
        has a booking with that tag, in any status, is left alone.
        """
        if any(b.system_action_day == offset for b in self._system_bookings(target, False)):
            logger.debug("Offset %d for %s already done", offset, target)
            return

        bookings = self._system_bookings(target)
        if not bookings:
            report.actions.append(FillerAction(offset, target, "skipped", detail="no system booking"))
            return

        should_cancel = self._rng.random() < self._config.cancel_probability
        booking = self._rng.choice(bookings)

        if should_cancel:
            self._manager.cancel(booking.id)
            self._manager.tag_system_booking(booking.id, offset)
            report.actions.append(FillerAction(offset, target, "cancelled", booking.id))
            return

        candidate = self._pick(services, target, moving=booking)
        if candidate is None:
            report.actions.append(FillerAction(offset, target, "skipped", booking.id, "no free slot"))
            return
        self._manager.reschedule(
            booking.id, target, candidate.start_time, service_id=candidate.service.id
        )
        self._manager.tag_system_booking(booking.id, offset)
        report.actions.append(
            FillerAction(
                offset, target, "moved", booking.id,
                f"{candidate.service.name} at {candidate.start_time}",
            )
        )
