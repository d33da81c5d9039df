"""
Salon scheduler command-line tool.

Runs the scheduling engine against an in-memory store loaded with demo
data. Useful for checking working hours, exceptions and filler behaviour
without a database.

Usage:
    python main.py services
    python main.py slots --service haircut --date 2026-10-20
    python main.py slots --service haircut --date 2026-10-24 --grid
    python main.py calendar --service colouring --days 14
    python main.py filler --today 2026-10-19 --seed 7 --runs 2
"""

import argparse
import logging
import random
import sys
from typing import Optional

from salon_scheduler.booking.availability import AvailabilityService
from salon_scheduler.booking.catalog import ServiceCatalog
from salon_scheduler.booking.lifecycle import BookingManager
from salon_scheduler.engine.timeutils import parse_date
from salon_scheduler.errors import SchedulingError, to_admin_error
from salon_scheduler.filler.scheduler import FillerScheduler
from salon_scheduler.logging_context import new_request_id
from salon_scheduler.notifications.calendar_sync import RecordingCalendarSync
from salon_scheduler.notifications.dispatcher import RecordingNotifier
from salon_scheduler.seed import seed_demo
from salon_scheduler.store import InMemoryStore

logger = logging.getLogger(__name__)


def _build_store() -> InMemoryStore:
    store = InMemoryStore()
    seed_demo(store)
    return store


def _cmd_services(args: argparse.Namespace, store: InMemoryStore) -> None:
    for service in ServiceCatalog(store).list_services(active_only=not args.all):
        status = "" if service.is_active else " (inactive)"
        sys.stdout.write(
            f"{service.id:<12} {service.name:<20} {service.duration:>4} min "
            f"{service.price:>8.2f}{status}\n"
        )


def _cmd_slots(args: argparse.Namespace, store: InMemoryStore) -> None:
    target = parse_date(args.date)
    availability = AvailabilityService(store)
    if args.grid:
        for cell in availability.day_grid(args.service, target):
            mark = "free" if cell.available else "taken"
            sys.stdout.write(f"{cell.start_time}-{cell.end_time} {mark}\n")
        return
    slots = availability.slots_for(args.service, target)
    if not slots:
        sys.stdout.write(f"No free slots on {target}\n")
        return
    for slot in slots:
        sys.stdout.write(f"{slot.start_time}-{slot.end_time}\n")


def _cmd_calendar(args: argparse.Namespace, store: InMemoryStore) -> None:
    availability = AvailabilityService(store)
    start = parse_date(args.start) if args.start else None
    calendar = availability.calendar(args.service, start=start, days=args.days)
    for day in calendar.days:
        sys.stdout.write(f"{day.date.isoformat()} {day.date:%a} {day.slot_count:>3}\n")
    sys.stdout.write(f"Bookable until {calendar.max_date.isoformat()}\n")


def _cmd_filler(args: argparse.Namespace, store: InMemoryStore) -> None:
    calendar_sync = RecordingCalendarSync()
    manager = BookingManager(store, notifier=RecordingNotifier(), calendar_sync=calendar_sync)
    scheduler = FillerScheduler(store, manager, rng=random.Random(args.seed))
    today = parse_date(args.today) if args.today else None

    for run in range(1, args.runs + 1):
        report = scheduler.run(today)
        sys.stdout.write(f"Run {run} ({report.run_date}): {report.message}\n")
        for action in report.actions:
            booking = action.booking_id or "-"
            sys.stdout.write(
                f"  day {action.offset} {action.date} {action.action:<9} {booking} {action.detail}\n"
            )
        for offset, error in report.errors.items():
            sys.stdout.write(f"  day {offset} failed: {error}\n")
    sys.stdout.write(f"Calendar sync calls: {len(calendar_sync.calls)}\n")


COMMANDS = {
    "services": _cmd_services,
    "slots": _cmd_slots,
    "calendar": _cmd_calendar,
    "filler": _cmd_filler,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect salon availability and run the filler job.")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging output.")
    sub = parser.add_subparsers(dest="command", required=True)

    services = sub.add_parser("services", help="List the service catalog.")
    services.add_argument("--all", action="store_true", help="Include inactive services.")

    slots = sub.add_parser("slots", help="Free slots for a service on a date.")
    slots.add_argument("--service", required=True, help="Service id.")
    slots.add_argument("--date", required=True, help="Date as YYYY-MM-DD.")
    slots.add_argument("--grid", action="store_true", help="Show every grid position, taken ones included.")

    calendar = sub.add_parser("calendar", help="Slot counts per day for a service.")
    calendar.add_argument("--service", required=True, help="Service id.")
    calendar.add_argument("--start", default=None, help="First date (default: today).")
    calendar.add_argument("--days", type=int, default=None, help="Number of days (default: booking horizon).")

    filler = sub.add_parser("filler", help="Run the filler-booking job.")
    filler.add_argument("--today", default=None, help="Run as if today were YYYY-MM-DD.")
    filler.add_argument("--seed", type=int, default=None, help="Random seed.")
    filler.add_argument("--runs", type=int, default=1, help="Number of consecutive runs.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    new_request_id("CLI")
    store = _build_store()
    try:
        COMMANDS[args.command](args, store)
    except SchedulingError as exc:
        error = to_admin_error(exc)
        logger.error("%s: %s", error["code"], error["message"])
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
