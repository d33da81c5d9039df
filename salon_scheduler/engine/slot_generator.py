"""
Slot generator.

Enumerates candidate start times on a fixed grid inside the day's open
window(s) and drops every candidate that collides with an occupied booking
or a blocked exception interval.

Rules:
    - Sunday is closed unless an allow exception applies to the date.
    - Allow exceptions, when present, replace the default working hours
      for that date with their own interval(s).
    - A booking occupies [start, end + preparation_time + break_between):
      its preparation time and the break follow every existing booking
      before the next slot may start. A new slot may end exactly where an
      existing booking starts.
    - Block exceptions are exact boundaries with no break padding.
    - Only pending/confirmed bookings occupy time.

Usage:
    slots = generate_slots(settings, 60, bookings, intervals, date(2026, 10, 20))
    [s.start_time for s in slots]  # ['09:00', '09:30', ...]
"""

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from salon_scheduler.engine.resolver import ResolvedInterval
from salon_scheduler.engine.timeutils import (
    SUNDAY,
    day_of_week,
    intervals_overlap,
    minutes_to_time,
    time_to_minutes,
)
from salon_scheduler.errors import InvalidFormatError, InvalidServiceDurationError
from salon_scheduler.schemas.booking_schema import Booking
from salon_scheduler.schemas.settings_schema import SchedulingSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slot:
    """A bookable window on a date."""

    start_time: str
    end_time: str

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)


@dataclass(frozen=True)
class GridSlot:
    """A grid position with its availability, for day views."""

    start_time: str
    end_time: str
    available: bool


@dataclass(frozen=True)
class OccupiedInterval:
    """Time held by a pending/confirmed booking, preparation and break included."""

    start: int
    end: int
    booking_id: str = ""


def occupied_intervals(
    bookings: Iterable[Booking],
    break_between: int = 0,
    exclude_booking_id: Optional[str] = None,
) -> list[OccupiedInterval]:
    """Occupied intervals of the bookings that hold their time."""
    result = []
    for booking in bookings:
        if not booking.occupies or booking.id == exclude_booking_id:
            continue
        result.append(
            OccupiedInterval(
                start=time_to_minutes(booking.start_time),
                end=time_to_minutes(booking.end_time) + booking.preparation_time + break_between,
                booking_id=booking.id,
            )
        )
    return result


def open_windows(
    settings: SchedulingSettings,
    intervals: Iterable[ResolvedInterval],
    target: dt.date,
) -> list[tuple[int, int]]:
    """Open (start, end) minute windows for the date."""
    allows = sorted((i.start, i.end) for i in intervals if i.is_allow)
    if allows:
        return allows
    if day_of_week(target) == SUNDAY:
        return []
    return [(settings.work_start_minutes, settings.work_end_minutes)]


def _collides(
    start: int,
    end: int,
    occupied: list[OccupiedInterval],
    blocks: list[ResolvedInterval],
) -> bool:
    if any(intervals_overlap(start, end, o.start, o.end) for o in occupied):
        return True
    return any(intervals_overlap(start, end, b.start, b.end) for b in blocks)


def _check_inputs(duration: int, granularity: int) -> None:
    if duration <= 0:
        raise InvalidServiceDurationError(f"Service duration must be positive, got {duration}")
    if granularity <= 0:
        raise InvalidFormatError(f"Slot granularity must be positive, got {granularity}")


def generate_day_grid(
    settings: SchedulingSettings,
    duration: int,
    bookings: Iterable[Booking],
    intervals: Iterable[ResolvedInterval],
    target: dt.date,
    granularity: Optional[int] = None,
    break_between: Optional[int] = None,
    exclude_booking_id: Optional[str] = None,
) -> list[GridSlot]:
    """Every grid position of the day with an availability flag.

    Raises:
        InvalidServiceDurationError: If ``duration`` is not positive.
        InvalidFormatError: If ``granularity`` is not positive.
    """
    step = settings.slot_granularity if granularity is None else granularity
    pad = settings.break_between if break_between is None else break_between
    _check_inputs(duration, step)

    intervals = list(intervals)
    windows = open_windows(settings, intervals, target)
    if not windows:
        logger.debug("No open window on %s", target)
        return []

    occupied = occupied_intervals(bookings, pad, exclude_booking_id)
    blocks = [i for i in intervals if i.is_block]

    grid: dict[int, GridSlot] = {}
    for window_start, window_end in windows:
        start = window_start
        while start + duration <= window_end:
            end = start + duration
            available = not _collides(start, end, occupied, blocks)
            previous = grid.get(start)
            if previous is None or (available and not previous.available):
                grid[start] = GridSlot(minutes_to_time(start), minutes_to_time(end), available)
            start += step

    return [grid[key] for key in sorted(grid)]


def generate_slots(
    settings: SchedulingSettings,
    duration: int,
    bookings: Iterable[Booking],
    intervals: Iterable[ResolvedInterval],
    target: dt.date,
    granularity: Optional[int] = None,
    break_between: Optional[int] = None,
    exclude_booking_id: Optional[str] = None,
) -> list[Slot]:
    """Available slots for the date, ascending by start time.

    Args:
        settings: Working hours, break and default granularity.
        duration: Minutes the service occupies.
        bookings: Bookings on ``target``. Non-occupying statuses are ignored.
        intervals: Exception intervals resolved for ``target``.
        target: The calendar date.
        granularity: Grid step in minutes (defaults to the settings value).
        break_between: Override for the settings break.
        exclude_booking_id: A booking to leave out of the occupancy check,
            used when moving that booking.

    Raises:
        InvalidServiceDurationError: If ``duration`` is not positive.
    """
    grid = generate_day_grid(
        settings, duration, bookings, intervals, target,
        granularity=granularity,
        break_between=break_between,
        exclude_booking_id=exclude_booking_id,
    )
    slots = [Slot(g.start_time, g.end_time) for g in grid if g.available]
    logger.debug("%d of %d grid slot(s) available on %s", len(slots), len(grid), target)
    return slots


def is_interval_free(
    settings: SchedulingSettings,
    start_time: str,
    end_time: str,
    bookings: Iterable[Booking],
    intervals: Iterable[ResolvedInterval],
    target: dt.date,
    break_between: Optional[int] = None,
    exclude_booking_id: Optional[str] = None,
) -> bool:
    """Whether one explicit interval can be committed on the date.

    Used at commit time, so it does not require the start to sit on the
    listing grid. The interval must fit inside an open window and must not
    collide with occupied bookings or block intervals.
    """
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    if end <= start:
        raise InvalidFormatError(f"End time {end_time} must be after start time {start_time}")
    pad = settings.break_between if break_between is None else break_between

    intervals = list(intervals)
    windows = open_windows(settings, intervals, target)
    if not any(w_start <= start and end <= w_end for w_start, w_end in windows):
        return False

    occupied = occupied_intervals(bookings, pad, exclude_booking_id)
    blocks = [i for i in intervals if i.is_block]
    return not _collides(start, end, occupied, blocks)
