"""
Minute-of-day arithmetic.

All interval math in the engine works on integer minutes since midnight
with half-open ``[start, end)`` semantics: touching endpoints do not overlap.
"""

import datetime as dt

from salon_scheduler.errors import InvalidFormatError

MINUTES_PER_DAY = 24 * 60
LAST_MINUTE = MINUTES_PER_DAY - 1

# Sunday-first numbering, matching how exceptions are stored.
SUNDAY = 0


def time_to_minutes(value: str) -> int:
    """Parse "HH:MM" (or the "HH:MM:SS" database form) into minutes since midnight.

    Raises:
        InvalidFormatError: If the value is not numeric hours and minutes
            separated by a colon.
    """
    if not isinstance(value, str):
        raise InvalidFormatError(f"Time must be a string, got {value!r}")
    parts = value.strip().split(":")
    if len(parts) == 3:
        parts = parts[:2]
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise InvalidFormatError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if minutes > 59 or hours > 24 or (hours == 24 and minutes > 0):
        raise InvalidFormatError(f"Time out of range: {value!r}")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM".

    Negative input is rejected. Values past the end of the day are clamped
    to 23:59, the full-day sentinel used by exceptions.
    """
    if minutes < 0:
        raise InvalidFormatError(f"Minutes must be non-negative, got {minutes}")
    minutes = min(minutes, LAST_MINUTE)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """True iff half-open intervals [a_start, a_end) and [b_start, b_end) intersect."""
    return a_start < b_end and a_end > b_start


def calculate_end_time(start_time: str, duration_minutes: int) -> str:
    """End time of a booking that starts at ``start_time``.

    Raises:
        InvalidFormatError: If the booking would run past midnight.
    """
    end = time_to_minutes(start_time) + duration_minutes
    if end > MINUTES_PER_DAY:
        raise InvalidFormatError(
            f"{start_time} + {duration_minutes} min runs past midnight"
        )
    if end == MINUTES_PER_DAY:
        return "24:00"
    return minutes_to_time(end)


def parse_date(value: str) -> dt.date:
    """Parse a "YYYY-MM-DD" string."""
    try:
        return dt.datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (ValueError, AttributeError):
        raise InvalidFormatError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None


def day_of_week(target: dt.date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (target.weekday() + 1) % 7


def combine(target: dt.date, time_value: str) -> dt.datetime:
    """Naive local datetime for a booking date and "HH:MM" start."""
    minutes = time_to_minutes(time_value)
    return dt.datetime.combine(target, dt.time()) + dt.timedelta(minutes=minutes)
