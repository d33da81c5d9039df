"""
External calendar mirroring.

The calendar only mirrors bookings visually; correctness never depends on
it. Calls are fire-and-forget: failures are logged and swallowed.
"""

import logging
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class CalendarAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class CalendarSync(Protocol):
    def sync(self, booking_id: str, action: CalendarAction) -> None: ...


class NullCalendarSync:
    """Used when no external calendar is connected."""

    def sync(self, booking_id: str, action: CalendarAction) -> None:
        logger.debug("Calendar sync disabled, skipping %s for %s", action.value, booking_id)


class RecordingCalendarSync:
    """Keeps every call in memory."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, CalendarAction]] = []

    def sync(self, booking_id: str, action: CalendarAction) -> None:
        self.calls.append((booking_id, action))

    def reset(self) -> None:
        self.calls.clear()


def sync_quietly(calendar: CalendarSync, booking_id: str, action: CalendarAction) -> bool:
    """Run a sync call, never letting its failure reach the caller."""
    try:
        calendar.sync(booking_id, action)
    except Exception:
        logger.exception("Calendar sync %s failed for booking %s", action.value, booking_id)
        return False
    return True
