"""
Finite state machine for booking status changes.

Every legal status change is listed explicitly. Anything not in the table,
including every change out of a terminal status, is rejected.

    pending   -> confirmed | cancelled
    confirmed -> completed | cancelled | no_show
    cancelled, completed, no_show are terminal

Usage:
    new_status = BookingStatusMachine.transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
"""

import logging
from dataclasses import dataclass

from salon_scheduler.errors import InvalidTransitionError
from salon_scheduler.schemas.booking_schema import TERMINAL_STATUSES, BookingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """A single valid status change."""
    from_status: BookingStatus
    to_status: BookingStatus


class BookingStatusMachine:
    """Validates booking status changes against the transition table."""

    TRANSITIONS: list[Transition] = [
        # --- Awaiting admin approval ---
        Transition(BookingStatus.PENDING, BookingStatus.CONFIRMED),
        Transition(BookingStatus.PENDING, BookingStatus.CANCELLED),

        # --- Confirmed ---
        Transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
        Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
        Transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW),
    ]

    @classmethod
    def can_transition(cls, current: BookingStatus, new: BookingStatus) -> bool:
        return any(
            t.from_status == current and t.to_status == new for t in cls.TRANSITIONS
        )

    @classmethod
    def transition(cls, current: BookingStatus, new: BookingStatus) -> BookingStatus:
        """
        Validate a status change.

        Returns:
            The new status.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        if cls.can_transition(current, new):
            logger.debug("Status transition: %s -> %s", current.value, new.value)
            return new

        valid = [s.value for s in cls.get_valid_targets(current)]
        raise InvalidTransitionError(
            f"No valid transition from '{current.value}' to '{new.value}'. "
            f"Valid targets: {valid}"
        )

    @classmethod
    def get_valid_targets(cls, current: BookingStatus) -> list[BookingStatus]:
        """Return all statuses reachable from ``current``."""
        return [t.to_status for t in cls.TRANSITIONS if t.from_status == current]

    @staticmethod
    def is_terminal(status: BookingStatus) -> bool:
        return status in TERMINAL_STATUSES
