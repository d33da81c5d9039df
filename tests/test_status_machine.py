"""Tests for the booking status machine."""

import pytest

from salon_scheduler.engine.status_machine import BookingStatusMachine
from salon_scheduler.errors import InvalidTransitionError
from salon_scheduler.schemas.booking_schema import BookingStatus

PENDING = BookingStatus.PENDING
CONFIRMED = BookingStatus.CONFIRMED
COMPLETED = BookingStatus.COMPLETED
CANCELLED = BookingStatus.CANCELLED
NO_SHOW = BookingStatus.NO_SHOW


class TestValidTransitions:
    @pytest.mark.parametrize(
        "current,new",
        [
            (PENDING, CONFIRMED),
            (PENDING, CANCELLED),
            (CONFIRMED, COMPLETED),
            (CONFIRMED, CANCELLED),
            (CONFIRMED, NO_SHOW),
        ],
    )
    def test_allowed(self, current, new):
        assert BookingStatusMachine.transition(current, new) == new

    def test_valid_targets_from_confirmed(self):
        assert set(BookingStatusMachine.get_valid_targets(CONFIRMED)) == {
            COMPLETED, CANCELLED, NO_SHOW,
        }


class TestInvalidTransitions:
    @pytest.mark.parametrize("new", list(BookingStatus))
    def test_cancelled_is_terminal(self, new):
        with pytest.raises(InvalidTransitionError):
            BookingStatusMachine.transition(CANCELLED, new)

    @pytest.mark.parametrize("terminal", [COMPLETED, NO_SHOW])
    def test_other_terminals(self, terminal):
        for new in BookingStatus:
            assert not BookingStatusMachine.can_transition(terminal, new)

    def test_pending_cannot_complete(self):
        with pytest.raises(InvalidTransitionError, match="Valid targets"):
            BookingStatusMachine.transition(PENDING, COMPLETED)

    def test_pending_cannot_be_no_show(self):
        assert not BookingStatusMachine.can_transition(PENDING, NO_SHOW)

    def test_confirmed_cannot_go_back_to_pending(self):
        assert not BookingStatusMachine.can_transition(CONFIRMED, PENDING)


class TestTerminal:
    def test_is_terminal(self):
        assert BookingStatusMachine.is_terminal(CANCELLED)
        assert BookingStatusMachine.is_terminal(COMPLETED)
        assert BookingStatusMachine.is_terminal(NO_SHOW)
        assert not BookingStatusMachine.is_terminal(PENDING)
        assert not BookingStatusMachine.is_terminal(CONFIRMED)
