"""
Tests for the booking status state machine.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest

from innkeeper.core.exceptions import InvalidStateTransition
from innkeeper.models.enums import BookingStatus as S
from innkeeper.services.status_machine import (
    HAPPY_PATH,
    assert_transition,
    can_transition,
    is_terminal,
    promoted_status,
)

TODAY = date(2025, 3, 1)


@dataclass
class FakeBooking:
    status: str
    outstanding_amount: Decimal = Decimal("0")
    check_in_date: date = TODAY


@pytest.mark.parametrize("status", [S.CHECKED_OUT, S.CANCELLED, S.NO_SHOW])
def test_terminal_states_have_no_exits(status):
    assert is_terminal(status)
    assert not any(can_transition(status, target) for target in S)


def test_happy_path_moves_forward_only():
    for current, target in zip(HAPPY_PATH, HAPPY_PATH[1:]):
        assert can_transition(current, target)
        assert not can_transition(target, current)


@pytest.mark.parametrize(
    "current, target",
    [
        (S.PENDING, S.CHECKED_IN),
        (S.PENDING, S.NO_SHOW),
        (S.CHECKED_IN, S.CANCELLED),
        (S.CONFIRMED, S.PENDING),
    ],
)
def test_illegal_transitions(current, target):
    with pytest.raises(InvalidStateTransition):
        assert_transition(FakeBooking(status=current.value), target, TODAY)


def test_check_in_guards():
    assert_transition(FakeBooking(status="Confirmed"), S.CHECKED_IN, TODAY)

    with pytest.raises(InvalidStateTransition):
        assert_transition(FakeBooking(status="Confirmed", outstanding_amount=Decimal("0.01")), S.CHECKED_IN, TODAY)

    with pytest.raises(InvalidStateTransition):
        assert_transition(FakeBooking(status="Confirmed", check_in_date=date(2025, 3, 2)), S.CHECKED_IN, TODAY)


def test_check_out_requires_settled_balance():
    with pytest.raises(InvalidStateTransition) as exc_info:
        assert_transition(FakeBooking(status="CheckedIn", outstanding_amount=Decimal("30")), S.CHECKED_OUT, TODAY)
    assert exc_info.value.context["outstanding_amount"] == "30.00"


def test_promoted_status():
    assert promoted_status("Pending", Decimal("300"), Decimal("300")) == S.CONFIRMED
    assert promoted_status("Pending", Decimal("299.99"), Decimal("300")) == S.PENDING
    # Never demotes, never touches other states
    assert promoted_status("Confirmed", Decimal("0"), Decimal("300")) == S.CONFIRMED
    assert promoted_status("Cancelled", Decimal("300"), Decimal("300")) == S.CANCELLED
