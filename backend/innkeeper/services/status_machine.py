"""
Booking status state machine.

    Pending -> Confirmed -> CheckedIn -> CheckedOut
       |           |
       +-----------+--> Cancelled
                   +--> NoShow

CheckedOut, Cancelled and NoShow are terminal. Guards:

- Pending -> Confirmed: fully paid (automatic) or explicit staff confirmation
- Confirmed -> CheckedIn: nothing outstanding and the check-in date has come
- CheckedIn -> CheckedOut: nothing outstanding

assert_transition() only inspects the booking; callers apply the change after
it returns, so a rejected transition never leaves a partial write behind.
"""

from datetime import date

from innkeeper.core.exceptions import InvalidStateTransition
from innkeeper.models.enums import TERMINAL_STATUSES, BookingStatus
from innkeeper.services.pricing import ZERO, money

S = BookingStatus

TRANSITIONS: dict[BookingStatus, frozenset] = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.CHECKED_IN, S.CANCELLED, S.NO_SHOW}),
    S.CHECKED_IN: frozenset({S.CHECKED_OUT}),
    S.CHECKED_OUT: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

# Position on the happy path, used to check monotonicity
HAPPY_PATH = (S.PENDING, S.CONFIRMED, S.CHECKED_IN, S.CHECKED_OUT)


def is_terminal(status) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES


def can_transition(current, target) -> bool:
    return BookingStatus(target) in TRANSITIONS[BookingStatus(current)]


def assert_transition(booking, target, today: date) -> None:
    current = BookingStatus(booking.status)
    target = BookingStatus(target)

    if not can_transition(current, target):
        raise InvalidStateTransition(
            f"Cannot move booking from {current.value} to {target.value}",
            current_status=current.value,
            target_status=target.value,
        )

    outstanding = money(booking.outstanding_amount)

    if target == S.CHECKED_IN:
        if outstanding > ZERO:
            raise InvalidStateTransition(
                "Outstanding balance must be settled before check-in",
                current_status=current.value,
                target_status=target.value,
                outstanding_amount=str(outstanding),
            )
        if booking.check_in_date > today:
            raise InvalidStateTransition(
                "Check-in is not possible before the check-in date",
                current_status=current.value,
                target_status=target.value,
                check_in_date=booking.check_in_date.isoformat(),
            )

    if target == S.CHECKED_OUT and outstanding > ZERO:
        raise InvalidStateTransition(
            "Outstanding balance must be settled before check-out",
            current_status=current.value,
            target_status=target.value,
            outstanding_amount=str(outstanding),
        )


def promoted_status(current, paid, total) -> BookingStatus:
    """Status after a payment or total change: Pending becomes Confirmed once fully paid."""
    current = BookingStatus(current)
    if current == S.PENDING and money(paid) >= money(total):
        return S.CONFIRMED
    return current
