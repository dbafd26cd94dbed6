"""
Lifecycle operations that move a booking through the status state machine:
confirm, check-in, check-out, cancel, no-show.

Each operation runs in its own transaction with the booking row locked,
recomputes totals from the ledger before evaluating guards, and only writes
after assert_transition() has accepted the move.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from innkeeper.core import metrics
from innkeeper.core.logging import get_logger
from innkeeper.models.booking import Booking
from innkeeper.models.enums import BookingStatus, RoomStatus
from innkeeper.models.hotel import Room
from innkeeper.services import date_range
from innkeeper.services.payment_ledger import lock_booking, recompute_totals
from innkeeper.services.status_machine import assert_transition

logger = get_logger(__name__)

# Advisory room status after a transition; the bookings table stays authoritative
_ROOM_STATUS_AFTER = {
    BookingStatus.CHECKED_IN: RoomStatus.OCCUPIED,
    BookingStatus.CHECKED_OUT: RoomStatus.CLEANING,
}


async def transition_booking(
    db: AsyncSession,
    booking_id: int,
    target: BookingStatus,
    actor: str,
    guest_id: Optional[int] = None,
) -> Booking:
    target = BookingStatus(target)
    try:
        booking = await lock_booking(db, booking_id, guest_id)
        await recompute_totals(db, booking.id)

        previous = booking.status
        assert_transition(booking, target, date_range.today())

        now = datetime.now(timezone.utc)
        booking.status = target.value
        if target == BookingStatus.CHECKED_IN:
            booking.checked_in_at = now
        elif target == BookingStatus.CHECKED_OUT:
            booking.checked_out_at = now
        elif target == BookingStatus.CANCELLED:
            booking.cancelled_at = now

        room_status = _ROOM_STATUS_AFTER.get(target)
        if room_status is not None:
            await db.execute(
                update(Room).where(Room.id == booking.room_id).values(status=room_status.value)
            )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(booking)
    metrics.record_transition(previous, target.value)
    logger.info(
        "status_transition",
        booking_id=booking.id,
        reference=booking.booking_reference,
        from_status=previous,
        to_status=target.value,
        trigger=actor,
    )
    return booking


async def confirm_booking(db: AsyncSession, booking_id: int) -> Booking:
    """Explicit staff/admin confirmation of a Pending booking."""
    return await transition_booking(db, booking_id, BookingStatus.CONFIRMED, actor="staff")


async def check_in(db: AsyncSession, booking_id: int) -> Booking:
    return await transition_booking(db, booking_id, BookingStatus.CHECKED_IN, actor="staff")


async def check_out(db: AsyncSession, booking_id: int) -> Booking:
    return await transition_booking(db, booking_id, BookingStatus.CHECKED_OUT, actor="staff")


async def mark_no_show(db: AsyncSession, booking_id: int) -> Booking:
    return await transition_booking(db, booking_id, BookingStatus.NO_SHOW, actor="staff")


async def cancel_booking(
    db: AsyncSession,
    booking_id: int,
    guest_id: Optional[int] = None,
) -> Booking:
    """
    Cancel a Pending or Confirmed booking. With guest_id set, only the owner
    may cancel. Refunds are handled outside the engine.
    """
    actor = "guest" if guest_id is not None else "staff"
    return await transition_booking(db, booking_id, BookingStatus.CANCELLED, actor=actor, guest_id=guest_id)
