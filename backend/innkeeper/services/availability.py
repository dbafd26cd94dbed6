"""
Availability checker.

A room is available for [check_in, check_out) when no active booking
(status not Cancelled / CheckedOut / NoShow) on that room satisfies

    existing.check_in < candidate.check_out AND existing.check_out > candidate.check_in

Touching ranges are not conflicts, so a room can turn over on the same day.

Room.status is deliberately ignored here: it is a housekeeping hint, the
bookings table is the only source of truth. The one exception is
find_available_room(), which skips rooms flagged for Maintenance when it is
free to choose a room for the guest.

Results computed outside a booking transaction are advisory. The booking
service re-runs is_available() while holding the per-room lock.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from innkeeper.core.exceptions import RoomNotFound, RoomUnavailable
from innkeeper.core.logging import get_logger
from innkeeper.models.booking import Booking
from innkeeper.models.enums import INACTIVE_STATUSES, RoomStatus
from innkeeper.models.hotel import Room, RoomType
from innkeeper.services import date_range
from innkeeper.services.pricing import base_amount, money
from innkeeper.services.interfaces.room_lock import RoomLock

logger = get_logger(__name__)

_INACTIVE = [s.value for s in INACTIVE_STATUSES]


@dataclass(frozen=True)
class BookingSummary:
    booking_id: int
    reference: str
    check_in_date: date
    check_out_date: date
    status: str

    def as_dict(self) -> dict:
        return {
            "reference": self.reference,
            "checkInDate": self.check_in_date.isoformat(),
            "checkOutDate": self.check_out_date.isoformat(),
            "status": self.status,
        }


@dataclass
class AvailabilityResult:
    available: bool
    conflicts: list[BookingSummary] = field(default_factory=list)


def conflicting_bookings_query(
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[int] = None,
):
    query = (
        select(Booking)
        .where(
            Booking.room_id == room_id,
            Booking.status.not_in(_INACTIVE),
            Booking.check_in_date < check_out,
            Booking.check_out_date > check_in,
        )
        .order_by(Booking.check_in_date.asc())
    )
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)
    return query


async def is_available(
    db: AsyncSession,
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[int] = None,
) -> AvailabilityResult:
    result = await db.execute(
        conflicting_bookings_query(room_id, check_in, check_out, exclude_booking_id)
    )
    conflicts = [
        BookingSummary(
            booking_id=b.id,
            reference=b.booking_reference,
            check_in_date=b.check_in_date,
            check_out_date=b.check_out_date,
            status=b.status,
        )
        for b in result.scalars().all()
    ]
    return AvailabilityResult(available=not conflicts, conflicts=conflicts)


def unavailable_error(room_id: int, conflicts: list[BookingSummary]) -> RoomUnavailable:
    return RoomUnavailable(
        "Room is already booked for the selected dates",
        room_id=room_id,
        conflicts=[c.as_dict() for c in conflicts],
    )


async def find_available_room(
    db: AsyncSession,
    room_lock: RoomLock,
    room_type_id: int,
    branch_id: int,
    check_in: date,
    check_out: date,
) -> int:
    """
    Pick the first room of a type at a branch that is free for the dates.
    Must run inside the booking transaction: each candidate is locked before
    it is checked, and the lock on the chosen room is kept until commit.
    """
    candidates = await db.execute(
        select(Room.id)
        .where(
            Room.room_type_id == room_type_id,
            Room.branch_id == branch_id,
            Room.status != RoomStatus.MAINTENANCE.value,
        )
        .order_by(Room.id.asc())
    )
    room_ids = list(candidates.scalars().all())

    for room_id in room_ids:
        await room_lock.acquire(db, room_id)
        result = await is_available(db, room_id, check_in, check_out)
        if result.available:
            return room_id

    logger.info(
        "no_room_available",
        room_type_id=room_type_id,
        branch_id=branch_id,
        candidates=len(room_ids),
        check_in=check_in.isoformat(),
        check_out=check_out.isoformat(),
    )
    raise RoomUnavailable(
        "No rooms available for selected dates",
        room_type_id=room_type_id,
        branch_id=branch_id,
        conflicts=[],
    )


async def load_room(db: AsyncSession, room_id: int) -> tuple[Room, RoomType]:
    result = await db.execute(
        select(Room, RoomType)
        .join(RoomType, Room.room_type_id == RoomType.id)
        .where(Room.id == room_id)
    )
    row = result.one_or_none()
    if row is None:
        raise RoomNotFound("Room not found", room_id=room_id)
    return row[0], row[1]


async def room_availability(db: AsyncSession, room_id: int, check_in, check_out) -> dict:
    """Advisory answer for the availability endpoint, with a price estimate when free."""
    check_in = date_range.to_date_only(check_in)
    check_out = date_range.to_date_only(check_out)
    nights = date_range.nights_between(check_in, check_out)

    _, room_type = await load_room(db, room_id)
    result = await is_available(db, room_id, check_in, check_out)

    return {
        "room_id": room_id,
        "check_in_date": check_in,
        "check_out_date": check_out,
        "available": result.available,
        "nights": nights,
        "nightly_price": money(room_type.base_price),
        "estimated_base_amount": base_amount(room_type.base_price, nights) if result.available else None,
        "conflicts": [
            {
                "reference": c.reference,
                "check_in_date": c.check_in_date,
                "check_out_date": c.check_out_date,
                "status": c.status,
            }
            for c in result.conflicts
        ],
    }
