"""
PostgreSQL advisory lock strategy for per-room serialization.

pg_advisory_xact_lock(namespace, room_id) is held until the transaction ends.
Unlike the row lock it does not touch the rooms row, so catalog updates by
staff (room status, housekeeping) never wait behind a booking in progress.

Tradeoff: PostgreSQL only, and the lock protects nothing for writers that do
not take it. The exclusion constraint on bookings remains the final backstop.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from innkeeper.models.hotel import Room
from innkeeper.services.interfaces.room_lock import RoomLock

# First key of the two-key advisory lock space, reserved for room bookings
ROOM_LOCK_NAMESPACE = 4201


class AdvisoryRoomLock(RoomLock):
    """
    Transaction-scoped advisory lock keyed by room id.

    Use when:
    - Running on PostgreSQL
    - Rooms rows are updated frequently by other workflows
    """

    name = "advisory"

    async def acquire(self, db: AsyncSession, room_id: int) -> bool:
        await db.execute(select(func.pg_advisory_xact_lock(ROOM_LOCK_NAMESPACE, room_id)))
        result = await db.execute(select(Room.id).where(Room.id == room_id))
        return result.scalar_one_or_none() is not None
