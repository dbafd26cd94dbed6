"""
Row lock strategy - SELECT ... FOR UPDATE on the room row.
Works on any backend with row locks. On SQLite the clause is dropped and the
BEGIN IMMEDIATE transaction (see db.session) provides the serialization.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from innkeeper.models.hotel import Room
from innkeeper.services.interfaces.room_lock import RoomLock


class RowRoomLock(RoomLock):
    """
    Lock the rooms row itself.

    Use when:
    - Running on anything other than PostgreSQL
    - The existence check and the lock should be one round trip
    """

    name = "row"

    async def acquire(self, db: AsyncSession, room_id: int) -> bool:
        result = await db.execute(
            select(Room.id).where(Room.id == room_id).with_for_update()
        )
        return result.scalar_one_or_none() is not None
