"""
Per-room lock strategy interface.
Booking creation holds one of these for the whole transaction so the
availability check and the insert cannot interleave with another writer.
"""

from abc import ABC, abstractmethod

from sqlalchemy.ext.asyncio import AsyncSession


class RoomLock(ABC):
    """
    Interface for per-room serialization strategies.

    Implementations:
    - RowRoomLock: SELECT ... FOR UPDATE on the rooms row
    - AdvisoryRoomLock: PostgreSQL transaction-scoped advisory lock

    Locks are released by the storage layer at COMMIT/ROLLBACK; there is no
    explicit release.
    """

    name: str = "abstract"

    @abstractmethod
    async def acquire(self, db: AsyncSession, room_id: int) -> bool:
        """
        Block until the caller's transaction owns the room.

        Args:
            db: Session whose transaction will hold the lock
            room_id: Room to lock

        Returns:
            True if the room exists and is now locked,
            False if there is no such room
        """
        pass
