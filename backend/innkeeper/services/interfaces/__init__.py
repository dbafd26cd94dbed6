"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .room_lock import RoomLock
from .row_lock import RowRoomLock

__all__ = ['RoomLock', 'RowRoomLock']
