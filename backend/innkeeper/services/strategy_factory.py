"""
Room lock strategy factory.
Configures which per-room serialization strategy booking creation uses.
"""

from typing import Optional

from innkeeper.core.config import get_settings
from innkeeper.core.logging import get_logger
from innkeeper.services.advisory_lock_service import AdvisoryRoomLock
from innkeeper.services.interfaces.room_lock import RoomLock
from innkeeper.services.interfaces.row_lock import RowRoomLock

logger = get_logger(__name__)


def get_room_lock_strategy(dialect_name: str) -> RoomLock:
    """
    Get configured room lock strategy.

    Strategy selection:
    - "advisory" on PostgreSQL: AdvisoryRoomLock
    - everything else: RowRoomLock

    Selected via the ROOM_LOCK_STRATEGY env var.
    """
    strategy = get_settings().ROOM_LOCK_STRATEGY

    if strategy == "advisory":
        if dialect_name == "postgresql":
            return AdvisoryRoomLock()
        logger.warning("advisory_lock_unsupported", dialect=dialect_name, fallback="row")
    return RowRoomLock()


_strategies: dict[str, RoomLock] = {}


def get_room_lock(dialect_name: Optional[str] = None) -> RoomLock:
    """Get the room lock singleton for a dialect."""
    key = dialect_name or "default"
    if key not in _strategies:
        _strategies[key] = get_room_lock_strategy(key)
    return _strategies[key]
