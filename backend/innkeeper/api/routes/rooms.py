"""
Room availability lookup, cached in Redis.

The answer is advisory: creating a booking re-checks under the room lock,
so a stale cache entry can only cost a 409, never a double booking.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from innkeeper.core.logging import get_logger
from innkeeper.db.session import get_db
from innkeeper.schemas.availability import AvailabilityResponse
from innkeeper.services import date_range
from innkeeper.services.availability import room_availability
from innkeeper.services.cache_service import get_cached_availability, set_cached_availability

logger = get_logger(__name__)
router = APIRouter(prefix="/rooms", tags=["Rooms"])


@router.get("/{room_id}/availability", response_model=AvailabilityResponse)
async def room_availability_endpoint(
    room_id: int,
    check_in: str = Query(..., alias="checkIn"),
    check_out: str = Query(..., alias="checkOut"),
    db: AsyncSession = Depends(get_db),
):
    check_in_date = date_range.to_date_only(check_in)
    check_out_date = date_range.to_date_only(check_out)

    cached = await get_cached_availability(room_id, check_in_date, check_out_date)
    if cached:
        logger.info("availability_cache_hit", room_id=room_id)
        cached["cached"] = True
        return AvailabilityResponse(**cached)

    data = await room_availability(db, room_id, check_in_date, check_out_date)
    response = AvailabilityResponse(**data, cached=False)

    await set_cached_availability(
        room_id, check_in_date, check_out_date, response.model_dump(mode="json", exclude={"cached"})
    )
    return response
