"""
Pydantic schemas for the availability lookup.
"""

from datetime import date
from typing import Optional

from innkeeper.schemas.base import CamelSchema, Money


class ConflictingBooking(CamelSchema):
    reference: str
    check_in_date: date
    check_out_date: date
    status: str


class AvailabilityResponse(CamelSchema):
    room_id: int
    check_in_date: date
    check_out_date: date
    available: bool
    nights: int
    nightly_price: Money
    estimated_base_amount: Optional[Money] = None
    conflicts: list[ConflictingBooking] = []
    cached: bool = False
