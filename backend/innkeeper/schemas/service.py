"""
Pydantic schemas for post-booking service charges.
"""

from datetime import date
from typing import Optional

from pydantic import Field

from innkeeper.schemas.base import CamelSchema, Money
from innkeeper.schemas.payment import UpdatedTotals


class ServiceAdd(CamelSchema):
    service_id: int
    quantity: int = Field(..., gt=0, le=100)
    notes: Optional[str] = Field(None, max_length=500)


class ServiceUsageResponse(CamelSchema):
    usage_id: int
    service_id: int
    service_name: str
    category: Optional[str] = None
    quantity: int
    unit_price: Money
    line_total: Money
    service_date: date


class ServiceChangeResponse(CamelSchema):
    usage: Optional[ServiceUsageResponse] = None
    updated_totals: UpdatedTotals
