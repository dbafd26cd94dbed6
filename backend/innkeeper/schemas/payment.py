"""
Pydantic schemas for the payment ledger endpoints.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from innkeeper.models.enums import PaymentMethod
from innkeeper.schemas.base import CamelSchema, Money


class PaymentCreate(CamelSchema):
    # Sign is checked by the ledger so the error carries its kind
    amount: Decimal = Field(..., allow_inf_nan=False)
    method: PaymentMethod
    transaction_id: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)


class PaymentResponse(CamelSchema):
    id: int
    payment_reference: str
    amount: Money
    payment_method: str
    payment_status: str
    payment_type: str
    transaction_id: Optional[str] = None
    paid_at: datetime


class PaymentSummary(CamelSchema):
    total_payments: int
    completed_payments: int
    failed_payments: int
    total_paid: Money


class UpdatedTotals(CamelSchema):
    base_amount: Money
    services_amount: Money
    total_amount: Money
    paid_amount: Money
    outstanding_amount: Money
    status: str


class PaymentRecordedResponse(CamelSchema):
    payment_reference: str
    payment: PaymentResponse
    updated_totals: UpdatedTotals
    fully_paid: bool
    message: str


class PaymentHistoryResponse(CamelSchema):
    booking_id: int
    payments: list[PaymentResponse]
    payment_summary: PaymentSummary
