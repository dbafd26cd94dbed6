"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from innkeeper.models.booking import Booking
from innkeeper.models.enums import BookingStatus, PaymentMethod, PaymentOption
from innkeeper.schemas.base import CamelSchema, Money
from innkeeper.schemas.payment import PaymentResponse, PaymentSummary
from innkeeper.services.status_machine import can_transition


class BookingCreate(CamelSchema):
    """Either room_id, or room_type_id + branch_id to let the engine pick a room."""

    room_id: Optional[int] = None
    room_type_id: Optional[int] = None
    branch_id: Optional[int] = None
    # Strings on purpose: the engine truncates timestamps to their calendar date
    check_in_date: str
    check_out_date: str
    guest_count: int = 1
    special_requests: Optional[str] = Field(None, max_length=1000)
    payment_option: PaymentOption = PaymentOption.PAY_LATER
    payment_amount: Optional[Decimal] = Field(None, ge=0, allow_inf_nan=False)
    payment_method: Optional[PaymentMethod] = None


class TotalsResponse(CamelSchema):
    base_amount: Money
    services_amount: Money
    total_amount: Money
    paid_amount: Money
    outstanding_amount: Money


class BookingCreatedResponse(TotalsResponse):
    booking_id: int
    reference: str
    status: str
    room_id: int
    check_in_date: date
    check_out_date: date
    nights: int
    payment: Optional[PaymentResponse] = None
    warnings: list[str] = []
    message: str


class BookingResponse(TotalsResponse):
    booking_id: int
    reference: str
    guest_id: int
    room_id: int
    check_in_date: date
    check_out_date: date
    number_of_guests: int
    special_requests: Optional[str] = None
    status: str
    can_cancel: bool = False
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            booking_id=booking.id,
            reference=booking.booking_reference,
            guest_id=booking.guest_id,
            room_id=booking.room_id,
            check_in_date=booking.check_in_date,
            check_out_date=booking.check_out_date,
            number_of_guests=booking.number_of_guests,
            special_requests=booking.special_requests,
            status=booking.status,
            can_cancel=can_transition(booking.status, BookingStatus.CANCELLED),
            base_amount=booking.base_amount,
            services_amount=booking.services_amount,
            total_amount=booking.total_amount,
            paid_amount=booking.paid_amount,
            outstanding_amount=booking.outstanding_amount,
            checked_in_at=booking.checked_in_at,
            checked_out_at=booking.checked_out_at,
            cancelled_at=booking.cancelled_at,
            created_at=booking.created_at,
        )


class BookingDetailResponse(BookingResponse):
    payments: list[PaymentResponse] = []
    payment_summary: PaymentSummary
