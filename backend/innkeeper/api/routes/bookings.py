"""
Guest booking endpoints: create, read, pay, add services, cancel.

Every write goes through the engine services, which own their transaction.
Receipts are dispatched as background tasks once the response is sent, and
the availability cache of the affected room is dropped after each change
that frees or takes nights.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from innkeeper.core.logging import get_logger
from innkeeper.core.security import get_current_guest_id
from innkeeper.db.session import get_db
from innkeeper.models.booking import Booking
from innkeeper.schemas.booking import (
    BookingCreate,
    BookingCreatedResponse,
    BookingDetailResponse,
    BookingResponse,
)
from innkeeper.schemas.payment import (
    PaymentCreate,
    PaymentHistoryResponse,
    PaymentRecordedResponse,
    PaymentResponse,
    PaymentSummary,
    UpdatedTotals,
)
from innkeeper.schemas.service import ServiceAdd, ServiceChangeResponse, ServiceUsageResponse
from innkeeper.services import booking_service, lifecycle_service, payment_ledger, service_charges
from innkeeper.services.cache_service import invalidate_room_availability
from innkeeper.services.pricing import Totals, money
from innkeeper.services.receipts import booking_receipt, dispatch_receipt, payment_receipt

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


def updated_totals(totals: Totals, booking_status: str) -> UpdatedTotals:
    return UpdatedTotals(**totals.as_dict(), status=booking_status)


def _booking_totals(booking: Booking) -> dict:
    return {
        "base_amount": booking.base_amount,
        "services_amount": booking.services_amount,
        "total_amount": booking.total_amount,
        "paid_amount": booking.paid_amount,
        "outstanding_amount": booking.outstanding_amount,
    }


@router.post("/", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    background_tasks: BackgroundTasks,
    guest_id: int = Depends(get_current_guest_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Reserve a room for a date range.

    The availability check and the insert run under a per-room lock, so two
    overlapping requests for the same room can never both succeed: the loser
    gets a 409 listing the conflicting bookings.
    """
    outcome = await booking_service.create_booking(
        db,
        guest_id,
        booking_data.check_in_date,
        booking_data.check_out_date,
        guest_count=booking_data.guest_count,
        special_requests=booking_data.special_requests,
        payment_option=booking_data.payment_option,
        payment_amount=booking_data.payment_amount,
        payment_method=booking_data.payment_method,
        room_id=booking_data.room_id,
        room_type_id=booking_data.room_type_id,
        branch_id=booking_data.branch_id,
    )
    booking = outcome.booking

    await invalidate_room_availability(booking.room_id)
    background_tasks.add_task(
        dispatch_receipt, booking_receipt(booking, outcome.nights, outcome.payment)
    )

    return BookingCreatedResponse(
        booking_id=booking.id,
        reference=booking.booking_reference,
        status=booking.status,
        room_id=booking.room_id,
        check_in_date=booking.check_in_date,
        check_out_date=booking.check_out_date,
        nights=outcome.nights,
        payment=PaymentResponse.model_validate(outcome.payment) if outcome.payment else None,
        warnings=outcome.warnings,
        message="Booking created successfully",
        **_booking_totals(booking),
    )


@router.get("/", response_model=list[BookingResponse])
async def list_guest_bookings(
    guest_id: int = Depends(get_current_guest_id),
    db: AsyncSession = Depends(get_db),
):
    """Get all bookings of the authenticated guest."""
    bookings = await booking_service.get_guest_bookings(db, guest_id)
    return [BookingResponse.from_booking(b) for b in bookings]


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking_endpoint(
    booking_id: int,
    guest_id: int = Depends(get_current_guest_id),
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_service.get_booking(db, booking_id, guest_id)
    payments, summary = await payment_ledger.list_payments(db, booking.id)
    return BookingDetailResponse(
        **BookingResponse.from_booking(booking).model_dump(),
        payments=[PaymentResponse.model_validate(p) for p in payments],
        payment_summary=PaymentSummary(**summary),
    )


@router.post(
    "/{booking_id}/payments",
    response_model=PaymentRecordedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment_endpoint(
    booking_id: int,
    payment_data: PaymentCreate,
    background_tasks: BackgroundTasks,
    guest_id: int = Depends(get_current_guest_id),
    db: AsyncSession = Depends(get_db),
):
    """Pay (part of) the outstanding balance. Over-payment is refused."""
    outcome = await payment_ledger.record_payment(
        db,
        booking_id,
        payment_data.amount,
        payment_data.method,
        guest_id=guest_id,
        transaction_id=payment_data.transaction_id,
        notes=payment_data.notes,
    )
    background_tasks.add_task(dispatch_receipt, payment_receipt(outcome.booking, outcome.payment))

    return PaymentRecordedResponse(
        payment_reference=outcome.payment.payment_reference,
        payment=PaymentResponse.model_validate(outcome.payment),
        updated_totals=updated_totals(outcome.totals, outcome.booking.status),
        fully_paid=outcome.totals.fully_paid,
        message="Payment recorded successfully",
    )


@router.get("/{booking_id}/payments", response_model=PaymentHistoryResponse)
async def payment_history_endpoint(
    booking_id: int,
    guest_id: int = Depends(get_current_guest_id),
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_service.get_booking(db, booking_id, guest_id)
    payments, summary = await payment_ledger.list_payments(db, booking.id)
    return PaymentHistoryResponse(
        booking_id=booking.id,
        payments=[PaymentResponse.model_validate(p) for p in payments],
        payment_summary=PaymentSummary(**summary),
    )


@router.get("/{booking_id}/services", response_model=list[ServiceUsageResponse])
async def list_services_endpoint(
    booking_id: int,
    guest_id: int = Depends(get_current_guest_id),
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_service.get_booking(db, booking_id, guest_id)
    rows = await service_charges.list_services(db, booking.id)
    return [_usage_response(usage, service) for usage, service in rows]


@router.post(
    "/{booking_id}/services",
    response_model=ServiceChangeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_service_endpoint(
    booking_id: int,
    service_data: ServiceAdd,
    guest_id: int = Depends(get_current_guest_id),
    db: AsyncSession = Depends(get_db),
):
    """Add a catalog service at its current price."""
    outcome = await service_charges.add_service(
        db,
        booking_id,
        service_data.service_id,
        service_data.quantity,
        guest_id=guest_id,
        notes=service_data.notes,
    )
    return ServiceChangeResponse(
        usage=_usage_response(outcome.usage, outcome.service),
        updated_totals=updated_totals(outcome.totals, outcome.booking.status),
    )


@router.delete("/{booking_id}/services/{usage_id}", response_model=ServiceChangeResponse)
async def remove_service_endpoint(
    booking_id: int,
    usage_id: int,
    guest_id: int = Depends(get_current_guest_id),
    db: AsyncSession = Depends(get_db),
):
    totals = await service_charges.remove_service(db, booking_id, usage_id, guest_id=guest_id)
    booking = await booking_service.get_booking(db, booking_id, guest_id)
    return ServiceChangeResponse(updated_totals=updated_totals(totals, booking.status))


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    guest_id: int = Depends(get_current_guest_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a Pending or Confirmed booking and release its nights."""
    booking = await lifecycle_service.cancel_booking(db, booking_id, guest_id=guest_id)
    await invalidate_room_availability(booking.room_id)
    return BookingResponse.from_booking(booking)


def _usage_response(usage, service) -> ServiceUsageResponse:
    return ServiceUsageResponse(
        usage_id=usage.id,
        service_id=service.id,
        service_name=service.name,
        category=service.category,
        quantity=usage.quantity,
        unit_price=usage.unit_price,
        line_total=money(money(usage.unit_price) * usage.quantity),
        service_date=usage.service_date,
    )
