"""
Front-desk endpoints that drive the booking lifecycle. Staff or admin only.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from innkeeper.core.logging import get_logger
from innkeeper.core.security import Identity, require_staff
from innkeeper.db.session import get_db
from innkeeper.schemas.booking import BookingResponse
from innkeeper.schemas.payment import PaymentCreate, PaymentRecordedResponse, PaymentResponse, UpdatedTotals
from innkeeper.services import lifecycle_service, payment_ledger
from innkeeper.services.cache_service import invalidate_room_availability
from innkeeper.services.receipts import dispatch_receipt, payment_receipt

logger = get_logger(__name__)
router = APIRouter(prefix="/staff/bookings", tags=["Staff"])


@router.post(
    "/{booking_id}/payments",
    response_model=PaymentRecordedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def desk_payment_endpoint(
    booking_id: int,
    payment_data: PaymentCreate,
    background_tasks: BackgroundTasks,
    staff: Identity = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Record a cash or card payment taken at the desk against any booking."""
    outcome = await payment_ledger.record_payment(
        db,
        booking_id,
        payment_data.amount,
        payment_data.method,
        transaction_id=payment_data.transaction_id,
        notes=payment_data.notes or f"Desk payment recorded by staff {staff.subject_id}",
    )
    background_tasks.add_task(dispatch_receipt, payment_receipt(outcome.booking, outcome.payment))

    return PaymentRecordedResponse(
        payment_reference=outcome.payment.payment_reference,
        payment=PaymentResponse.model_validate(outcome.payment),
        updated_totals=UpdatedTotals(**outcome.totals.as_dict(), status=outcome.booking.status),
        fully_paid=outcome.totals.fully_paid,
        message="Payment recorded successfully",
    )


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_endpoint(
    booking_id: int,
    staff: Identity = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    booking = await lifecycle_service.confirm_booking(db, booking_id)
    return BookingResponse.from_booking(booking)


@router.post("/{booking_id}/check-in", response_model=BookingResponse)
async def check_in_endpoint(
    booking_id: int,
    staff: Identity = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Requires a fully paid booking whose check-in date has arrived."""
    booking = await lifecycle_service.check_in(db, booking_id)
    return BookingResponse.from_booking(booking)


@router.post("/{booking_id}/check-out", response_model=BookingResponse)
async def check_out_endpoint(
    booking_id: int,
    staff: Identity = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    booking = await lifecycle_service.check_out(db, booking_id)
    await invalidate_room_availability(booking.room_id)
    return BookingResponse.from_booking(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_endpoint(
    booking_id: int,
    staff: Identity = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    booking = await lifecycle_service.cancel_booking(db, booking_id)
    await invalidate_room_availability(booking.room_id)
    return BookingResponse.from_booking(booking)


@router.post("/{booking_id}/no-show", response_model=BookingResponse)
async def no_show_endpoint(
    booking_id: int,
    staff: Identity = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    booking = await lifecycle_service.mark_no_show(db, booking_id)
    await invalidate_room_availability(booking.room_id)
    return BookingResponse.from_booking(booking)
