"""
Payment ledger: append-only record of money received against a booking.

Totals are never maintained as running counters. recompute_totals() derives
paid_amount from SUM(completed payments) and services_amount from
SUM(quantity * unit_price) every time, so concurrent payments and service
changes converge on the same numbers whatever order they commit in.

Over-payment is refused here (PaymentExceedsOutstanding) rather than left to
the UI tier, which keeps 0 <= paid_amount <= total_amount true for every
booking. Tips or adjustments belong in a separate ledger entry type.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from innkeeper.core import metrics
from innkeeper.core.exceptions import (
    BookingAccessDenied,
    BookingNotFound,
    BookingNotPayable,
    InvalidAmount,
    PaymentExceedsOutstanding,
)
from innkeeper.core.logging import get_logger
from innkeeper.models.booking import Booking
from innkeeper.models.enums import BookingStatus, PaymentMethod, PaymentStatus, PaymentType
from innkeeper.models.payment import Payment
from innkeeper.models.service import ServiceUsage
from innkeeper.services import references
from innkeeper.services.pricing import ZERO, Totals, compute_totals, money
from innkeeper.services.status_machine import promoted_status

logger = get_logger(__name__)

NON_PAYABLE_STATUSES = frozenset({
    BookingStatus.CANCELLED.value,
    BookingStatus.NO_SHOW.value,
    BookingStatus.CHECKED_OUT.value,
})


@dataclass
class PaymentOutcome:
    payment: Payment
    booking: Booking
    totals: Totals


async def lock_booking(db: AsyncSession, booking_id: int, guest_id: Optional[int] = None) -> Booking:
    """Load a booking with a row lock held until the transaction ends."""
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise BookingNotFound(f"Booking {booking_id} not found", booking_id=booking_id)
    if guest_id is not None and booking.guest_id != guest_id:
        raise BookingAccessDenied("Not your booking", booking_id=booking_id)
    return booking


async def ledger_sums(db: AsyncSession, booking_id: int) -> tuple[Decimal, Decimal]:
    """(paid, services) straight from the ledger tables."""
    paid = await db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.booking_id == booking_id,
            Payment.payment_status == PaymentStatus.COMPLETED.value,
        )
    )
    services = await db.execute(
        select(func.coalesce(func.sum(ServiceUsage.quantity * ServiceUsage.unit_price), 0)).where(
            ServiceUsage.booking_id == booking_id
        )
    )
    return money(paid.scalar_one()), money(services.scalar_one())


async def recompute_totals(db: AsyncSession, booking_id: int) -> Totals:
    """
    Rewrite the derived money columns of a booking from the ledger.
    Idempotent: calling it twice without a ledger change writes the same values.
    """
    booking = await db.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound(f"Booking {booking_id} not found", booking_id=booking_id)

    paid, services = await ledger_sums(db, booking_id)
    totals = compute_totals(booking.base_amount, services, paid)

    booking.services_amount = totals.services_amount
    booking.total_amount = totals.total_amount
    booking.paid_amount = totals.paid_amount
    booking.outstanding_amount = totals.outstanding_amount
    await db.flush()
    return totals


def apply_promotion(booking: Booking, totals: Totals) -> bool:
    """Promote Pending to Confirmed once fully paid. Returns True if the status changed."""
    previous = booking.status
    new_status = promoted_status(previous, totals.paid_amount, totals.total_amount).value
    if new_status == previous:
        return False
    booking.status = new_status
    metrics.record_transition(previous, new_status)
    logger.info(
        "status_transition",
        booking_id=booking.id,
        from_status=previous,
        to_status=new_status,
        trigger="payment",
    )
    return True


async def append_payment(
    db: AsyncSession,
    booking_id: int,
    amount: Decimal,
    method: PaymentMethod,
    payment_type: PaymentType = PaymentType.PARTIAL,
    transaction_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> Payment:
    """Insert one Completed ledger row. The caller owns the transaction."""
    payment = Payment(
        payment_reference=references.new_payment_reference(),
        booking_id=booking_id,
        amount=money(amount),
        payment_method=PaymentMethod(method).value,
        payment_status=PaymentStatus.COMPLETED.value,
        payment_type=PaymentType(payment_type).value,
        transaction_id=transaction_id,
        notes=notes,
    )
    db.add(payment)
    await db.flush()
    metrics.record_payment(payment.payment_method, payment.payment_type)
    return payment


async def record_payment(
    db: AsyncSession,
    booking_id: int,
    amount,
    method: PaymentMethod,
    guest_id: Optional[int] = None,
    payment_type: PaymentType = PaymentType.PARTIAL,
    transaction_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> PaymentOutcome:
    """
    Record a payment against a booking in its own transaction.
    Pass guest_id to restrict the operation to the booking's owner.
    """
    amount = money(amount)
    if amount <= ZERO:
        raise InvalidAmount("Invalid amount: must be greater than 0", amount=str(amount))

    try:
        booking = await lock_booking(db, booking_id, guest_id)

        if booking.status in NON_PAYABLE_STATUSES:
            raise BookingNotPayable(
                f"Cannot make payment for {booking.status} booking",
                booking_id=booking_id,
                status=booking.status,
            )

        current = await recompute_totals(db, booking.id)
        if amount > current.outstanding_amount:
            raise PaymentExceedsOutstanding(
                "Payment amount exceeds outstanding balance",
                booking_id=booking_id,
                outstanding_amount=str(current.outstanding_amount),
            )

        payment = await append_payment(
            db,
            booking.id,
            amount,
            method,
            payment_type=payment_type,
            transaction_id=transaction_id,
            notes=notes or f"Additional payment for booking {booking.booking_reference}",
        )
        totals = await recompute_totals(db, booking.id)
        apply_promotion(booking, totals)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(booking)
    await db.refresh(payment)

    logger.info(
        "payment_recorded",
        booking_id=booking.id,
        payment_reference=payment.payment_reference,
        amount=str(payment.amount),
        method=payment.payment_method,
        paid=str(totals.paid_amount),
        outstanding=str(totals.outstanding_amount),
        status=booking.status,
    )
    return PaymentOutcome(payment=payment, booking=booking, totals=totals)


async def list_payments(db: AsyncSession, booking_id: int) -> tuple[list[Payment], dict]:
    """Ledger rows for a booking, newest first, with a per-status summary."""
    result = await db.execute(
        select(Payment)
        .where(Payment.booking_id == booking_id)
        .order_by(Payment.paid_at.desc(), Payment.id.desc())
    )
    payments = list(result.scalars().all())

    completed = [p for p in payments if p.payment_status == PaymentStatus.COMPLETED.value]
    failed = [p for p in payments if p.payment_status == PaymentStatus.FAILED.value]
    summary = {
        "total_payments": len(payments),
        "completed_payments": len(completed),
        "failed_payments": len(failed),
        "total_paid": sum((money(p.amount) for p in completed), ZERO),
    }
    return payments, summary
