"""
Booking transaction manager with concurrency-safe room reservation.

CONCURRENCY STRATEGY: Per-room lock inside one transaction
==========================================================

Problem:
  Two guests ask for the same room and overlapping dates at the same moment.
  Both run the availability query, both see no conflict, both insert.
  Result: Double booking.

Solution:
  The availability check and the insert happen in the same transaction, and
  that transaction first takes a lock that only one writer per room can hold.

  1. Acquire the per-room lock (SELECT ... FOR UPDATE on the room row, or a
     PostgreSQL advisory lock; see strategy_factory)
  2. Re-read room + room type (authoritative price, max occupancy)
  3. Run the availability query; any active overlapping booking -> 409
  4. Insert the booking, then the initial payment in a savepoint
  5. Recompute totals from the ledger, derive the status, COMMIT
  6. Re-read the committed row and return it

  The second writer blocks at step 1 until the first commits, then sees its
  row at step 3. Nothing is held across requests or processes: the guarantee
  comes from the database, so it holds for any number of API instances.
  On PostgreSQL the exclusion constraint on bookings is the final safety net.

Initial payment failure policy (PAYMENT_FAILURE_POLICY):
  soft   - the booking commits without the payment, as Pending with nothing
           paid, and the outcome carries "payment_pending_reconciliation".
           A reservation the guest can pay for later beats a lost reservation.
  atomic - the payment failure aborts the booking; nothing is committed.
"""

import time
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from innkeeper.core import metrics
from innkeeper.core.config import get_settings
from innkeeper.core.exceptions import (
    BookingCreationFailed,
    BookingNotFound,
    OccupancyExceeded,
    ReservationError,
    RoomNotFound,
    RoomUnavailable,
    ValidationError,
)
from innkeeper.core.logging import get_logger
from innkeeper.models.booking import Booking
from innkeeper.models.enums import BookingStatus, PaymentMethod, PaymentOption, PaymentType
from innkeeper.models.payment import Payment
from innkeeper.services import date_range, payment_ledger, references
from innkeeper.services.availability import find_available_room, is_available, load_room, unavailable_error
from innkeeper.services.pricing import ZERO, base_amount, compute_totals, initial_payment
from innkeeper.services.strategy_factory import get_room_lock

logger = get_logger(__name__)

REFERENCE_ATTEMPTS = 2
OVERLAP_CONSTRAINT = "ex_bookings_room_no_overlap"
PAYMENT_PENDING_WARNING = "payment_pending_reconciliation"

_PAYMENT_TYPES = {
    PaymentOption.RESERVATION_FEE: PaymentType.RESERVATION_FEE,
    PaymentOption.FULL: PaymentType.FULL,
}


@dataclass
class BookingOutcome:
    booking: Booking
    nights: int
    payment: Optional[Payment] = None
    warnings: list[str] = field(default_factory=list)


def validate_booking_request(
    check_in,
    check_out,
    guest_count: int,
    payment_option: PaymentOption,
    payment_method: Optional[PaymentMethod],
    room_id: Optional[int],
    room_type_id: Optional[int],
    branch_id: Optional[int],
) -> tuple[date, date, int]:
    """Everything that can be rejected without a database round trip."""
    if room_id is None and (room_type_id is None or branch_id is None):
        raise ValidationError("Must provide either roomId or (roomTypeId + branchId)")

    check_in = date_range.to_date_only(check_in)
    check_out = date_range.to_date_only(check_out)

    if check_in < date_range.today():
        raise ValidationError(
            "Check-in date cannot be in the past",
            check_in=check_in.isoformat(),
        )
    nights = date_range.nights_between(check_in, check_out)

    if guest_count < 1:
        raise ValidationError("Guest count must be at least 1", guest_count=guest_count)

    if PaymentOption(payment_option) != PaymentOption.PAY_LATER and payment_method is None:
        raise ValidationError("Missing payment method", payment_option=PaymentOption(payment_option).value)

    return check_in, check_out, nights


def _is_reference_collision(exc: IntegrityError) -> bool:
    return "booking_reference" in str(exc.orig)


async def _insert_booking(db: AsyncSession, **values) -> Booking:
    """Insert the booking row, regenerating the reference once on collision."""
    for attempt in range(1, REFERENCE_ATTEMPTS + 1):
        booking = Booking(booking_reference=references.new_booking_reference(), **values)
        try:
            async with db.begin_nested():
                db.add(booking)
                await db.flush()
        except IntegrityError as exc:
            if _is_reference_collision(exc) and attempt < REFERENCE_ATTEMPTS:
                logger.warning(
                    "booking_reference_collision",
                    reference=booking.booking_reference,
                    attempt=attempt,
                )
                continue
            if OVERLAP_CONSTRAINT in str(exc.orig):
                raise RoomUnavailable(
                    "Room is already booked for the selected dates",
                    room_id=values["room_id"],
                    conflicts=[],
                ) from exc
            raise
        return booking


async def _record_initial_payment(
    db: AsyncSession,
    booking: Booking,
    amount: Decimal,
    method: PaymentMethod,
    option: PaymentOption,
    warnings: list[str],
) -> Optional[Payment]:
    """Append the up-front payment in a savepoint so a failure can be isolated."""
    notes = "Reservation fee payment" if option == PaymentOption.RESERVATION_FEE else "Booking payment"
    try:
        async with db.begin_nested():
            return await payment_ledger.append_payment(
                db,
                booking.id,
                amount,
                method,
                payment_type=_PAYMENT_TYPES[option],
                notes=notes,
            )
    except SQLAlchemyError as exc:
        metrics.payment_failures.inc()
        if get_settings().PAYMENT_FAILURE_POLICY == "atomic":
            raise
        logger.error(
            "payment_insert_failed",
            booking_id=booking.id,
            reference=booking.booking_reference,
            amount=str(amount),
            error=str(exc),
            policy="soft",
        )
        warnings.append(PAYMENT_PENDING_WARNING)
        return None


async def create_booking(
    db: AsyncSession,
    guest_id: int,
    check_in,
    check_out,
    guest_count: int = 1,
    special_requests: Optional[str] = None,
    payment_option: PaymentOption = PaymentOption.PAY_LATER,
    payment_amount: Optional[Decimal] = None,
    payment_method: Optional[PaymentMethod] = None,
    room_id: Optional[int] = None,
    room_type_id: Optional[int] = None,
    branch_id: Optional[int] = None,
) -> BookingOutcome:
    """
    Create a booking atomically.

    Business failures (ValidationError, RoomNotFound, OccupancyExceeded,
    RoomUnavailable) propagate unchanged after a full rollback. Anything else
    is wrapped in BookingCreationFailed; nothing is committed in either case.
    """
    settings = get_settings()
    started = time.perf_counter()
    payment_option = PaymentOption(payment_option)

    try:
        check_in, check_out, nights = validate_booking_request(
            check_in, check_out, guest_count, payment_option, payment_method,
            room_id, room_type_id, branch_id,
        )
    except ValidationError as exc:
        metrics.record_booking_attempt("rejected")
        logger.info("booking_rejected", guest_id=guest_id, reason=exc.kind, detail=exc.message)
        raise

    room_lock = get_room_lock(db.get_bind().dialect.name)
    warnings: list[str] = []
    payment = None

    try:
        lock_started = time.perf_counter()
        if room_id is None:
            room_id = await find_available_room(
                db, room_lock, room_type_id, branch_id, check_in, check_out
            )
        elif not await room_lock.acquire(db, room_id):
            raise RoomNotFound("Room not found", room_id=room_id)
        metrics.room_lock_wait.labels(strategy=room_lock.name).observe(
            time.perf_counter() - lock_started
        )

        _, room_type = await load_room(db, room_id)

        if guest_count > room_type.max_occupancy:
            raise OccupancyExceeded(
                f"Maximum occupancy for this room is {room_type.max_occupancy} guests",
                room_id=room_id,
                max_occupancy=room_type.max_occupancy,
            )

        availability = await is_available(db, room_id, check_in, check_out)
        if not availability.available:
            raise unavailable_error(room_id, availability.conflicts)

        base = base_amount(room_type.base_price, nights)
        totals = compute_totals(base, ZERO, ZERO)
        initial_paid = initial_payment(
            payment_option,
            base,
            totals.total_amount,
            settings.RESERVATION_FEE_RATE,
            payment_amount,
        )

        booking = await _insert_booking(
            db,
            guest_id=guest_id,
            room_id=room_id,
            check_in_date=check_in,
            check_out_date=check_out,
            number_of_guests=guest_count,
            special_requests=special_requests,
            status=BookingStatus.PENDING.value,
            base_amount=totals.base_amount,
            services_amount=totals.services_amount,
            total_amount=totals.total_amount,
            paid_amount=totals.paid_amount,
            outstanding_amount=totals.outstanding_amount,
        )

        if initial_paid > ZERO:
            payment = await _record_initial_payment(
                db, booking, initial_paid, payment_method, payment_option, warnings
            )

        totals = await payment_ledger.recompute_totals(db, booking.id)
        payment_ledger.apply_promotion(booking, totals)

        await db.commit()

    except ReservationError as exc:
        await db.rollback()
        outcome = "conflict" if isinstance(exc, RoomUnavailable) else "rejected"
        metrics.record_booking_attempt(outcome)
        logger.warning(
            "booking_conflict" if outcome == "conflict" else "booking_rejected",
            guest_id=guest_id,
            room_id=room_id,
            check_in=check_in.isoformat(),
            check_out=check_out.isoformat(),
            reason=exc.kind,
            detail=exc.message,
        )
        raise
    except Exception as exc:
        await db.rollback()
        metrics.record_booking_attempt("error")
        logger.exception("booking_creation_failed", guest_id=guest_id, room_id=room_id)
        raise BookingCreationFailed("Failed to create booking", cause=str(exc)) from exc

    # Committed values are authoritative; defaults or triggers may differ from memory
    await db.refresh(booking)
    if payment is not None:
        await db.refresh(payment)

    metrics.record_booking_attempt("success")
    metrics.booking_latency.observe(time.perf_counter() - started)
    logger.info(
        "booking_created",
        booking_id=booking.id,
        reference=booking.booking_reference,
        guest_id=guest_id,
        room_id=room_id,
        nights=nights,
        status=booking.status,
        total=str(booking.total_amount),
        paid=str(booking.paid_amount),
        warnings=warnings,
    )
    return BookingOutcome(booking=booking, nights=nights, payment=payment, warnings=warnings)


async def get_booking(db: AsyncSession, booking_id: int, guest_id: Optional[int] = None) -> Booking:
    """Read-only projection source; guest_id restricts to the owner."""
    booking = await db.get(Booking, booking_id)
    if booking is None or (guest_id is not None and booking.guest_id != guest_id):
        # Do not reveal other guests' booking ids
        raise BookingNotFound(f"Booking {booking_id} not found", booking_id=booking_id)
    return booking


async def get_guest_bookings(db: AsyncSession, guest_id: int) -> list[Booking]:
    """Get all bookings for a guest, latest stay first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.guest_id == guest_id)
        .order_by(Booking.check_in_date.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())
