"""
Service charges added to a booking after it was made.

The catalog price is copied into the usage row when the service is added.
services_amount is then recomputed from all usage rows by the ledger, never
adjusted by the delta.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from innkeeper.core.exceptions import (
    BookingNotModifiable,
    NotFound,
    PaymentExceedsOutstanding,
    ServiceNotFound,
    ServiceUnavailable,
)
from innkeeper.core.logging import get_logger
from innkeeper.models.booking import Booking
from innkeeper.models.enums import OPEN_STATUSES
from innkeeper.models.service import ServiceCatalog, ServiceUsage
from innkeeper.services import date_range
from innkeeper.services.payment_ledger import apply_promotion, ledger_sums, lock_booking, recompute_totals
from innkeeper.services.pricing import Totals, money

logger = get_logger(__name__)

_OPEN = {s.value for s in OPEN_STATUSES}


@dataclass
class ServiceChargeOutcome:
    usage: ServiceUsage
    service: ServiceCatalog
    booking: Booking
    totals: Totals


def _ensure_modifiable(booking: Booking) -> None:
    if booking.status not in _OPEN:
        raise BookingNotModifiable(
            f"Cannot change services on {booking.status} booking",
            booking_id=booking.id,
            status=booking.status,
        )


async def add_service(
    db: AsyncSession,
    booking_id: int,
    service_id: int,
    quantity: int,
    guest_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> ServiceChargeOutcome:
    try:
        booking = await lock_booking(db, booking_id, guest_id)
        _ensure_modifiable(booking)

        service = await db.get(ServiceCatalog, service_id)
        if service is None:
            raise ServiceNotFound("Service not found", service_id=service_id)
        if not service.is_available:
            raise ServiceUnavailable("Service is currently not available", service_id=service_id)

        usage = ServiceUsage(
            booking_id=booking.id,
            service_id=service.id,
            quantity=quantity,
            unit_price=money(service.unit_price),
            service_date=date_range.today(),
            notes=notes,
        )
        db.add(usage)
        await db.flush()

        totals = await recompute_totals(db, booking.id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(booking)
    await db.refresh(usage)
    logger.info(
        "service_added",
        booking_id=booking.id,
        service_id=service.id,
        quantity=quantity,
        unit_price=str(usage.unit_price),
        total=str(totals.total_amount),
    )
    return ServiceChargeOutcome(usage=usage, service=service, booking=booking, totals=totals)


async def remove_service(
    db: AsyncSession,
    booking_id: int,
    usage_id: int,
    guest_id: Optional[int] = None,
) -> Totals:
    """
    Remove a service line. Refused when the booking has already been paid
    beyond what the total would become.
    """
    try:
        booking = await lock_booking(db, booking_id, guest_id)
        _ensure_modifiable(booking)

        usage = await db.get(ServiceUsage, usage_id)
        if usage is None or usage.booking_id != booking.id:
            raise NotFound("Service usage not found", usage_id=usage_id)

        paid, services = await ledger_sums(db, booking.id)
        line = money(usage.unit_price * usage.quantity)
        new_total = money(booking.base_amount) + services - line
        if new_total < paid:
            raise PaymentExceedsOutstanding(
                "Removing this service would leave the booking overpaid",
                booking_id=booking.id,
                paid_amount=str(paid),
                total_after_removal=str(new_total),
            )

        await db.delete(usage)
        await db.flush()

        totals = await recompute_totals(db, booking.id)
        apply_promotion(booking, totals)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("service_removed", booking_id=booking_id, usage_id=usage_id, total=str(totals.total_amount))
    return totals


async def list_services(db: AsyncSession, booking_id: int) -> list[tuple[ServiceUsage, ServiceCatalog]]:
    result = await db.execute(
        select(ServiceUsage, ServiceCatalog)
        .join(ServiceCatalog, ServiceUsage.service_id == ServiceCatalog.id)
        .where(ServiceUsage.booking_id == booking_id)
        .order_by(ServiceUsage.service_date.desc(), ServiceUsage.id.desc())
    )
    return [(row[0], row[1]) for row in result.all()]
