"""
Receipt dispatch.

Email/PDF rendering lives in another service. The engine only hands over a
receipt payload after the response is sent; a failure is logged and never
reaches the guest or the booking.
"""

from abc import ABC, abstractmethod
from typing import Optional

from innkeeper.core.logging import get_logger
from innkeeper.models.booking import Booking
from innkeeper.models.payment import Payment

logger = get_logger(__name__)


class ReceiptSender(ABC):
    @abstractmethod
    async def send(self, receipt: dict) -> None:
        pass


class LogReceiptSender(ReceiptSender):
    """Default sender: records the receipt in the log stream for the mailer to pick up."""

    async def send(self, receipt: dict) -> None:
        logger.info("receipt_dispatched", **receipt)


_sender: ReceiptSender = LogReceiptSender()


def get_receipt_sender() -> ReceiptSender:
    return _sender


def booking_receipt(booking: Booking, nights: int, payment: Optional[Payment] = None) -> dict:
    receipt = {
        "kind": "booking_confirmation",
        "guest_id": booking.guest_id,
        "reference": booking.booking_reference,
        "check_in": booking.check_in_date.isoformat(),
        "check_out": booking.check_out_date.isoformat(),
        "nights": nights,
        "total": str(booking.total_amount),
        "paid": str(booking.paid_amount),
        "outstanding": str(booking.outstanding_amount),
        "status": booking.status,
    }
    if payment is not None:
        receipt["payment_reference"] = payment.payment_reference
    return receipt


def payment_receipt(booking: Booking, payment: Payment) -> dict:
    return {
        "kind": "payment_receipt",
        "guest_id": booking.guest_id,
        "reference": booking.booking_reference,
        "payment_reference": payment.payment_reference,
        "amount": str(payment.amount),
        "method": payment.payment_method,
        "outstanding": str(booking.outstanding_amount),
    }


async def dispatch_receipt(receipt: dict) -> None:
    """Best-effort send, run as a background task."""
    try:
        await get_receipt_sender().send(receipt)
    except Exception as e:
        logger.warning("receipt_dispatch_failed", reference=receipt.get("reference"), error=str(e))
