"""
Pricing calculator: base amount, initial payment resolution and derived totals.

All money is Decimal rounded to cents (half-up). Nothing here touches the
database; the ledger and the booking service feed it numbers they read
inside their own transaction.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from innkeeper.models.enums import PaymentOption

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    """Coerce DB/JSON numbers (Decimal, float, int, str, None) to cents."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(value, high))


@dataclass(frozen=True)
class Totals:
    base_amount: Decimal
    services_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    outstanding_amount: Decimal

    @property
    def fully_paid(self) -> bool:
        return self.paid_amount >= self.total_amount

    def as_dict(self) -> dict:
        return {
            "base_amount": self.base_amount,
            "services_amount": self.services_amount,
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "outstanding_amount": self.outstanding_amount,
        }


def base_amount(nightly_price, nights: int) -> Decimal:
    return money(money(nightly_price) * nights)


def compute_totals(base, services, paid) -> Totals:
    base, services, paid = money(base), money(services), money(paid)
    total = base + services
    return Totals(
        base_amount=base,
        services_amount=services,
        total_amount=total,
        paid_amount=paid,
        outstanding_amount=total - paid,
    )


def reservation_fee(base, rate: Decimal) -> Decimal:
    return money(money(base) * Decimal(str(rate)))


def initial_payment(
    option: PaymentOption,
    base,
    total,
    fee_rate: Decimal,
    requested: Optional[Decimal] = None,
) -> Decimal:
    """
    Amount collected at booking time.

    pay_later collects nothing. reservation_fee and full default to the policy
    fee and the full total; a caller-supplied amount replaces the default.
    Whatever the source, the result is clamped into [0, total].
    """
    total = money(total)
    if option == PaymentOption.PAY_LATER:
        return ZERO
    if requested is not None:
        amount = money(requested)
    elif option == PaymentOption.RESERVATION_FEE:
        amount = reservation_fee(base, fee_rate)
    else:
        amount = total
    return clamp(amount, ZERO, total)
