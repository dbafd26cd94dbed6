"""
Tests for the pricing calculator.
"""

from decimal import Decimal

import pytest

from innkeeper.models.enums import PaymentOption
from innkeeper.services.pricing import base_amount, compute_totals, initial_payment, money, reservation_fee

RATE = Decimal("0.20")


def test_money_rounds_half_up_to_cents():
    assert money("10.005") == Decimal("10.01")
    assert money(0.1 + 0.2) == Decimal("0.30")
    assert money(None) == Decimal("0.00")


def test_base_amount():
    assert base_amount(Decimal("100"), 3) == Decimal("300.00")
    assert base_amount("89.99", 2) == Decimal("179.98")


def test_compute_totals():
    totals = compute_totals("300", "45.50", "60")
    assert totals.total_amount == Decimal("345.50")
    assert totals.outstanding_amount == Decimal("285.50")
    assert not totals.fully_paid
    assert compute_totals("300", "0", "300").fully_paid


def test_reservation_fee():
    assert reservation_fee(Decimal("300"), RATE) == Decimal("60.00")
    assert reservation_fee(Decimal("99.99"), RATE) == Decimal("20.00")


@pytest.mark.parametrize(
    "option, requested, expected",
    [
        (PaymentOption.PAY_LATER, None, "0.00"),
        (PaymentOption.PAY_LATER, Decimal("50"), "0.00"),
        (PaymentOption.RESERVATION_FEE, None, "60.00"),
        (PaymentOption.FULL, None, "300.00"),
        (PaymentOption.RESERVATION_FEE, Decimal("75"), "75.00"),
        (PaymentOption.FULL, Decimal("1000"), "300.00"),
        (PaymentOption.FULL, Decimal("-5"), "0.00"),
    ],
)
def test_initial_payment(option, requested, expected):
    assert initial_payment(option, Decimal("300"), Decimal("300"), RATE, requested) == Decimal(expected)
