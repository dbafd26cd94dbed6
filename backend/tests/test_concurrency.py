"""
Concurrency and failure-policy tests that drive the booking service directly.

Each concurrent caller gets its own session (its own connection), which is
how separate API workers would hit the database.
"""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from innkeeper.core import metrics
from innkeeper.core.config import get_settings
from innkeeper.core.exceptions import BookingCreationFailed, RoomUnavailable
from innkeeper.models import Booking, Payment
from innkeeper.models.enums import PaymentMethod, PaymentOption
from innkeeper.services import booking_service, payment_ledger, references


async def _create(session_factory, guest_id, room_id, check_in="2025-03-01", check_out="2025-03-04", **kwargs):
    async with session_factory() as session:
        return await booking_service.create_booking(
            session, guest_id, check_in, check_out, room_id=room_id, **kwargs
        )


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_concurrent_requests_for_the_same_room(session_factory, hotel):
    """Two simultaneous requests for the only unit: exactly one wins."""
    results = await asyncio.gather(
        _create(session_factory, hotel.guest_id, hotel.room_id),
        _create(session_factory, hotel.other_guest_id, hotel.room_id),
        return_exceptions=True,
    )

    winners = [r for r in results if isinstance(r, booking_service.BookingOutcome)]
    losers = [r for r in results if isinstance(r, RoomUnavailable)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert losers[0].context["conflicts"][0]["reference"] == winners[0].booking.booking_reference
    assert await _count(session_factory, Booking) == 1


@pytest.mark.asyncio
async def test_many_concurrent_overlapping_requests(session_factory, hotel):
    ranges = [
        ("2025-03-01", "2025-03-04"),
        ("2025-03-02", "2025-03-05"),
        ("2025-03-03", "2025-03-04"),
        ("2025-02-28", "2025-03-02"),
        ("2025-03-03", "2025-03-06"),
    ]
    results = await asyncio.gather(
        *(_create(session_factory, hotel.guest_id, hotel.room_id, ci, co) for ci, co in ranges),
        return_exceptions=True,
    )

    assert not [r for r in results if not isinstance(r, (booking_service.BookingOutcome, RoomUnavailable))]

    async with session_factory() as session:
        bookings = (await session.execute(select(Booking))).scalars().all()
    assert bookings
    for a in bookings:
        for b in bookings:
            if a.id != b.id:
                assert not (a.check_in_date < b.check_out_date and a.check_out_date > b.check_in_date)


@pytest.mark.asyncio
async def test_disjoint_rooms_do_not_conflict(session_factory, hotel):
    results = await asyncio.gather(
        _create(session_factory, hotel.guest_id, hotel.room_id),
        _create(session_factory, hotel.other_guest_id, hotel.second_room_id),
    )
    assert {r.booking.room_id for r in results} == {hotel.room_id, hotel.second_room_id}


@pytest.mark.asyncio
async def test_booking_reference_collision_is_retried(session_factory, hotel, monkeypatch):
    issued = iter(["BK-TAKEN", "BK-TAKEN", "BK-FRESH"])
    monkeypatch.setattr(references, "new_booking_reference", lambda: next(issued))

    first = await _create(session_factory, hotel.guest_id, hotel.room_id)
    second = await _create(session_factory, hotel.guest_id, hotel.room_id, "2025-04-01", "2025-04-02")

    assert first.booking.booking_reference == "BK-TAKEN"
    assert second.booking.booking_reference == "BK-FRESH"
    assert await _count(session_factory, Booking) == 2


@pytest.mark.asyncio
async def test_full_payment_at_creation_records_the_transition(session_factory, hotel, monkeypatch):
    transitions = []
    monkeypatch.setattr(metrics, "record_transition", lambda old, new: transitions.append((old, new)))

    outcome = await _create(
        session_factory,
        hotel.guest_id,
        hotel.room_id,
        payment_option=PaymentOption.FULL,
        payment_method=PaymentMethod.CASH,
    )

    assert outcome.booking.status == "Confirmed"
    assert transitions == [("Pending", "Confirmed")]


async def _failing_append(*args, **kwargs):
    raise OperationalError("INSERT INTO payments", {}, Exception("disk I/O error"))


@pytest.mark.asyncio
async def test_soft_policy_keeps_booking_without_payment(session_factory, hotel, monkeypatch):
    monkeypatch.setattr(get_settings(), "PAYMENT_FAILURE_POLICY", "soft")
    monkeypatch.setattr(payment_ledger, "append_payment", _failing_append)

    outcome = await _create(
        session_factory,
        hotel.guest_id,
        hotel.room_id,
        payment_option=PaymentOption.FULL,
        payment_method=PaymentMethod.CREDIT_CARD,
    )

    assert outcome.warnings == [booking_service.PAYMENT_PENDING_WARNING]
    assert outcome.payment is None
    assert outcome.booking.status == "Pending"
    assert outcome.booking.paid_amount == Decimal("0")
    assert outcome.booking.outstanding_amount == Decimal("300")
    assert await _count(session_factory, Payment) == 0


@pytest.mark.asyncio
async def test_atomic_policy_rolls_back_everything(session_factory, hotel, monkeypatch):
    monkeypatch.setattr(get_settings(), "PAYMENT_FAILURE_POLICY", "atomic")
    monkeypatch.setattr(payment_ledger, "append_payment", _failing_append)

    with pytest.raises(BookingCreationFailed):
        await _create(
            session_factory,
            hotel.guest_id,
            hotel.room_id,
            payment_option=PaymentOption.RESERVATION_FEE,
            payment_method=PaymentMethod.CASH,
        )

    assert await _count(session_factory, Booking) == 0
    assert await _count(session_factory, Payment) == 0


@pytest.mark.asyncio
async def test_soft_policy_warning_reaches_the_client(book, monkeypatch):
    monkeypatch.setattr(get_settings(), "PAYMENT_FAILURE_POLICY", "soft")
    monkeypatch.setattr(payment_ledger, "append_payment", _failing_append)

    response = await book(paymentOption="full", paymentMethod="CreditCard")
    assert response.status_code == 201
    data = response.json()
    assert data["warnings"] == ["payment_pending_reconciliation"]
    assert data["status"] == "Pending"
    assert data["paidAmount"] == 0
