"""
Tests for the booking lifecycle driven by front-desk staff.
"""

from datetime import date

import pytest
from httpx import AsyncClient


def _staff_url(booking_id: int, action: str) -> str:
    return f"/api/v1/staff/bookings/{booking_id}/{action}"


@pytest.mark.asyncio
async def test_full_stay(client: AsyncClient, book, staff_headers, frozen_today):
    booking = (await book(paymentOption="full", paymentMethod="CreditCard")).json()
    frozen_today(date(2025, 3, 1))

    checked_in = await client.post(_staff_url(booking["bookingId"], "check-in"), headers=staff_headers)
    assert checked_in.status_code == 200
    assert checked_in.json()["status"] == "CheckedIn"
    assert checked_in.json()["checkedInAt"] is not None
    assert checked_in.json()["canCancel"] is False

    checked_out = await client.post(_staff_url(booking["bookingId"], "check-out"), headers=staff_headers)
    assert checked_out.status_code == 200
    assert checked_out.json()["status"] == "CheckedOut"

    # Terminal: nothing moves it any more
    for action in ("cancel", "check-in", "confirm", "no-show"):
        response = await client.post(_staff_url(booking["bookingId"], action), headers=staff_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_state_transition"


@pytest.mark.asyncio
async def test_check_in_requires_settled_balance(client: AsyncClient, book, staff_headers, frozen_today):
    booking = (await book(paymentOption="reservation_fee", paymentMethod="CreditCard")).json()
    await client.post(_staff_url(booking["bookingId"], "confirm"), headers=staff_headers)
    frozen_today(date(2025, 3, 1))

    response = await client.post(_staff_url(booking["bookingId"], "check-in"), headers=staff_headers)
    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "invalid_state_transition"
    assert body["outstanding_amount"] == "240.00"


@pytest.mark.asyncio
async def test_check_in_not_before_arrival_date(client: AsyncClient, book, staff_headers):
    booking = (await book(paymentOption="full", paymentMethod="CreditCard")).json()

    response = await client.post(_staff_url(booking["bookingId"], "check-in"), headers=staff_headers)
    assert response.status_code == 409
    assert response.json()["check_in_date"] == "2025-03-01"


@pytest.mark.asyncio
async def test_staff_confirm_of_unpaid_booking(client: AsyncClient, book, staff_headers):
    booking = (await book()).json()
    response = await client.post(_staff_url(booking["bookingId"], "confirm"), headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "Confirmed"
    assert response.json()["outstandingAmount"] == 300


@pytest.mark.asyncio
async def test_no_show_only_from_confirmed(client: AsyncClient, book, staff_headers):
    booking = (await book()).json()

    pending = await client.post(_staff_url(booking["bookingId"], "no-show"), headers=staff_headers)
    assert pending.status_code == 409

    await client.post(_staff_url(booking["bookingId"], "confirm"), headers=staff_headers)
    response = await client.post(_staff_url(booking["bookingId"], "no-show"), headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "NoShow"

    # The room is free again for those nights
    rebooked = await book()
    assert rebooked.status_code == 201


@pytest.mark.asyncio
async def test_staff_can_cancel_any_booking(client: AsyncClient, book, staff_headers):
    booking = (await book(paymentOption="full", paymentMethod="CreditCard")).json()
    response = await client.post(_staff_url(booking["bookingId"], "cancel"), headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "Cancelled"


@pytest.mark.asyncio
async def test_guests_cannot_use_staff_endpoints(client: AsyncClient, book, auth_headers):
    booking = (await book()).json()
    response = await client.post(_staff_url(booking["bookingId"], "confirm"), headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unknown_booking(client: AsyncClient, hotel, staff_headers):
    response = await client.post(_staff_url(4242, "confirm"), headers=staff_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "booking_not_found"


@pytest.mark.asyncio
async def test_desk_payment_settles_balance_before_check_in(
    client: AsyncClient, book, staff_headers, frozen_today
):
    booking = (await book()).json()
    await client.post(_staff_url(booking["bookingId"], "confirm"), headers=staff_headers)
    frozen_today(date(2025, 3, 1))

    paid = await client.post(
        _staff_url(booking["bookingId"], "payments"),
        json={"amount": 300, "method": "Cash"},
        headers=staff_headers,
    )
    assert paid.status_code == 201
    data = paid.json()
    assert data["paymentReference"].startswith("PAY-")
    assert data["payment"]["paymentMethod"] == "Cash"
    assert data["updatedTotals"]["outstandingAmount"] == 0
    assert data["fullyPaid"] is True

    checked_in = await client.post(_staff_url(booking["bookingId"], "check-in"), headers=staff_headers)
    assert checked_in.status_code == 200
    assert checked_in.json()["status"] == "CheckedIn"


@pytest.mark.asyncio
async def test_desk_payment_promotes_pending_booking(client: AsyncClient, book, staff_headers):
    booking = (await book(paymentOption="reservation_fee", paymentMethod="CreditCard")).json()

    response = await client.post(
        _staff_url(booking["bookingId"], "payments"),
        json={"amount": 240, "method": "DebitCard", "transactionId": "POS-881"},
        headers=staff_headers,
    )
    assert response.status_code == 201
    assert response.json()["updatedTotals"]["status"] == "Confirmed"


@pytest.mark.asyncio
async def test_desk_payment_refuses_over_payment(client: AsyncClient, book, staff_headers):
    booking = (await book()).json()

    response = await client.post(
        _staff_url(booking["bookingId"], "payments"),
        json={"amount": 301, "method": "Cash"},
        headers=staff_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "payment_exceeds_outstanding"


@pytest.mark.asyncio
async def test_guests_cannot_record_desk_payments(client: AsyncClient, book, auth_headers):
    booking = (await book()).json()

    response = await client.post(
        _staff_url(booking["bookingId"], "payments"),
        json={"amount": 100, "method": "Cash"},
        headers=auth_headers,
    )
    assert response.status_code == 403
