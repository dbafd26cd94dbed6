"""
Tests for service charges added after booking.
"""

import pytest
from httpx import AsyncClient

from innkeeper.models import ServiceCatalog


def _services_url(booking_id: int) -> str:
    return f"/api/v1/bookings/{booking_id}/services"


@pytest.mark.asyncio
async def test_add_service_updates_totals(client: AsyncClient, book, auth_headers, hotel):
    booking = (await book(paymentOption="full", paymentMethod="CreditCard")).json()

    response = await client.post(
        _services_url(booking["bookingId"]),
        json={"serviceId": hotel.breakfast_id, "quantity": 2},
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["usage"]["serviceName"] == "Breakfast"
    assert data["usage"]["lineTotal"] == 30
    totals = data["updatedTotals"]
    assert totals["servicesAmount"] == 30
    assert totals["totalAmount"] == 330
    assert totals["paidAmount"] == 300
    assert totals["outstandingAmount"] == 30
    # Promotion is one-way: a confirmed booking stays confirmed with a new balance
    assert totals["status"] == "Confirmed"


@pytest.mark.asyncio
async def test_catalog_price_is_captured(client: AsyncClient, book, auth_headers, hotel, session_factory):
    booking = (await book()).json()
    await client.post(
        _services_url(booking["bookingId"]),
        json={"serviceId": hotel.breakfast_id, "quantity": 1},
        headers=auth_headers,
    )

    async with session_factory() as session:
        breakfast = await session.get(ServiceCatalog, hotel.breakfast_id)
        breakfast.unit_price = 99
        await session.commit()

    listing = await client.get(_services_url(booking["bookingId"]), headers=auth_headers)
    assert listing.status_code == 200
    assert [u["unitPrice"] for u in listing.json()] == [15]

    detail = await client.get(f"/api/v1/bookings/{booking['bookingId']}", headers=auth_headers)
    assert detail.json()["totalAmount"] == 315


@pytest.mark.asyncio
async def test_unavailable_service(client: AsyncClient, book, auth_headers, hotel):
    booking = (await book()).json()
    response = await client.post(
        _services_url(booking["bookingId"]),
        json={"serviceId": hotel.spa_id, "quantity": 1},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "service_unavailable"


@pytest.mark.asyncio
async def test_unknown_service(client: AsyncClient, book, auth_headers):
    booking = (await book()).json()
    response = await client.post(
        _services_url(booking["bookingId"]),
        json={"serviceId": 777, "quantity": 1},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "service_not_found"


@pytest.mark.asyncio
async def test_cancelled_booking_is_not_modifiable(client: AsyncClient, book, auth_headers, hotel):
    booking = (await book()).json()
    await client.post(f"/api/v1/bookings/{booking['bookingId']}/cancel", headers=auth_headers)

    response = await client.post(
        _services_url(booking["bookingId"]),
        json={"serviceId": hotel.breakfast_id, "quantity": 1},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "booking_not_modifiable"


@pytest.mark.asyncio
async def test_remove_service(client: AsyncClient, book, auth_headers, hotel):
    booking = (await book()).json()
    added = await client.post(
        _services_url(booking["bookingId"]),
        json={"serviceId": hotel.breakfast_id, "quantity": 3},
        headers=auth_headers,
    )
    usage_id = added.json()["usage"]["usageId"]

    response = await client.delete(f"{_services_url(booking['bookingId'])}/{usage_id}", headers=auth_headers)
    assert response.status_code == 200
    totals = response.json()["updatedTotals"]
    assert totals["servicesAmount"] == 0
    assert totals["totalAmount"] == 300

    listing = await client.get(_services_url(booking["bookingId"]), headers=auth_headers)
    assert listing.json() == []


@pytest.mark.asyncio
async def test_remove_service_refused_when_already_paid(client: AsyncClient, book, auth_headers, hotel):
    booking = (await book()).json()
    added = await client.post(
        _services_url(booking["bookingId"]),
        json={"serviceId": hotel.breakfast_id, "quantity": 2},
        headers=auth_headers,
    )
    usage_id = added.json()["usage"]["usageId"]
    paid = await client.post(
        f"/api/v1/bookings/{booking['bookingId']}/payments",
        json={"amount": 330, "method": "CreditCard"},
        headers=auth_headers,
    )
    assert paid.json()["updatedTotals"]["status"] == "Confirmed"

    response = await client.delete(f"{_services_url(booking['bookingId'])}/{usage_id}", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "payment_exceeds_outstanding"


@pytest.mark.asyncio
async def test_remove_service_can_complete_payment(client: AsyncClient, book, auth_headers, hotel):
    booking = (await book()).json()
    added = await client.post(
        _services_url(booking["bookingId"]),
        json={"serviceId": hotel.breakfast_id, "quantity": 1},
        headers=auth_headers,
    )
    await client.post(
        f"/api/v1/bookings/{booking['bookingId']}/payments",
        json={"amount": 300, "method": "Cash"},
        headers=auth_headers,
    )

    usage_id = added.json()["usage"]["usageId"]
    response = await client.delete(f"{_services_url(booking['bookingId'])}/{usage_id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["updatedTotals"]["outstandingAmount"] == 0
    assert response.json()["updatedTotals"]["status"] == "Confirmed"


@pytest.mark.asyncio
async def test_quantity_must_be_positive(client: AsyncClient, book, auth_headers, hotel):
    booking = (await book()).json()
    response = await client.post(
        _services_url(booking["bookingId"]),
        json={"serviceId": hotel.breakfast_id, "quantity": 0},
        headers=auth_headers,
    )
    assert response.status_code == 422
