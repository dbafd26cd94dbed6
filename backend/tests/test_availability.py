"""
Tests for the room availability lookup.
"""

import pytest
from httpx import AsyncClient


def _url(room_id: int, check_in: str, check_out: str) -> str:
    return f"/api/v1/rooms/{room_id}/availability?checkIn={check_in}&checkOut={check_out}"


@pytest.mark.asyncio
async def test_free_room_has_price_estimate(client: AsyncClient, hotel):
    response = await client.get(_url(hotel.room_id, "2025-03-01", "2025-03-04"))
    assert response.status_code == 200
    data = response.json()
    assert data["available"] is True
    assert data["nights"] == 3
    assert data["nightlyPrice"] == 100
    assert data["estimatedBaseAmount"] == 300
    assert data["conflicts"] == []
    assert data["cached"] is False


@pytest.mark.asyncio
async def test_booked_room_lists_conflicts(client: AsyncClient, book, hotel):
    created = (await book()).json()

    response = await client.get(_url(hotel.room_id, "2025-03-03", "2025-03-05"))
    data = response.json()
    assert data["available"] is False
    assert data["estimatedBaseAmount"] is None
    assert data["conflicts"] == [
        {
            "reference": created["reference"],
            "checkInDate": "2025-03-01",
            "checkOutDate": "2025-03-04",
            "status": "Pending",
        }
    ]

    turnover = await client.get(_url(hotel.room_id, "2025-03-04", "2025-03-05"))
    assert turnover.json()["available"] is True


@pytest.mark.asyncio
async def test_cancelled_booking_does_not_block(client: AsyncClient, book, auth_headers, hotel):
    created = (await book()).json()
    await client.post(f"/api/v1/bookings/{created['bookingId']}/cancel", headers=auth_headers)

    response = await client.get(_url(hotel.room_id, "2025-03-01", "2025-03-04"))
    assert response.json()["available"] is True


@pytest.mark.asyncio
async def test_unknown_room(client: AsyncClient, hotel):
    response = await client.get(_url(31337, "2025-03-01", "2025-03-04"))
    assert response.status_code == 404
    assert response.json()["error"] == "room_not_found"


@pytest.mark.asyncio
async def test_reversed_range(client: AsyncClient, hotel):
    response = await client.get(_url(hotel.room_id, "2025-03-04", "2025-03-01"))
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_range"


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient):
    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["cache"] == {"status": "disabled"}

    metrics = await client.get("/metrics")
    assert metrics.status_code == 200
    assert "reservation_booking_attempts_total" in metrics.text
