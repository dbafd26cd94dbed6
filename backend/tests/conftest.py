"""
Pytest fixtures for test database, client, seeded hotel and authentication.

Each test gets its own file-backed SQLite database, so concurrent sessions
behave like separate connections to a real server (SQLite serializes them
with BEGIN IMMEDIATE, see innkeeper.db.session).
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")

from dataclasses import dataclass
from datetime import date
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from innkeeper.main import app
from innkeeper.core.security import create_access_token
from innkeeper.db.base import Base
from innkeeper.db.session import build_engine, get_db
from innkeeper.models import Branch, Guest, Room, RoomType, ServiceCatalog
from innkeeper.services import date_range

# Fixed "today" at the hotel; booking dates in tests are relative to it
TODAY = date(2025, 2, 1)


@pytest.fixture(autouse=True)
def frozen_today(monkeypatch):
    """Pin the hotel calendar. Tests can re-pin it with set_today()."""
    current = {"today": TODAY}
    monkeypatch.setattr(date_range, "today", lambda: current["today"])

    def set_today(value: date):
        current["today"] = value

    return set_today


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables in a fresh database, yield a session factory, dispose."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'innkeeper_test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client; every request gets its own session, as in production."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@dataclass
class Hotel:
    guest_id: int
    other_guest_id: int
    branch_id: int
    room_type_id: int
    room_id: int
    second_room_id: int
    breakfast_id: int
    spa_id: int


@pytest_asyncio.fixture
async def hotel(session_factory) -> Hotel:
    """
    One branch, one room type at $100/night for up to 2 guests, two rooms of
    that type, two guests, and a small service catalog (spa unavailable).
    """
    async with session_factory() as session:
        branch = Branch(name="Harbour View", address="1 Quay Street")
        room_type = RoomType(name="Double", base_price=100, max_occupancy=2)
        guest = Guest(email="ana@example.com", first_name="Ana", last_name="Silva")
        other = Guest(email="tom@example.com", first_name="Tom", last_name="Berg")
        breakfast = ServiceCatalog(name="Breakfast", category="Food", unit_price=15, is_available=True)
        spa = ServiceCatalog(name="Spa", category="Wellness", unit_price=80, is_available=False)
        session.add_all([branch, room_type, guest, other, breakfast, spa])
        await session.flush()

        room = Room(room_number="101", room_type_id=room_type.id, branch_id=branch.id)
        second = Room(room_number="102", room_type_id=room_type.id, branch_id=branch.id)
        session.add_all([room, second])
        await session.commit()

        return Hotel(
            guest_id=guest.id,
            other_guest_id=other.id,
            branch_id=branch.id,
            room_type_id=room_type.id,
            room_id=room.id,
            second_room_id=second.id,
            breakfast_id=breakfast.id,
            spa_id=spa.id,
        )


def bearer(subject_id: int, role: str = "guest") -> dict:
    token = create_access_token(data={"sub": str(subject_id), "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(hotel: Hotel) -> dict:
    """Authorization headers of the primary guest."""
    return bearer(hotel.guest_id)


@pytest.fixture
def other_headers(hotel: Hotel) -> dict:
    return bearer(hotel.other_guest_id)


@pytest.fixture
def staff_headers() -> dict:
    return bearer(900, role="staff")


@pytest.fixture
def book(client: AsyncClient, hotel: Hotel, auth_headers: dict):
    """POST /bookings/ with sensible defaults; returns the raw response."""

    async def _book(check_in="2025-03-01", check_out="2025-03-04", headers=None, **overrides):
        body = {
            "roomId": hotel.room_id,
            "checkInDate": check_in,
            "checkOutDate": check_out,
            "guestCount": 2,
            "paymentOption": "pay_later",
        }
        body.update(overrides)
        return await client.post("/api/v1/bookings/", json=body, headers=headers or auth_headers)

    return _book
