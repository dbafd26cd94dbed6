"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Same room, same nights
  locust -f locustfile.py --tags throughput   # Cached availability lookups
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests

Tokens are minted locally with the API's SECRET_KEY; guests and the room
must already exist (LOAD_GUEST_IDS, LOAD_ROOM_ID, LOAD_ROOM_TYPE_ID, LOAD_BRANCH_ID).
"""

import os
import random
from datetime import date, timedelta

import jwt
from locust import HttpUser, task, between, tag, events

SECRET_KEY = os.getenv("SECRET_KEY", "super-secret-key-change-in-production")
GUEST_IDS = [int(g) for g in os.getenv("LOAD_GUEST_IDS", "1,2,3,4,5").split(",")]
ROOM_ID = int(os.getenv("LOAD_ROOM_ID", "1"))
ROOM_TYPE_ID = int(os.getenv("LOAD_ROOM_TYPE_ID", "1"))
BRANCH_ID = int(os.getenv("LOAD_BRANCH_ID", "1"))

# Every concurrency user asks for exactly these nights
CONTESTED_CHECK_IN = date.today() + timedelta(days=30)
CONTESTED_CHECK_OUT = CONTESTED_CHECK_IN + timedelta(days=3)


def guest_headers() -> dict:
    token = jwt.encode({"sub": str(random.choice(GUEST_IDS)), "role": "guest"}, SECRET_KEY, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Contested room {ROOM_ID}: {CONTESTED_CHECK_IN} -> {CONTESTED_CHECK_OUT}")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - N users -> 1 room, same nights

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings
      WHERE room_id = X AND status NOT IN ('Cancelled', 'CheckedOut', 'NoShow');
    Should be exactly 1
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = guest_headers()

    @tag("concurrency")
    @task
    def book_contested_room(self):
        with self.client.post(
            "/api/v1/bookings/",
            json={
                "roomId": ROOM_ID,
                "checkInDate": CONTESTED_CHECK_IN.isoformat(),
                "checkOutDate": CONTESTED_CHECK_OUT.isoformat(),
                "guestCount": 1,
                "paymentOption": "reservation_fee",
                "paymentMethod": "CreditCard",
            },
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: someone else holds the nights
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - availability cache effectiveness

    Run twice, with and without Redis (REDIS_ENABLED=false), and compare
    average response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def availability(self):
        start = CONTESTED_CHECK_IN + timedelta(days=random.randint(0, 6))
        end = start + timedelta(days=random.randint(1, 4))
        self.client.get(
            f"/api/v1/rooms/{ROOM_ID}/availability?checkIn={start}&checkOut={end}",
            name="/api/v1/rooms/{id}/availability [cached]",
        )

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = guest_headers()

    def _expect(self, body, allowed, headers=None):
        with self.client.post(
            "/api/v1/bookings/",
            json=body,
            headers=self.headers if headers is None else headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in allowed:
                resp.success()
            else:
                resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_room(self):
        self._expect({"roomId": 999999, "checkInDate": "2099-01-01", "checkOutDate": "2099-01-02"}, (404,))

    @tag("edge")
    @task
    def reversed_dates(self):
        self._expect({"roomId": ROOM_ID, "checkInDate": "2099-01-05", "checkOutDate": "2099-01-02"}, (400,))

    @tag("edge")
    @task
    def past_dates(self):
        self._expect({"roomId": ROOM_ID, "checkInDate": "2000-01-01", "checkOutDate": "2000-01-02"}, (400,))

    @tag("edge")
    @task
    def too_many_guests(self):
        self._expect(
            {"roomId": ROOM_ID, "checkInDate": "2099-01-01", "checkOutDate": "2099-01-02", "guestCount": 99},
            (400,),
        )

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/bookings/", data="not json at all", headers=self.headers, catch_response=True
        ) as resp:
            if resp.status_code in (400, 422):
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_auth(self):
        self._expect({"roomId": ROOM_ID, "checkInDate": "2099-01-01", "checkOutDate": "2099-01-02"}, (401,), headers={})


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Mostly availability lookups, some bookings by room type, a few payments.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = guest_headers()
        self.booking_ids = []

    @task(50)
    def browse(self):
        start = date.today() + timedelta(days=random.randint(1, 120))
        self.client.get(
            f"/api/v1/rooms/{ROOM_ID}/availability?checkIn={start}&checkOut={start + timedelta(days=2)}",
            name="/api/v1/rooms/{id}/availability",
        )

    @task(10)
    def book_by_room_type(self):
        start = date.today() + timedelta(days=random.randint(1, 365))
        resp = self.client.post(
            "/api/v1/bookings/",
            json={
                "roomTypeId": ROOM_TYPE_ID,
                "branchId": BRANCH_ID,
                "checkInDate": start.isoformat(),
                "checkOutDate": (start + timedelta(days=random.randint(1, 5))).isoformat(),
                "guestCount": 1,
            },
            headers=self.headers,
            name="/api/v1/bookings/",
        )
        if resp.status_code == 201:
            self.booking_ids.append(resp.json()["bookingId"])

    @task(3)
    def pay_something(self):
        if self.booking_ids:
            self.client.post(
                f"/api/v1/bookings/{random.choice(self.booking_ids)}/payments",
                json={"amount": 10, "method": "CreditCard"},
                headers=self.headers,
                name="/api/v1/bookings/{id}/payments",
            )
