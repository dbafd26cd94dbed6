"""
Human-readable references for bookings and payments.

Ten hex characters from the OS CSPRNG give 2**40 values per prefix; the unique
constraints on the tables are what actually guarantee uniqueness, and the
booking insert retries once on a collision.
"""

import secrets

BOOKING_PREFIX = "BK"
PAYMENT_PREFIX = "PAY"


def _token() -> str:
    return secrets.token_hex(5).upper()


def new_booking_reference() -> str:
    return f"{BOOKING_PREFIX}-{_token()}"


def new_payment_reference() -> str:
    return f"{PAYMENT_PREFIX}-{_token()}"
