"""
Enumerations shared by models, schemas and services.
Stored as plain strings; CHECK constraints on the tables keep them honest.
"""

from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CHECKED_IN = "CheckedIn"
    CHECKED_OUT = "CheckedOut"
    CANCELLED = "Cancelled"
    NO_SHOW = "NoShow"


# Statuses that no longer hold the room for their date range
INACTIVE_STATUSES = (
    BookingStatus.CANCELLED,
    BookingStatus.CHECKED_OUT,
    BookingStatus.NO_SHOW,
)

TERMINAL_STATUSES = frozenset(INACTIVE_STATUSES)

# Statuses in which guests may still add services or pay
OPEN_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
})


class RoomStatus(str, Enum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    MAINTENANCE = "Maintenance"
    CLEANING = "Cleaning"


class PaymentOption(str, Enum):
    PAY_LATER = "pay_later"
    RESERVATION_FEE = "reservation_fee"
    FULL = "full"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "CreditCard"
    DEBIT_CARD = "DebitCard"
    BANK_TRANSFER = "BankTransfer"
    CASH = "Cash"


class PaymentStatus(str, Enum):
    COMPLETED = "Completed"
    FAILED = "Failed"


class PaymentType(str, Enum):
    RESERVATION_FEE = "reservation_fee"
    FULL = "full"
    PARTIAL = "partial"


def sql_in(values) -> str:
    """Render enum values as a SQL IN list for CHECK constraints."""
    return ", ".join(f"'{v.value}'" for v in values)
