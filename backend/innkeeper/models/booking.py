"""
Booking model: a guest's reservation of one room for a date range.

Key design decisions:
- Dates are DATE columns; the stay is the half-open range [check_in, check_out)
- base_amount is a copy of the nightly price times nights taken at creation
- paid_amount / services_amount are derived columns, always rewritten from the
  payments and service_usage tables, never incremented in place
- Bookings are never deleted; cancellation is a status
- On PostgreSQL the migration adds an exclusion constraint so two active
  bookings of one room can never overlap even if application locking is bypassed
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)

from innkeeper.db.base import Base, TimestampMixin
from innkeeper.models.enums import BookingStatus, sql_in


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_reference = Column(String(32), nullable=False, unique=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)

    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    number_of_guests = Column(Integer, nullable=False, default=1)
    special_requests = Column(Text, nullable=True)

    base_amount = Column(Numeric(12, 2), nullable=False)
    services_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    outstanding_amount = Column(Numeric(12, 2), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    checked_out_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="check_booking_dates"),
        CheckConstraint("number_of_guests > 0", name="check_booking_guests_positive"),
        CheckConstraint("paid_amount >= 0", name="check_booking_paid_non_negative"),
        CheckConstraint("paid_amount <= total_amount", name="check_booking_paid_lte_total"),
        CheckConstraint(f"status IN ({sql_in(BookingStatus)})", name="check_booking_status"),
        # Availability query: room_id = ? AND check_in_date < ? AND check_out_date > ?
        Index("ix_bookings_room_dates", "room_id", "check_in_date", "check_out_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, ref={self.booking_reference}, room={self.room_id}, "
            f"{self.check_in_date}..{self.check_out_date}, status={self.status})>"
        )
