"""
Payment ledger entry. Rows are append-only: a payment is inserted once and
never updated. A booking's paid_amount is the SUM of its Completed rows.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func

from innkeeper.db.base import Base, TimestampMixin
from innkeeper.models.enums import PaymentMethod, PaymentStatus, PaymentType, sql_in


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    payment_reference = Column(String(32), nullable=False, unique=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.COMPLETED.value)
    payment_type = Column(String(20), nullable=False, default=PaymentType.PARTIAL.value)
    transaction_id = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("amount > 0", name="check_payment_amount_positive"),
        CheckConstraint(f"payment_method IN ({sql_in(PaymentMethod)})", name="check_payment_method"),
        CheckConstraint(f"payment_status IN ({sql_in(PaymentStatus)})", name="check_payment_status"),
        CheckConstraint(f"payment_type IN ({sql_in(PaymentType)})", name="check_payment_type"),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, booking={self.booking_id}, amount={self.amount}, status={self.payment_status})>"
