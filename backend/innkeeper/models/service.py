"""
Post-booking services (room service, spa, laundry...) and their usage per booking.

ServiceUsage.unit_price is the catalog price captured when the service was
added, so repricing the catalog never changes an existing bill.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, ForeignKey, Integer, Numeric, String, Text

from innkeeper.db.base import Base, TimestampMixin


class ServiceCatalog(Base, TimestampMixin):
    __tablename__ = "service_catalog"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    unit_price = Column(Numeric(10, 2), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("unit_price >= 0", name="check_service_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<ServiceCatalog(id={self.id}, name={self.name}, price={self.unit_price})>"


class ServiceUsage(Base, TimestampMixin):
    __tablename__ = "service_usage"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("service_catalog.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    service_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_service_quantity_positive"),
    )

    def __repr__(self) -> str:
        return f"<ServiceUsage(id={self.id}, booking={self.booking_id}, service={self.service_id}, qty={self.quantity})>"
