"""
Catalog models the reservation engine reads but does not manage:
branches, guests, room types and rooms.

Key design decisions:
- RoomType.base_price is read inside the booking transaction and copied into
  the booking; later price edits never touch existing bookings
- Room.status is advisory (housekeeping / front desk view). Conflicts are
  decided from the bookings table only
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint

from innkeeper.db.base import Base, TimestampMixin
from innkeeper.models.enums import RoomStatus, sql_in


class Branch(Base, TimestampMixin):
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<Branch(id={self.id}, name={self.name})>"


class Guest(Base, TimestampMixin):
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Guest(id={self.id}, email={self.email})>"


class RoomType(Base, TimestampMixin):
    __tablename__ = "room_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    max_occupancy = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="check_room_type_price_non_negative"),
        CheckConstraint("max_occupancy > 0", name="check_room_type_occupancy_positive"),
    )

    def __repr__(self) -> str:
        return f"<RoomType(id={self.id}, name={self.name}, price={self.base_price})>"


class Room(Base, TimestampMixin):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String(20), nullable=False)
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    status = Column(String(20), nullable=False, default=RoomStatus.AVAILABLE.value)

    __table_args__ = (
        UniqueConstraint("branch_id", "room_number", name="uq_branch_room_number"),
        CheckConstraint(f"status IN ({sql_in(RoomStatus)})", name="check_room_status"),
        # Candidate lookup for (room type, branch) booking requests
        Index("ix_rooms_type_branch", "room_type_id", "branch_id"),
    )

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, number={self.room_number}, status={self.status})>"
