"""Initial schema: hotel catalog, bookings, payment ledger, service usage.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BOOKING_STATUSES = "'Pending', 'Confirmed', 'CheckedIn', 'CheckedOut', 'Cancelled', 'NoShow'"
ROOM_STATUSES = "'Available', 'Occupied', 'Maintenance', 'Cleaning'"
PAYMENT_METHODS = "'CreditCard', 'DebitCard', 'BankTransfer', 'Cash'"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    is_postgres = op.get_bind().dialect.name == "postgresql"

    op.create_table(
        "branches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_branches_id", "branches", ["id"])

    op.create_table(
        "guests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_guests_id", "guests", ["id"])
    op.create_index("ix_guests_email", "guests", ["email"], unique=True)

    op.create_table(
        "room_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("max_occupancy", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("base_price >= 0", name="check_room_type_price_non_negative"),
        sa.CheckConstraint("max_occupancy > 0", name="check_room_type_occupancy_positive"),
    )
    op.create_index("ix_room_types_id", "room_types", ["id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("room_number", sa.String(20), nullable=False),
        sa.Column("room_type_id", sa.Integer(), sa.ForeignKey("room_types.id"), nullable=False),
        sa.Column("branch_id", sa.Integer(), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'Available'")),
        *_timestamps(),
        sa.UniqueConstraint("branch_id", "room_number", name="uq_branch_room_number"),
        sa.CheckConstraint(f"status IN ({ROOM_STATUSES})", name="check_room_status"),
    )
    op.create_index("ix_rooms_id", "rooms", ["id"])
    op.create_index("ix_rooms_type_branch", "rooms", ["room_type_id", "branch_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_reference", sa.String(32), nullable=False, unique=True),
        sa.Column("guest_id", sa.Integer(), sa.ForeignKey("guests.id"), nullable=False),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("number_of_guests", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("base_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("services_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("outstanding_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'Pending'")),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("checked_out_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("check_out_date > check_in_date", name="check_booking_dates"),
        sa.CheckConstraint("number_of_guests > 0", name="check_booking_guests_positive"),
        sa.CheckConstraint("paid_amount >= 0", name="check_booking_paid_non_negative"),
        sa.CheckConstraint("paid_amount <= total_amount", name="check_booking_paid_lte_total"),
        sa.CheckConstraint(f"status IN ({BOOKING_STATUSES})", name="check_booking_status"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_guest_id", "bookings", ["guest_id"])
    # Covers the availability query: room_id = ? AND check_in_date < ? AND check_out_date > ?
    op.create_index("ix_bookings_room_dates", "bookings", ["room_id", "check_in_date", "check_out_date"])

    if is_postgres:
        # Last line of defence against double booking: two active bookings of
        # the same room may not have overlapping [check_in, check_out) ranges.
        # The booking service maps a violation to RoomUnavailable.
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE bookings ADD CONSTRAINT ex_bookings_room_no_overlap
            EXCLUDE USING gist (
                room_id WITH =,
                daterange(check_in_date, check_out_date, '[)') WITH &&
            ) WHERE (status NOT IN ('Cancelled', 'CheckedOut', 'NoShow'))
            """
        )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("payment_reference", sa.String(32), nullable=False, unique=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'Completed'")),
        sa.Column("payment_type", sa.String(20), nullable=False, server_default=sa.text("'partial'")),
        sa.Column("transaction_id", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="check_payment_amount_positive"),
        sa.CheckConstraint(f"payment_method IN ({PAYMENT_METHODS})", name="check_payment_method"),
        sa.CheckConstraint("payment_status IN ('Completed', 'Failed')", name="check_payment_status"),
        sa.CheckConstraint(
            "payment_type IN ('reservation_fee', 'full', 'partial')", name="check_payment_type"
        ),
    )
    op.create_index("ix_payments_id", "payments", ["id"])
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])

    op.create_table(
        "service_catalog",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("unit_price >= 0", name="check_service_price_non_negative"),
    )
    op.create_index("ix_service_catalog_id", "service_catalog", ["id"])

    op.create_table(
        "service_usage",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("service_id", sa.Integer(), sa.ForeignKey("service_catalog.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("service_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="check_service_quantity_positive"),
    )
    op.create_index("ix_service_usage_id", "service_usage", ["id"])
    op.create_index("ix_service_usage_booking_id", "service_usage", ["booking_id"])


def downgrade() -> None:
    op.drop_table("service_usage")
    op.drop_table("service_catalog")
    op.drop_table("payments")
    op.drop_table("bookings")
    op.drop_table("rooms")
    op.drop_table("room_types")
    op.drop_table("guests")
    op.drop_table("branches")
