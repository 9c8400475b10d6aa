"""initial schema

Revision ID: 5c1e7a9b3d20
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "5c1e7a9b3d20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )

    op.create_table(
        "buildings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("building_id", sa.Integer, sa.ForeignKey("buildings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )

    op.create_table(
        "room_instances",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("room_id", sa.Integer, sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("room_number", sa.String(50), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_room_instances_room_id", "room_instances", ["room_id"])

    op.create_table(
        "room_pricing",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("room_id", sa.Integer, sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("base_price_monthly", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("deposit_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="VND"),
    )

    op.create_table(
        "room_costs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("room_id", sa.Integer, sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(20), nullable=False, server_default="utility"),
        sa.Column("cost_type", sa.String(20), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="VND"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("fixed_amount", sa.Numeric(15, 2), nullable=True),
        sa.Column("per_person_amount", sa.Numeric(15, 2), nullable=True),
        sa.Column("unit_price", sa.Numeric(15, 2), nullable=True),
        sa.Column("unit", sa.String(20), nullable=False, server_default=""),
        sa.Column("meter_reading", sa.Numeric(15, 3), nullable=True),
        sa.Column("last_meter_reading", sa.Numeric(15, 3), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_room_costs_room_id", "room_costs", ["room_id"])

    op.create_table(
        "room_instance_meter_readings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "room_instance_id",
            sa.Integer,
            sa.ForeignKey("room_instances.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("room_cost_id", sa.Integer, sa.ForeignKey("room_costs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("meter_reading", sa.Numeric(15, 3), nullable=True),
        sa.Column("last_meter_reading", sa.Numeric(15, 3), nullable=True),
        sa.Column("updated_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("room_instance_id", "room_cost_id", name="uq_meter_readings_instance_cost"),
    )

    op.create_table(
        "rentals",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("tenant_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("room_instance_id", sa.Integer, sa.ForeignKey("room_instances.id"), nullable=False),
        sa.Column("contract_start_date", sa.Date, nullable=False),
        sa.Column("contract_end_date", sa.Date, nullable=True),
        sa.Column("monthly_rent", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_rentals_room_instance_status", "rentals", ["room_instance_id", "status"])

    op.create_table(
        "bills",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column("rental_id", sa.Integer, sa.ForeignKey("rentals.id"), nullable=False),
        sa.Column("room_instance_id", sa.Integer, sa.ForeignKey("room_instances.id"), nullable=False),
        sa.Column("billing_period", sa.String(7), nullable=False),
        sa.Column("billing_month", sa.Integer, nullable=False),
        sa.Column("billing_year", sa.Integer, nullable=False),
        sa.Column("period_start", sa.Date, nullable=False),
        sa.Column("period_end", sa.Date, nullable=False),
        sa.Column("rental_start_date", sa.Date, nullable=True),
        sa.Column("rental_end_date", sa.Date, nullable=True),
        sa.Column("occupancy_count", sa.Integer, nullable=False, server_default="1"),
        sa.Column("subtotal", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("discount_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("paid_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("remaining_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("due_date", sa.Date, nullable=True),
        sa.Column("paid_date", sa.DateTime, nullable=True),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("is_auto_generated", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("requires_meter_data", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("rental_id", "billing_period", name="uq_bills_rental_period"),
    )
    op.create_index("ix_bills_room_instance_id", "bills", ["room_instance_id"])
    op.create_index("ix_bills_status", "bills", ["status"])

    op.create_table(
        "bill_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("bill_id", sa.Integer, sa.ForeignKey("bills.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_type", sa.String(20), nullable=False),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("quantity", sa.Numeric(15, 3), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="VND"),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_bill_items_bill_id", "bill_items", ["bill_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("notification_type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False, server_default=""),
        sa.Column("data", sa.Text, nullable=False, server_default="{}"),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("actor_id", sa.Integer, nullable=True),
        sa.Column("source", sa.String(10), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False, server_default=""),
        sa.Column("entity_id", sa.Integer, nullable=True),
        sa.Column("entity_uuid", sa.String(26), nullable=False, server_default=""),
        sa.Column("previous_state", sa.Text, nullable=True),
        sa.Column("new_state", sa.Text, nullable=True),
        sa.Column("metadata", sa.Text, nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_created_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_entity", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_bill_items_bill_id", table_name="bill_items")
    op.drop_table("bill_items")
    op.drop_index("ix_bills_status", table_name="bills")
    op.drop_index("ix_bills_room_instance_id", table_name="bills")
    op.drop_table("bills")
    op.drop_index("ix_rentals_room_instance_status", table_name="rentals")
    op.drop_table("rentals")
    op.drop_table("room_instance_meter_readings")
    op.drop_index("ix_room_costs_room_id", table_name="room_costs")
    op.drop_table("room_costs")
    op.drop_table("room_pricing")
    op.drop_index("ix_room_instances_room_id", table_name="room_instances")
    op.drop_table("room_instances")
    op.drop_table("rooms")
    op.drop_table("buildings")
    op.drop_table("users")
