"""Initial database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates all initial tables for Washpoint:
- Users and authentication
- Facilities and rooms
- Bookings and visit history
- Reviews
- Operations (incidents, inventory, maintenance)
- Admin (audit logs)
"""

from typing import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all database tables."""

    # ==================== USERS ====================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("phone", sa.String(20), index=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("full_name", sa.String(150)),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
    )

    # ==================== FACILITIES ====================
    op.create_table(
        "facilities",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("owner_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("address", sa.String(255), nullable=False),
        sa.Column("facility_type", sa.String(30), server_default="bathhouse"),
        sa.Column("description", sa.Text),
        sa.Column("image_url", sa.Text),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("price", sa.Integer, nullable=False),
        sa.Column("amenities", sa.JSON),
        sa.Column("rating_average", sa.Float, server_default="5.0"),
        sa.Column("rating_count", sa.Integer, server_default="0"),
        sa.Column("rating_total", sa.Integer, server_default="0"),
        sa.Column("status", sa.String(20), server_default="pending", index=True),
        sa.Column("moderation_notes", sa.Text),
        sa.Column("reviewed_by", sa.Uuid, sa.ForeignKey("users.id")),
        sa.Column("reviewed_at", sa.DateTime(timezone=True)),
        sa.Column("qr_secret_version", sa.Integer, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "rooms",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("facility_id", sa.Uuid, sa.ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("room_number", sa.String(20), nullable=False),
        sa.Column("room_type", sa.String(20), server_default="single"),
        sa.Column("status", sa.String(20), server_default="available", index=True),
        sa.Column("price", sa.Integer, nullable=False),
        sa.Column("amenities", sa.JSON),
        sa.Column("current_booking_id", sa.Uuid),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("facility_id", "room_number", name="uq_room_number"),
    )

    # ==================== BOOKINGS ====================
    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("booking_number", sa.String(20), unique=True, nullable=False, index=True),
        sa.Column("booking_type", sa.String(20), server_default="reservation"),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("user_name", sa.String(150), nullable=False),
        sa.Column("user_phone", sa.String(20), nullable=False),
        sa.Column("facility_id", sa.Uuid, sa.ForeignKey("facilities.id"), nullable=False, index=True),
        sa.Column("provider_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("facility_name", sa.String(150), nullable=False),
        sa.Column("facility_address", sa.String(255), nullable=False),
        sa.Column("facility_code", sa.String(80), nullable=False),
        sa.Column("room_id", sa.Uuid, sa.ForeignKey("rooms.id", ondelete="SET NULL"), index=True),
        sa.Column("room_number", sa.String(20)),
        sa.Column("room_type", sa.String(20)),
        sa.Column("status", sa.String(20), server_default="pending", index=True),
        sa.Column("payment_status", sa.String(20), server_default="pending"),
        sa.Column("payment_method", sa.String(30)),
        sa.Column("booking_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("estimated_minutes", sa.Integer, server_default="0"),
        sa.Column("estimated_arrival", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expiry_time", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("check_in_time", sa.DateTime(timezone=True)),
        sa.Column("check_out_time", sa.DateTime(timezone=True)),
        sa.Column("total_price", sa.Integer, nullable=False),
        sa.Column("notes", sa.Text),
        sa.Column("provider_notes", sa.Text),
        sa.Column("cancelled_by", sa.String(10)),
        sa.Column("cancellation_reason", sa.Text),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("expired_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "checkin_history",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("booking_id", sa.Uuid, sa.ForeignKey("bookings.id"), unique=True, nullable=False),
        sa.Column("facility_id", sa.Uuid, sa.ForeignKey("facilities.id"), nullable=False, index=True),
        sa.Column("room_id", sa.Uuid, sa.ForeignKey("rooms.id", ondelete="SET NULL")),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_out_time", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("duration_minutes", sa.Integer, server_default="0"),
        sa.Column("price", sa.Integer, nullable=False),
        sa.Column("rating", sa.Integer),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== REVIEWS ====================
    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("facility_id", sa.Uuid, sa.ForeignKey("facilities.id"), nullable=False, index=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("booking_id", sa.Uuid, sa.ForeignKey("bookings.id"), unique=True),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("comment", sa.Text),
        sa.Column("tags", sa.JSON),
        sa.Column("provider_response", sa.Text),
        sa.Column("responded_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating"),
    )

    # ==================== OPERATIONS ====================
    op.create_table(
        "incidents",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("facility_id", sa.Uuid, sa.ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("reporter_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("booking_id", sa.Uuid, sa.ForeignKey("bookings.id")),
        sa.Column("title", sa.String(150), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), server_default="pending", index=True),
        sa.Column("response", sa.Text),
        sa.Column("resolved_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("facility_id", sa.Uuid, sa.ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("item_name", sa.String(100), nullable=False),
        sa.Column("quantity", sa.Integer, server_default="0"),
        sa.Column("unit", sa.String(20), server_default="pcs"),
        sa.Column("min_threshold", sa.Integer, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("quantity >= 0", name="ck_inventory_quantity"),
    )

    op.create_table(
        "maintenance_tasks",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("facility_id", sa.Uuid, sa.ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("room_id", sa.Uuid, sa.ForeignKey("rooms.id", ondelete="SET NULL")),
        sa.Column("task_type", sa.String(50), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("scheduled_date", sa.Date, nullable=False, index=True),
        sa.Column("status", sa.String(20), server_default="pending"),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== ADMIN ====================
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id"), index=True),
        sa.Column("action", sa.String(100), nullable=False, index=True),
        sa.Column("resource_type", sa.String(50), nullable=False, index=True),
        sa.Column("resource_id", sa.Uuid),
        sa.Column("old_values", sa.JSON),
        sa.Column("new_values", sa.JSON),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )


def downgrade() -> None:
    """Drop all database tables in reverse order."""
    op.drop_table("audit_logs")
    op.drop_table("maintenance_tasks")
    op.drop_table("inventory_items")
    op.drop_table("incidents")
    op.drop_table("reviews")
    op.drop_table("checkin_history")
    op.drop_table("bookings")
    op.drop_table("rooms")
    op.drop_table("facilities")
    op.drop_table("users")
