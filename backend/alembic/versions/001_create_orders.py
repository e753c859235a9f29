"""Create orders and order_files.

Revision ID: 001_create_orders
Revises: None
Create Date: 2026-10-19

Constraint names match db/base.py NAMING_CONVENTION; services/order_store.py
maps unique violations on tracking_code and file_url by column name.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_create_orders"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("student_name", sa.String(200), nullable=False),
        sa.Column("student_id", sa.String(64), nullable=False),
        sa.Column("contact", sa.String(100), nullable=True),
        sa.Column("copies", sa.Integer, nullable=False, server_default="1"),
        sa.Column("color_spec", sa.Text, nullable=False, server_default=""),
        sa.Column("instructions", sa.Text, nullable=True),
        sa.Column("total_cost", sa.Numeric(10, 2), nullable=False),
        sa.Column("transaction_id", sa.String(100), nullable=False),
        sa.Column("tracking_code", sa.String(10), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_orders"),
        sa.UniqueConstraint("tracking_code", name="uq_orders_tracking_code"),
        sa.CheckConstraint("copies >= 1", name="ck_orders_copies_positive"),
    )
    op.create_index("ix_orders_created_at", "orders", ["created_at"])
    op.create_index("ix_orders_student_name", "orders", ["student_name"])

    op.create_table(
        "order_files",
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("order_id", UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("file_url", sa.Text, nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("page_count", sa.Integer, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_order_files"),
        sa.ForeignKeyConstraint(
            ["order_id"], ["orders.id"],
            name="fk_order_files_order_id_orders", ondelete="CASCADE",
        ),
        sa.UniqueConstraint("file_url", name="uq_order_files_file_url"),
        sa.CheckConstraint("page_count >= 0", name="ck_order_files_page_count_non_negative"),
    )
    op.create_index("ix_order_files_order_id", "order_files", ["order_id"])


def downgrade() -> None:
    op.drop_index("ix_order_files_order_id", table_name="order_files")
    op.drop_table("order_files")
    op.drop_index("ix_orders_student_name", table_name="orders")
    op.drop_index("ix_orders_created_at", table_name="orders")
    op.drop_table("orders")
