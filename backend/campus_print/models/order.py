"""Order ORM — persists the aggregate root of the print pipeline.

Invariants:
    - id is UUID primary key
    - tracking_code is unique across all orders (uq_orders_tracking_code)
    - copies >= 1 enforced by a check constraint
    - status is one of OrderStatus values; only status changes after insert
    - files are owned exclusively by this order, kept in upload order

Design Decisions:
    - Numeric(10, 2) for total_cost: money never goes through float
    - cascade delete for files: an order owns its file entries
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint, DateTime, Integer, Numeric, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from campus_print.core.domain_types import OrderStatus
from campus_print.db.base import Base


class Order(Base):
    """Order aggregate root — owns its file entries."""
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("copies >= 1", name="copies_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    student_name: Mapped[str] = mapped_column(
        String(200), nullable=False, index=True,
    )
    student_id: Mapped[str] = mapped_column(String(64), nullable=False)
    contact: Mapped[str | None] = mapped_column(String(100), nullable=True)
    copies: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    color_spec: Mapped[str] = mapped_column(
        Text, nullable=False, default="",
    )
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_cost: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False,
    )
    transaction_id: Mapped[str] = mapped_column(String(100), nullable=False)
    tracking_code: Mapped[str] = mapped_column(
        String(10), nullable=False, unique=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderStatus.PENDING.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )

    files: Mapped[list["OrderFile"]] = relationship(
        "OrderFile", back_populates="order",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="OrderFile.position",
    )
