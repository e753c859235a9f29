"""OrderFile ORM — one uploaded document attached to an order.

Invariants:
    - Always belongs to an Order (order_id FK, ON DELETE CASCADE)
    - position is the file's index in the order, starting at 0
    - file_url is unique: a blob reference is never shared across orders
    - page_count >= 0 enforced by a check constraint
"""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from campus_print.db.base import Base


class OrderFile(Base):
    """File entry — immutable once attached."""
    __tablename__ = "order_files"
    __table_args__ = (
        CheckConstraint("page_count >= 0", name="page_count_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    file_url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    page_count: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["Order"] = relationship("Order", back_populates="files")
