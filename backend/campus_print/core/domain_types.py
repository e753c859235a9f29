"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - OrderId wraps UUID, TrackingCode wraps str — never bare primitives in domain logic
    - Money is always Decimal (never float) inside the core
    - All valid order states encoded as an Enum — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enum: serializes to JSON without custom encoders
"""

from decimal import Decimal
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

OrderId = NewType("OrderId", UUID)
TrackingCode = NewType("TrackingCode", str)
BlobRef = NewType("BlobRef", str)


# ─── Value Types ─────────────────────────────────────────────────

Money = NewType("Money", Decimal)


# ─── Enums ───────────────────────────────────────────────────────

class OrderStatus(str, Enum):
    """Order lifecycle states — maps to DB `status` column."""
    PENDING = "Pending"
    PRINTED = "Printed"
    COLLECTED = "Collected"


class BlobBackend(str, Enum):
    """Blob store implementations selectable via configuration."""
    LOCAL = "local"
    CLOUDINARY = "cloudinary"


PDF_MEDIA_TYPE = "application/pdf"
