"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions never are — the shell orchestrates the async calls
    - OrderDraft is a frozen dataclass: a fully priced, coded order that only
      needs an identifier from the store
"""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence
from uuid import UUID

from campus_print.core.domain_types import OrderStatus


class FileEntryLike(Protocol):
    """Structural contract for a file attached to an order."""
    file_url: str
    file_name: str
    page_count: int


class OrderLike(Protocol):
    """Structural contract for persisted orders passed to routes and services.

    Avoids coupling routes to the ORM model while giving mypy real types.
    """
    id: UUID
    student_name: str
    student_id: str
    contact: str | None
    copies: int
    color_spec: str
    instructions: str | None
    total_cost: Decimal
    transaction_id: str
    tracking_code: str
    status: str
    created_at: datetime

    @property
    def files(self) -> Sequence[FileEntryLike]: ...


@dataclass(frozen=True)
class FileDraft:
    file_url: str
    file_name: str
    page_count: int


@dataclass(frozen=True)
class OrderDraft:
    """A fully validated, priced order awaiting persistence."""
    student_name: str
    student_id: str
    contact: str | None
    files: tuple[FileDraft, ...]
    copies: int
    color_spec: str
    instructions: str | None
    total_cost: Decimal
    transaction_id: str
    tracking_code: str
    created_at: datetime
    status: OrderStatus = OrderStatus.PENDING

    def with_tracking_code(self, code: str) -> "OrderDraft":
        return replace(self, tracking_code=code)


class OrderStore(Protocol):
    """Contract for order persistence — implemented by shell."""
    async def create(self, draft: OrderDraft) -> OrderLike: ...
    async def tracking_code_exists(self, code: str) -> bool: ...
    async def find_by_tracking_code_or_id(self, token: str) -> OrderLike: ...
    async def search_by_name(self, query: str) -> list[OrderLike]: ...
    async def list_all(self) -> list[OrderLike]: ...
    async def update_status(
        self, order_id: UUID, new_status: OrderStatus,
    ) -> OrderLike: ...
    async def delete_by_id(self, order_id: UUID) -> None: ...


class BlobStore(Protocol):
    """Contract for the external file storage collaborator."""
    async def put(self, data: bytes, content_type: str, namespace: str) -> str: ...
    async def get(self, ref: str) -> bytes: ...
    async def delete(self, ref: str) -> None: ...
    def owns(self, ref: str) -> bool: ...
