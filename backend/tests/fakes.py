"""Test Doubles — in-memory stores and a PDF factory for service and API tests.

Invariants:
    - InMemoryOrderStore enforces the same uniqueness rules as the SQL store
      (tracking_code, file_url) and raises the same DuplicateKeyError
    - create() yields to the event loop between its check and its insert, so
      concurrent callers really interleave
    - InMemoryBlobStore refs look like "mem://<namespace>/<n>"; unknown refs
      raise StorageError like the real stores
    - worker_page_count hangs or kills its worker process for marked
      documents; it must stay importable at module level for the worker pool
    - UploadedFiles registers a blob and its true page count together, the
      way upload intake leaves them for order creation

Design Decisions:
    - Flat fake classes (no inheritance): simple, explicit, easy to debug
    - make_pdf uses pypdf's writer so page counting is exercised on real PDFs
"""

import asyncio
import io
import os
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from pypdf import PdfWriter

from campus_print.core.domain_types import OrderStatus
from campus_print.core.errors import DuplicateKeyError, NotFoundError, StorageError
from campus_print.core.order_status import check_deletable, check_transition
from campus_print.core.repository_protocols import FileDraft, OrderDraft
from campus_print.services.page_counter import count_pdf_pages


def make_pdf(pages: int) -> bytes:
    """A real PDF with `pages` blank letter-size pages."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


# -- Orders --------------------------------------------------------------------


@dataclass
class StoredOrder:
    id: uuid.UUID
    student_name: str
    student_id: str
    contact: str | None
    files: list[FileDraft]
    copies: int
    color_spec: str
    instructions: str | None
    total_cost: Decimal
    transaction_id: str
    tracking_code: str
    status: str
    created_at: datetime


class InMemoryOrderStore:
    """OrderStore over a dict, with hooks to provoke collisions."""

    def __init__(self):
        self.orders: dict[uuid.UUID, StoredOrder] = {}
        self.reserved_codes: set[str] = set()
        self.codes_checked: list[str] = []
        # the next N inserts fail as if another process took the code first
        self.insert_collisions = 0

    async def create(self, draft: OrderDraft) -> StoredOrder:
        await asyncio.sleep(0)
        if self.insert_collisions > 0:
            self.insert_collisions -= 1
            raise DuplicateKeyError("tracking_code", draft.tracking_code)
        if draft.tracking_code in self._codes():
            raise DuplicateKeyError("tracking_code", draft.tracking_code)
        taken_urls = {f.file_url for o in self.orders.values() for f in o.files}
        for f in draft.files:
            if f.file_url in taken_urls:
                raise DuplicateKeyError("file_url", f.file_url)
        order = StoredOrder(
            id=uuid.uuid4(),
            student_name=draft.student_name,
            student_id=draft.student_id,
            contact=draft.contact,
            files=list(draft.files),
            copies=draft.copies,
            color_spec=draft.color_spec,
            instructions=draft.instructions,
            total_cost=draft.total_cost,
            transaction_id=draft.transaction_id,
            tracking_code=draft.tracking_code,
            status=draft.status.value,
            created_at=draft.created_at,
        )
        self.orders[order.id] = order
        return order

    async def tracking_code_exists(self, code: str) -> bool:
        self.codes_checked.append(code)
        await asyncio.sleep(0)
        return code in self._codes() or code in self.reserved_codes

    async def find_by_tracking_code_or_id(self, token: str) -> StoredOrder:
        for order in self.orders.values():
            if order.tracking_code == token or str(order.id) == token:
                return order
        raise NotFoundError("Order", token)

    async def search_by_name(self, query: str) -> list[StoredOrder]:
        q = query.strip().lower()
        return self._newest_first(
            o for o in self.orders.values() if q in o.student_name.lower()
        )

    async def list_all(self) -> list[StoredOrder]:
        return self._newest_first(self.orders.values())

    async def update_status(
        self, order_id: uuid.UUID, new_status: OrderStatus,
    ) -> StoredOrder:
        order = self._get(order_id)
        check_transition(OrderStatus(order.status), new_status)
        order.status = new_status.value
        return order

    async def delete_by_id(self, order_id: uuid.UUID) -> None:
        order = self._get(order_id)
        check_deletable(OrderStatus(order.status))
        del self.orders[order_id]

    def _get(self, order_id: uuid.UUID) -> StoredOrder:
        if order_id not in self.orders:
            raise NotFoundError("Order", str(order_id))
        return self.orders[order_id]

    def _codes(self) -> set[str]:
        return {o.tracking_code for o in self.orders.values()}

    @staticmethod
    def _newest_first(orders) -> list[StoredOrder]:
        return sorted(orders, key=lambda o: o.created_at, reverse=True)


# -- Blobs ---------------------------------------------------------------------


@dataclass
class InMemoryBlobStore:
    """BlobStore over a dict. Set put_delay/get_delay to simulate slow storage."""
    blobs: dict[str, bytes] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)
    put_delay: float = 0.0
    get_delay: float = 0.0
    fail_put: bool = False
    _counter: int = 0

    async def put(self, data: bytes, content_type: str, namespace: str) -> str:
        if self.put_delay:
            await asyncio.sleep(self.put_delay)
        if self.fail_put:
            raise StorageError("quota exceeded", "put")
        self._counter += 1
        ref = f"mem://{namespace}/{self._counter}"
        self.blobs[ref] = bytes(data)
        return ref

    async def get(self, ref: str) -> bytes:
        if self.get_delay:
            await asyncio.sleep(self.get_delay)
        if ref not in self.blobs:
            raise StorageError("blob not found", "get")
        return self.blobs[ref]

    async def delete(self, ref: str) -> None:
        self.blobs.pop(ref, None)
        self.deleted.append(ref)

    def owns(self, ref: str) -> bool:
        return ref in self.blobs


@dataclass
class FakeUpload:
    """Stands in for FastAPI's UploadFile."""
    data: bytes
    filename: str | None = "notes.pdf"
    content_type: str | None = "application/pdf"
    size: int | None = None

    def __post_init__(self):
        self._stream = io.BytesIO(self.data)

    async def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)


@dataclass
class StaticPageCounter:
    """Stands in for PageCounter with page counts registered per blob ref."""
    pages: dict[str, int] = field(default_factory=dict)
    counted: list[str] = field(default_factory=list)

    async def count(self, ref: str) -> int:
        self.counted.append(ref)
        if ref not in self.pages:
            raise StorageError("blob not found", "get")
        return self.pages[ref]


class UploadedFiles:
    """Registers blobs as if they had gone through upload intake."""

    def __init__(self, blobs: InMemoryBlobStore, counter: StaticPageCounter):
        self.blobs = blobs
        self.counter = counter

    def add(self, pages: int, name: str = "lab.pdf", **extra) -> dict:
        self.blobs._counter += 1
        ref = f"mem://campus_print/{self.blobs._counter}"
        self.blobs.blobs[ref] = b"%PDF-"
        self.counter.pages[ref] = pages
        return {"fileUrl": ref, "fileName": name, "pageCount": pages, **extra}


SLOW_PDF = b"%PDF-SLOW\n"
CRASH_PDF = b"%PDF-CRASH\n"


def worker_page_count(data: bytes) -> int:
    """count_pdf_pages, except marked documents hang or take the worker down."""
    if data.startswith(SLOW_PDF):
        time.sleep(60)
    if data.startswith(CRASH_PDF):
        os._exit(1)
    return count_pdf_pages(data)
