"""Order Service — the create-order transaction and the admin/public order operations.

Invariants:
    - total_cost is always computed here from the pricing engine; callers cannot set it
    - Colour pages are resolved, priced and stored in canonical form ("", "all", "1-2,11")
    - A new order starts in the initial status with a tracking code the store
      reported unused
    - A tracking-code collision at persist time is retried exactly once with a
      fresh code; a second collision raises CodeGenerationExhaustedError
    - Nothing is written unless every check passed (single atomic insert)
    - A file whose claimed page count differs from the stored document is
      rejected with ValidationError (field "files")

Design Decisions:
    - Code issuance and the insert run under one asyncio.Lock per process, so
      in-process creations never race past the pre-check; across processes the
      unique constraint decides and the single retry applies
    - Clock and random source are injected so code issuance is reproducible in tests
    - Client page counts are never priced as sent: every file must be a blob
      this service stored, and its pages are re-counted from the blob store
"""

import asyncio
import logging
import random
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID

from campus_print.core.domain_types import OrderStatus
from campus_print.core.errors import (
    CodeGenerationExhaustedError, DuplicateKeyError, ErrorContext, ValidationError,
)
from campus_print.core.page_ranges import (
    format_page_set, parse_page_spec, shift_and_union,
)
from campus_print.core.pricing import CostBreakdown, PricingRates, compute_cost
from campus_print.core.repository_protocols import (
    BlobStore, FileDraft, OrderDraft, OrderLike, OrderStore,
)
from campus_print.schemas.order import FileEntryIn, OrderCreate
from campus_print.services.page_counter import PageCounter
from campus_print.services.tracking_codes import issue_tracking_code

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_color_pages(
    files: list[FileEntryIn], color_spec: str | None, *, strict: bool = False,
) -> tuple[int, ...]:
    """Global colour page set for an order, from either the order-wide or per-file specs."""
    per_file = any(f.color_spec is not None for f in files)
    if per_file and color_spec is not None:
        raise ValidationError(
            "Give colour pages either order-wide or per file, not both", "colorSpec",
        )
    if per_file:
        return shift_and_union(
            [(f.page_count, f.color_spec or "") for f in files], strict=strict,
        )
    total_pages = sum(f.page_count for f in files)
    return parse_page_spec(color_spec or "", total_pages, strict=strict)


class OrderService:
    """Orchestrates pricing, code issuance and persistence of orders."""

    def __init__(
        self,
        store: OrderStore,
        rates: PricingRates,
        *,
        page_counter: PageCounter,
        blob_store: BlobStore,
        max_code_gen_attempts: int = 10,
        strict_page_ranges: bool = False,
        clock: Callable[[], datetime] = _utcnow,
        rng: random.Random | None = None,
    ):
        self._store = store
        self._rates = rates
        self._max_attempts = max_code_gen_attempts
        self._strict = strict_page_ranges
        self._page_counter = page_counter
        self._blob_store = blob_store
        self._clock = clock
        self._rng = rng or random.SystemRandom()
        self._issue_lock = asyncio.Lock()

    def quote(self, request: OrderCreate) -> tuple[str, CostBreakdown]:
        """Canonical colour spec and cost for a request. Pure, no IO."""
        color_pages = resolve_color_pages(
            request.files, request.color_spec, strict=self._strict,
        )
        total_pages = request.total_pages
        breakdown = compute_cost(
            total_pages, request.copies, color_pages, self._rates,
        )
        return format_page_set(color_pages, total_pages), breakdown

    async def create_order(
        self, request: OrderCreate,
    ) -> tuple[OrderLike, CostBreakdown]:
        color_spec, breakdown = self.quote(request)
        await self._verify_files(request.files)

        moment = self._clock()
        draft = OrderDraft(
            student_name=request.student_name,
            student_id=request.student_id,
            contact=request.contact,
            files=tuple(
                FileDraft(
                    file_url=f.file_url, file_name=f.file_name,
                    page_count=f.page_count,
                )
                for f in request.files
            ),
            copies=request.copies,
            color_spec=color_spec,
            instructions=request.instructions,
            total_cost=breakdown.total_cost,
            transaction_id=request.transaction_id,
            tracking_code="",
            created_at=moment,
        )

        async with self._issue_lock:
            order = await self._persist(draft, moment)
        logger.info(
            f"Order created: {breakdown.total_units} units, total {breakdown.total_cost}",
            extra={"order_id": str(order.id), "tracking_code": order.tracking_code},
        )
        return order, breakdown

    async def _persist(self, draft: OrderDraft, moment: datetime) -> OrderLike:
        for persist_attempt in range(2):
            code = await issue_tracking_code(
                self._store,
                max_attempts=self._max_attempts,
                moment=moment,
                rng=self._rng,
            )
            try:
                return await self._store.create(draft.with_tracking_code(code))
            except DuplicateKeyError as e:
                if e.field != "tracking_code":
                    raise
                logger.warning(
                    "Tracking code taken at persist time",
                    extra={"tracking_code": code, "attempt": persist_attempt + 1},
                )
        raise CodeGenerationExhaustedError(
            self._max_attempts, ErrorContext(debug_info={"persist_attempts": 2}),
        )

    async def _verify_files(self, files: list[FileEntryIn]) -> None:
        for f in files:
            ctx = ErrorContext(blob_ref=f.file_url, field="files")
            if not self._blob_store.owns(f.file_url):
                raise ValidationError(
                    f"'{f.file_name}' was not uploaded through this service",
                    "files", ctx,
                )
            actual = await self._page_counter.count(f.file_url)
            if actual != f.page_count:
                raise ValidationError(
                    f"'{f.file_name}' has {actual} pages, not {f.page_count}",
                    "files", ctx,
                )

    # --- Lookups and admin operations ----------------------------------------

    async def track(self, token: str) -> OrderLike:
        return await self._store.find_by_tracking_code_or_id(token)

    async def search(self, name: str) -> list[OrderLike]:
        if not name.strip():
            raise ValidationError("Search name cannot be empty", "name")
        return await self._store.search_by_name(name)

    async def list_orders(self) -> list[OrderLike]:
        return await self._store.list_all()

    async def change_status(self, order_id: UUID, status: OrderStatus) -> OrderLike:
        return await self._store.update_status(order_id, status)

    async def delete_order(self, order_id: UUID) -> None:
        await self._store.delete_by_id(order_id)
