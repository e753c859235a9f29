"""SQL Order Store — OrderStore implementation over async SQLAlchemy.

Invariants:
    - Every operation runs in its own session/transaction (safe under concurrency)
    - create() writes the order row and all file rows atomically, or nothing
    - tracking-code uniqueness is enforced by uq_orders_tracking_code; a violation
      surfaces as DuplicateKeyError(field="tracking_code")
    - status changes are validated by core/order_status.py and then applied with a
      conditional UPDATE (WHERE status = current), so two racing transitions
      cannot both succeed
    - deletion only for orders in the terminal status

Design Decisions:
    - Returns detached ORM objects (expire_on_commit=False, files loaded via selectin)
    - Name search escapes LIKE wildcards so user input is matched literally
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from campus_print.core.domain_types import OrderStatus
from campus_print.core.errors import (
    DuplicateKeyError, ErrorContext, InvalidTransitionError, NotFoundError,
)
from campus_print.core.order_status import check_deletable, check_transition
from campus_print.core.repository_protocols import OrderDraft
from campus_print.infrastructure.database import DatabaseSessionManager
from campus_print.models.order import Order
from campus_print.models.order_file import OrderFile

logger = logging.getLogger(__name__)


def _parse_uuid(token: str) -> UUID | None:
    try:
        return UUID(token)
    except (ValueError, AttributeError, TypeError):
        return None


def _escape_like(query: str) -> str:
    return (
        query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )


def _duplicate_field(error: IntegrityError) -> str | None:
    """Which unique column an IntegrityError is about (None for other constraints)."""
    message = str(error.orig)
    if "tracking_code" in message:
        return "tracking_code"
    if "file_url" in message:
        return "file_url"
    return None


class SqlOrderStore:
    """Order persistence backed by the configured SQL database."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def create(self, draft: OrderDraft) -> Order:
        order = Order(
            student_name=draft.student_name,
            student_id=draft.student_id,
            contact=draft.contact,
            copies=draft.copies,
            color_spec=draft.color_spec,
            instructions=draft.instructions,
            total_cost=draft.total_cost,
            transaction_id=draft.transaction_id,
            tracking_code=draft.tracking_code,
            status=draft.status.value,
            created_at=draft.created_at,
            files=[
                OrderFile(
                    position=i,
                    file_url=f.file_url,
                    file_name=f.file_name,
                    page_count=f.page_count,
                )
                for i, f in enumerate(draft.files)
            ],
        )
        async with self._db.session() as db:
            db.add(order)
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                field = _duplicate_field(e)
                if field is None:
                    raise
                value = (
                    draft.tracking_code if field == "tracking_code"
                    else ", ".join(f.file_url for f in draft.files)
                )
                raise DuplicateKeyError(
                    field, value,
                    ErrorContext(tracking_code=draft.tracking_code),
                ) from e
        logger.info(
            "Order persisted",
            extra={"order_id": str(order.id), "tracking_code": order.tracking_code},
        )
        return order

    async def tracking_code_exists(self, code: str) -> bool:
        async with self._db.session() as db:
            result = await db.execute(
                select(Order.id).where(Order.tracking_code == code),
            )
            return result.first() is not None

    async def find_by_tracking_code_or_id(self, token: str) -> Order:
        token = token.strip()
        async with self._db.session() as db:
            result = await db.execute(
                select(Order).where(Order.tracking_code == token),
            )
            order = result.scalar_one_or_none()
            if order is None:
                order_id = _parse_uuid(token)
                if order_id is not None:
                    order = await self._get(db, order_id)
        if order is None:
            raise NotFoundError("Order", token)
        return order

    async def search_by_name(self, query: str) -> list[Order]:
        pattern = f"%{_escape_like(query.strip())}%"
        async with self._db.session() as db:
            result = await db.execute(
                select(Order)
                .where(Order.student_name.ilike(pattern, escape="\\"))
                .order_by(Order.created_at.desc()),
            )
            return list(result.scalars().all())

    async def list_all(self) -> list[Order]:
        async with self._db.session() as db:
            result = await db.execute(
                select(Order).order_by(Order.created_at.desc()),
            )
            return list(result.scalars().all())

    async def update_status(
        self, order_id: UUID, new_status: OrderStatus,
    ) -> Order:
        ctx = ErrorContext(order_id=str(order_id))
        async with self._db.session() as db:
            order = await self._get_or_404(db, order_id)
            current = OrderStatus(order.status)
            check_transition(current, new_status, ctx)

            result = await db.execute(
                update(Order)
                .where(Order.id == order_id, Order.status == current.value)
                .values(status=new_status.value)
                .execution_options(synchronize_session=False),
            )
            if result.rowcount != 1:
                await db.rollback()
                raise InvalidTransitionError(
                    f"Order changed concurrently; it is no longer {current.value}",
                    ctx,
                )
            await db.commit()
            await db.refresh(order)
        logger.info(
            f"Order status {current.value} -> {new_status.value}",
            extra={"order_id": str(order_id)},
        )
        return order

    async def delete_by_id(self, order_id: UUID) -> None:
        ctx = ErrorContext(order_id=str(order_id))
        async with self._db.session() as db:
            order = await self._get_or_404(db, order_id)
            check_deletable(OrderStatus(order.status), ctx)
            await db.delete(order)
            await db.commit()
        logger.info("Order deleted", extra={"order_id": str(order_id)})

    async def _get(self, db: AsyncSession, order_id: UUID) -> Order | None:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def _get_or_404(self, db: AsyncSession, order_id: UUID) -> Order:
        order = await self._get(db, order_id)
        if order is None:
            raise NotFoundError("Order", str(order_id))
        return order
