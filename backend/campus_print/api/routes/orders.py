"""Order Routes — upload, creation, public tracking and admin management.

Invariants:
    - Routes are thin: every decision lives in services/ or core/
    - Public: upload, create, status lookup, name search
    - Admin (require_admin): full listing, status change, deletion
    - Uploads are cancelled (and their blob removed) if the client disconnects
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from campus_print.api.dependencies import (
    get_order_service, get_upload_intake, require_admin,
)
from campus_print.api.routes.disconnect_guard import run_unless_disconnected
from campus_print.schemas.order import (
    DeleteResponse,
    OrderCreate,
    OrderCreatedResponse,
    OrderResponse,
    OrderSummary,
    PricingResponse,
    StatusUpdate,
    UploadResponse,
)
from campus_print.services.order_service import OrderService
from campus_print.services.upload_intake import UploadIntake

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


@router.post("/upload", response_model=UploadResponse)
async def upload_document(
    request: Request,
    file: UploadFile = File(...),
    intake: UploadIntake = Depends(get_upload_intake),
):
    """Store a PDF and report its page count."""
    uploaded = await run_unless_disconnected(request, intake.ingest(file))
    return UploadResponse(
        file_url=uploaded.file_url,
        file_name=uploaded.file_name,
        page_count=uploaded.page_count,
    )


@router.post(
    "", response_model=OrderCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    body: OrderCreate, orders: OrderService = Depends(get_order_service),
):
    """Create an order; cost and tracking code are assigned by the server."""
    order, breakdown = await orders.create_order(body)
    return OrderCreatedResponse(
        **OrderResponse.from_order(order).model_dump(),
        pricing=PricingResponse.from_breakdown(breakdown),
    )


@router.get("/status/{token}", response_model=OrderSummary)
async def track_order(
    token: str, orders: OrderService = Depends(get_order_service),
):
    """Look an order up by tracking code or id."""
    return OrderSummary.from_order(await orders.track(token))


@router.get("/search/{name}", response_model=list[OrderSummary])
async def search_orders(
    name: str, orders: OrderService = Depends(get_order_service),
):
    return [OrderSummary.from_order(o) for o in await orders.search(name)]


@router.get(
    "", response_model=list[OrderResponse],
    dependencies=[Depends(require_admin)],
)
async def list_orders(orders: OrderService = Depends(get_order_service)):
    return [OrderResponse.from_order(o) for o in await orders.list_orders()]


@router.patch(
    "/{order_id}/status", response_model=OrderResponse,
    dependencies=[Depends(require_admin)],
)
async def update_order_status(
    order_id: UUID,
    body: StatusUpdate,
    orders: OrderService = Depends(get_order_service),
):
    order = await orders.change_status(order_id, body.status)
    return OrderResponse.from_order(order)


@router.delete(
    "/{order_id}", response_model=DeleteResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_order(
    order_id: UUID, orders: OrderService = Depends(get_order_service),
):
    await orders.delete_order(order_id)
    return DeleteResponse(message=f"Order {order_id} deleted")
