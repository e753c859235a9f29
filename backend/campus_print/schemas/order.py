"""Order Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - JSON field names are camelCase (fileUrl, trackingCode, ...); Python names stay snake_case
    - OrderCreate never carries a cost: unknown fields such as totalCost are ignored
    - An order has at least one file and no file reference twice
    - Colour pages come either order-wide (colorSpec) or per file, never both
    - Money stays a Decimal in Python and leaves the API as a JSON number

Design Decisions:
    - field_validator for side-effect-free transforms (strip)
    - from_order() builders keep routes free of attribute plumbing
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import (
    BaseModel, ConfigDict, Field, PlainSerializer, field_validator, model_validator,
)
from pydantic.alias_generators import to_camel

from campus_print.core.domain_types import OrderStatus
from campus_print.core.pricing import CostBreakdown
from campus_print.core.repository_protocols import OrderLike


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore",
    )


# Decimal in Python; a plain number in JSON responses
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# --- Requests -----------------------------------------------------------------

class FileEntryIn(CamelModel):
    """One uploaded file as returned by POST /orders/upload."""
    file_url: str = Field(min_length=1, max_length=2048)
    file_name: str = Field(min_length=1, max_length=255)
    page_count: int = Field(ge=0)
    color_spec: str | None = Field(None, max_length=1000)


class OrderCreate(CamelModel):
    """Order creation — everything except cost, code and status."""
    student_name: str = Field(min_length=1, max_length=200)
    student_id: str = Field(min_length=1, max_length=64)
    contact: str | None = Field(None, max_length=100)
    files: list[FileEntryIn] = Field(min_length=1, max_length=50)
    copies: int = Field(1, ge=1)
    color_spec: str | None = Field(None, max_length=1000)
    instructions: str | None = Field(None, max_length=2000)
    transaction_id: str = Field(min_length=1, max_length=100)

    @field_validator("student_name", "student_id", "transaction_id")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v

    @field_validator("contact", "instructions")
    @classmethod
    def strip_optional(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @model_validator(mode="after")
    def validate_files(self):
        urls = [f.file_url for f in self.files]
        if len(set(urls)) != len(urls):
            raise ValueError("the same file cannot be attached twice")
        has_per_file = any(f.color_spec is not None for f in self.files)
        if has_per_file and self.color_spec is not None:
            raise ValueError(
                "give colour pages either order-wide (colorSpec) or per file, not both",
            )
        return self

    @property
    def total_pages(self) -> int:
        return sum(f.page_count for f in self.files)


class StatusUpdate(CamelModel):
    status: OrderStatus


# --- Responses ----------------------------------------------------------------

class UploadResponse(CamelModel):
    file_url: str
    file_name: str
    page_count: int


class FileEntryOut(CamelModel):
    file_url: str
    file_name: str
    page_count: int


class OrderResponse(CamelModel):
    """Full order — admin listing and creation response."""
    id: UUID
    student_name: str
    student_id: str
    contact: str | None
    files: list[FileEntryOut]
    copies: int
    color_spec: str
    instructions: str | None
    total_cost: Money
    transaction_id: str
    tracking_code: str
    status: OrderStatus
    created_at: datetime

    @classmethod
    def from_order(cls, order: OrderLike) -> "OrderResponse":
        return cls(
            id=order.id,
            student_name=order.student_name,
            student_id=order.student_id,
            contact=order.contact,
            files=[
                FileEntryOut(
                    file_url=f.file_url, file_name=f.file_name,
                    page_count=f.page_count,
                )
                for f in order.files
            ],
            copies=order.copies,
            color_spec=order.color_spec,
            instructions=order.instructions,
            total_cost=order.total_cost,
            transaction_id=order.transaction_id,
            tracking_code=order.tracking_code,
            status=OrderStatus(order.status),
            created_at=order.created_at,
        )


class PricingResponse(CamelModel):
    total_units: int
    color_units: int
    bw_units: int
    total_cost: Money

    @classmethod
    def from_breakdown(cls, breakdown: CostBreakdown) -> "PricingResponse":
        return cls(
            total_units=breakdown.total_units,
            color_units=breakdown.color_units,
            bw_units=breakdown.bw_units,
            total_cost=breakdown.total_cost,
        )


class OrderCreatedResponse(OrderResponse):
    pricing: PricingResponse


class OrderSummary(CamelModel):
    """Public view — enough to track an order, nothing about the student's contact."""
    id: UUID
    tracking_code: str
    status: OrderStatus
    student_name: str
    file_names: list[str]
    total_cost: Money
    created_at: datetime

    @classmethod
    def from_order(cls, order: OrderLike) -> "OrderSummary":
        return cls(
            id=order.id,
            tracking_code=order.tracking_code,
            status=OrderStatus(order.status),
            student_name=order.student_name,
            file_names=[f.file_name for f in order.files],
            total_cost=order.total_cost,
            created_at=order.created_at,
        )


class DeleteResponse(CamelModel):
    message: str
