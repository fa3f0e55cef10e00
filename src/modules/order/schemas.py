"""Pydantic v2 schemas for purchase orders and their line items."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import WorkflowStatus
from src.schemas.responses import Money, Rate

# ── Request schemas ──────────────────────────────────────────────────────────


class OrderItemCreate(BaseModel):
    product_code: str | None = Field(default=None, max_length=100)
    description: str | None = None
    collection: str | None = Field(default=None, max_length=255)
    material: str | None = Field(default=None, max_length=255)
    color: str | None = Field(default=None, max_length=100)
    size_breakdown: dict | None = None
    quantity: int = Field(default=0, ge=0)
    customer_unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    vendor_unit_price: Decimal = Field(default=Decimal("0"), ge=0)


class OrderItemUpdate(BaseModel):
    """Edit of an existing line (``id`` set) or a new line (``id`` omitted)."""

    id: uuid.UUID | None = None
    product_code: str | None = Field(default=None, max_length=100)
    description: str | None = None
    collection: str | None = Field(default=None, max_length=255)
    material: str | None = Field(default=None, max_length=255)
    color: str | None = Field(default=None, max_length=100)
    size_breakdown: dict | None = None
    quantity: int | None = Field(default=None, ge=0)
    customer_unit_price: Decimal | None = Field(default=None, ge=0)
    vendor_unit_price: Decimal | None = Field(default=None, ge=0)


class OrderHeader(BaseModel):
    customer_name: str | None = Field(default=None, max_length=255)
    customer_address: str | None = None
    supplier_name: str | None = Field(default=None, max_length=255)
    supplier_address: str | None = None
    order_date: date | None = None
    so_reference: str | None = Field(default=None, max_length=100)
    exp_ship_date: date | None = None
    cancel_date: date | None = None
    ship_to: str | None = None
    ship_via: str | None = Field(default=None, max_length=100)
    shipment_terms: str | None = Field(default=None, max_length=100)
    payment_terms: str | None = Field(default=None, max_length=100)
    customer_notes: str | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    customer_term_days: int | None = Field(default=None, ge=0, le=365)
    vendor_term_days: int | None = Field(default=None, ge=0, le=365)
    logistics_term_days: int | None = Field(default=None, ge=0, le=365)


class OrderCreate(OrderHeader):
    """A purchase order as extracted from the customer's PO document."""

    vpo_number: str = Field(..., min_length=1, max_length=100)
    items: list[OrderItemCreate] = Field(default_factory=list)


class OrderUpdate(OrderHeader):
    vpo_number: str | None = Field(default=None, min_length=1, max_length=100)
    items: list[OrderItemUpdate] | None = None
    removed_item_ids: list[uuid.UUID] = Field(default_factory=list)


# ── Response schemas ─────────────────────────────────────────────────────────


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    product_code: str | None = None
    description: str | None = None
    collection: str | None = None
    material: str | None = None
    color: str | None = None
    size_breakdown: dict | None = None
    quantity: int
    customer_unit_price: Money
    vendor_unit_price: Money
    tariff_key: str | None = None
    tariff_rate: Rate
    total: Money
    estimated_duty_cost: Money
    estimated_3pl_cost: Money
    estimated_margin: Money


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    vpo_number: str
    customer_name: str | None = None
    customer_address: str | None = None
    supplier_name: str | None = None
    supplier_address: str | None = None
    order_date: date | None = None
    so_reference: str | None = None
    exp_ship_date: date | None = None
    cancel_date: date | None = None
    ship_to: str | None = None
    ship_via: str | None = None
    shipment_terms: str | None = None
    payment_terms: str | None = None
    customer_notes: str | None = None
    currency: str
    workflow_status: WorkflowStatus
    delivered_at: datetime | None = None
    closed_at: datetime | None = None
    customer_term_days: int
    vendor_term_days: int
    logistics_term_days: int
    total_amount: Money
    estimated_margin: Money
    estimated_margin_rate: Rate
    items: list[OrderItemResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    limit: int
    offset: int
