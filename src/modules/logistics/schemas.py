"""Pydantic v2 schemas for containers, allocations and shipping documents."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import ContainerStatus, ShippingDocumentStatus
from src.schemas.responses import Money

# ── Request schemas ──────────────────────────────────────────────────────────


class ContainerCreate(BaseModel):
    container_no: str = Field(..., min_length=1, max_length=50)
    vessel_name: str | None = Field(default=None, max_length=100)
    etd: date | None = None
    eta: date | None = None


class ContainerUpdate(BaseModel):
    """Planning fields only; status and actual times move with workflow triggers."""

    container_no: str | None = Field(default=None, min_length=1, max_length=50)
    vessel_name: str | None = Field(default=None, max_length=100)
    etd: date | None = None
    eta: date | None = None


class AllocationCreate(BaseModel):
    container_id: uuid.UUID
    order_id: uuid.UUID
    order_item_id: uuid.UUID | None = None
    allocated_qty: int | None = Field(default=None, ge=0)
    allocated_amount: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None


class ShippingDocumentCreate(BaseModel):
    order_id: uuid.UUID
    container_id: uuid.UUID | None = None
    doc_no: str | None = Field(default=None, max_length=50)
    status: ShippingDocumentStatus = ShippingDocumentStatus.DRAFT
    issue_date: datetime | None = None
    payload: dict | None = None


# ── Response schemas ─────────────────────────────────────────────────────────


class ContainerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    container_no: str
    vessel_name: str | None = None
    status: ContainerStatus
    etd: date | None = None
    eta: date | None = None
    atd: datetime | None = None
    ata: datetime | None = None
    arrival_at_warehouse: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AllocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    container_id: uuid.UUID
    order_id: uuid.UUID
    order_item_id: uuid.UUID | None = None
    allocated_qty: int | None = None
    allocated_amount: Money | None = None
    notes: str | None = None
    created_at: datetime


class ShippingDocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    container_id: uuid.UUID | None = None
    doc_no: str
    status: ShippingDocumentStatus
    issue_date: datetime | None = None
    payload: dict | None = None
    created_at: datetime
