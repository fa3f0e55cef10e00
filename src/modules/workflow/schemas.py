"""Pydantic v2 schemas for workflow triggers, rollbacks and the order timeline."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from src.models.enums import WorkflowRollback, WorkflowStatus, WorkflowTrigger
from src.schemas.responses import Money, Rate

# ── Request schemas ──────────────────────────────────────────────────────────


class WorkflowTriggerRequest(BaseModel):
    action: WorkflowTrigger
    # Omitted -> the container of the order's first allocation, if any
    container_id: uuid.UUID | None = None
    # MARK_DELIVERED only; omitted -> now
    delivered_at: datetime | None = None


class WorkflowRollbackRequest(BaseModel):
    action: WorkflowRollback


class MilestoneUpdate(BaseModel):
    """Inputs the status is derived from. The status itself is never accepted."""

    delivered_at: datetime | None = None
    customer_term_days: int | None = Field(default=None, ge=0, le=365)
    vendor_term_days: int | None = Field(default=None, ge=0, le=365)
    logistics_term_days: int | None = Field(default=None, ge=0, le=365)


# ── Response schemas ─────────────────────────────────────────────────────────


class WorkflowStatusResponse(BaseModel):
    order_id: uuid.UUID
    workflow_status: WorkflowStatus
    delivered_at: datetime | None = None
    closed_at: datetime | None = None
    total_amount: Money
    estimated_margin: Money
    estimated_margin_rate: Rate


class TriggerDocuments(BaseModel):
    shipping_document_id: uuid.UUID | None = None
    shipping_document_created: bool = False
    commercial_invoice_id: uuid.UUID | None = None
    commercial_invoice_created: bool = False
    vendor_bill_id: uuid.UUID | None = None
    vendor_bill_created: bool = False


class WorkflowTriggerResponse(BaseModel):
    order_id: uuid.UUID
    action: WorkflowTrigger
    container_id: uuid.UUID | None = None
    documents: TriggerDocuments
    workflow_status: WorkflowStatus


class RollbackCounts(BaseModel):
    payments: int = 0
    logistics_bills: int = 0
    commercial_invoices: int = 0
    vendor_bills: int = 0
    shipping_documents: int = 0
    containers_reverted: int = 0
    delivery_cleared: bool = False


class WorkflowRollbackResponse(BaseModel):
    order_id: uuid.UUID
    action: WorkflowRollback
    removed: RollbackCounts
    workflow_status: WorkflowStatus


class TimelineEvent(BaseModel):
    event_type: str
    occurred_at: datetime
    reference_id: uuid.UUID | None = None
    description: str


class TimelineResponse(BaseModel):
    order_id: uuid.UUID
    workflow_status: WorkflowStatus
    events: list[TimelineEvent]
