"""Pydantic v2 schemas for invoices, bills, payments and order balances."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import BillStatus, PaymentDirection, PaymentTargetType, WorkflowStatus
from src.schemas.responses import Money

# ── Request schemas ──────────────────────────────────────────────────────────


class CommercialInvoiceCreate(BaseModel):
    order_id: uuid.UUID
    container_id: uuid.UUID | None = None
    invoice_no: str | None = Field(default=None, max_length=50)
    # Omitted -> the order's total revenue
    amount: Decimal | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    issue_date: date | None = None
    due_date: date | None = None


class VendorBillCreate(BaseModel):
    order_id: uuid.UUID
    bill_no: str | None = Field(default=None, max_length=50)
    # Omitted or zero -> sum of quantity x vendor unit price
    amount: Decimal | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    issue_date: date | None = None
    due_date: date | None = None


class LogisticsBillCreate(BaseModel):
    container_id: uuid.UUID
    order_id: uuid.UUID | None = None
    provider: str | None = Field(default=None, max_length=100)
    bill_no: str | None = Field(default=None, max_length=50)
    amount: Decimal
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    issue_date: date | None = None
    due_date: date | None = None


class BillUpdate(BaseModel):
    """Editable bill fields. Status always follows the payments."""

    document_no: str | None = Field(default=None, min_length=1, max_length=50)
    amount: Decimal | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    issue_date: date | None = None
    due_date: date | None = None


class PaymentCreate(BaseModel):
    target_type: PaymentTargetType
    target_id: uuid.UUID
    amount: Decimal
    # Omitted -> IN for customer invoices, OUT for payables
    direction: PaymentDirection | None = None
    payment_date: datetime | None = None
    method: str | None = Field(default=None, max_length=50)
    reference_no: str | None = Field(default=None, max_length=100)
    notes: str | None = None


class PaymentUpdate(BaseModel):
    amount: Decimal | None = None
    direction: PaymentDirection | None = None
    payment_date: datetime | None = None
    method: str | None = Field(default=None, max_length=50)
    reference_no: str | None = Field(default=None, max_length=100)
    notes: str | None = None


# ── Response schemas ─────────────────────────────────────────────────────────


class BillResponse(BaseModel):
    id: uuid.UUID
    target_type: PaymentTargetType
    document_no: str
    order_id: uuid.UUID | None = None
    container_id: uuid.UUID | None = None
    provider: str | None = None
    amount: Money
    paid: Money
    outstanding: Money
    currency: str
    status: BillStatus
    issue_date: date | None = None
    due_date: date | None = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    target_type: PaymentTargetType
    target_id: uuid.UUID
    direction: PaymentDirection
    amount: Money
    payment_date: datetime | None = None
    method: str | None = None
    reference_no: str | None = None
    notes: str | None = None
    created_at: datetime


class LedgerTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    amount: Money
    paid: Money
    outstanding: Money
    count: int


class OrderFinanceSummary(BaseModel):
    order_id: uuid.UUID
    workflow_status: WorkflowStatus
    currency: str
    documents: list[BillResponse]
    receivable: LedgerTotalsResponse
    vendor_payable: LedgerTotalsResponse
    logistics_payable: LedgerTotalsResponse
    settled: bool
