"""Finance API router: invoices, bills, payments and order balances."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.exceptions import NotFoundException
from src.models.enums import PaymentTargetType
from src.modules.finance.schemas import (
    BillResponse,
    BillUpdate,
    CommercialInvoiceCreate,
    LogisticsBillCreate,
    OrderFinanceSummary,
    PaymentCreate,
    PaymentResponse,
    PaymentUpdate,
    VendorBillCreate,
)
from src.modules.finance.service import FinanceService, bill_payload

router = APIRouter(prefix="/finance", tags=["finance"])

# Path segment for each bill kind
_BILL_PATHS: dict[str, PaymentTargetType] = {
    "commercial-invoices": PaymentTargetType.CUSTOMER_INVOICE,
    "vendor-bills": PaymentTargetType.VENDOR_BILL,
    "logistics-bills": PaymentTargetType.LOGISTICS_BILL,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _bill_response(svc: FinanceService, target_type: PaymentTargetType, bill) -> BillResponse:
    balance = await svc.bill_balance(target_type, bill)
    return BillResponse(**bill_payload(bill, balance))


async def _list(svc: FinanceService, target_type: PaymentTargetType, order_id) -> list[BillResponse]:
    bills = await svc.list_bills(target_type, order_id)
    return [await _bill_response(svc, target_type, bill) for bill in bills]


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@router.post("/commercial-invoices", response_model=BillResponse, status_code=201)
async def create_commercial_invoice(
    body: CommercialInvoiceCreate,
    db: AsyncSession = Depends(get_db),
):
    """Open a customer invoice; amount defaults to the order total."""
    svc = FinanceService(db)
    invoice = await svc.create_commercial_invoice(body)
    return await _bill_response(svc, PaymentTargetType.CUSTOMER_INVOICE, invoice)


@router.post("/vendor-bills", response_model=BillResponse, status_code=201)
async def create_vendor_bill(
    body: VendorBillCreate,
    db: AsyncSession = Depends(get_db),
):
    """Open a supplier bill; amount defaults to the order's vendor cost."""
    svc = FinanceService(db)
    bill = await svc.create_vendor_bill(body)
    return await _bill_response(svc, PaymentTargetType.VENDOR_BILL, bill)


@router.post("/logistics-bills", response_model=BillResponse, status_code=201)
async def create_logistics_bill(
    body: LogisticsBillCreate,
    db: AsyncSession = Depends(get_db),
):
    svc = FinanceService(db)
    bill = await svc.create_logistics_bill(body)
    return await _bill_response(svc, PaymentTargetType.LOGISTICS_BILL, bill)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


@router.post("/payments", response_model=PaymentResponse, status_code=201)
async def create_payment(
    body: PaymentCreate,
    db: AsyncSession = Depends(get_db),
):
    """Post a payment against one invoice or bill."""
    payment = await FinanceService(db).create_payment(body)
    return PaymentResponse.model_validate(payment)


@router.get("/payments", response_model=list[PaymentResponse])
async def list_payments(
    target_type: PaymentTargetType | None = Query(None),
    target_id: uuid.UUID | None = Query(None),
    order_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    payments = await FinanceService(db).list_payments(target_type, target_id, order_id)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    payment = await FinanceService(db).get_payment(payment_id)
    return PaymentResponse.model_validate(payment)


@router.patch("/payments/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: uuid.UUID,
    body: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
):
    payment = await FinanceService(db).update_payment(payment_id, body)
    return PaymentResponse.model_validate(payment)


@router.delete("/payments/{payment_id}", status_code=204)
async def delete_payment(
    payment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    await FinanceService(db).delete_payment(payment_id)


# ---------------------------------------------------------------------------
# Order balances
# ---------------------------------------------------------------------------


@router.get("/orders/{order_id}/summary", response_model=OrderFinanceSummary)
async def order_summary(
    order_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Receivable, vendor payable and logistics payable for one order."""
    summary = await FinanceService(db).order_summary(order_id)
    return OrderFinanceSummary(**summary)


# ---------------------------------------------------------------------------
# Bills by kind
# ---------------------------------------------------------------------------


@router.get("/{kind}", response_model=list[BillResponse])
async def list_bills(
    kind: str,
    order_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    target_type = _target_type(kind)
    return await _list(FinanceService(db), target_type, order_id)


@router.get("/{kind}/{bill_id}", response_model=BillResponse)
async def get_bill(
    kind: str,
    bill_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    target_type = _target_type(kind)
    svc = FinanceService(db)
    bill = await svc.get_bill(target_type, bill_id)
    return await _bill_response(svc, target_type, bill)


@router.patch("/{kind}/{bill_id}", response_model=BillResponse)
async def update_bill(
    kind: str,
    bill_id: uuid.UUID,
    body: BillUpdate,
    db: AsyncSession = Depends(get_db),
):
    target_type = _target_type(kind)
    svc = FinanceService(db)
    bill = await svc.update_bill(target_type, bill_id, body)
    return await _bill_response(svc, target_type, bill)


@router.delete("/{kind}/{bill_id}", status_code=204)
async def delete_bill(
    kind: str,
    bill_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete a bill; rejected with 409 while payments reference it."""
    await FinanceService(db).delete_bill(_target_type(kind), bill_id)


def _target_type(kind: str) -> PaymentTargetType:
    try:
        return _BILL_PATHS[kind]
    except KeyError:
        raise NotFoundException(f"Unknown bill kind '{kind}'") from None
