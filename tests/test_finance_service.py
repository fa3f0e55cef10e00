"""Tests for FinanceService: bills, payments and the per-order ledger."""

import uuid
from datetime import date
from decimal import Decimal

import pytest

from src.exceptions import ConflictException, NotFoundException, ValidationException
from src.models.enums import BillStatus, PaymentDirection, PaymentTargetType, WorkflowStatus
from src.modules.finance.schemas import (
    BillUpdate,
    CommercialInvoiceCreate,
    LogisticsBillCreate,
    PaymentCreate,
    PaymentUpdate,
    VendorBillCreate,
)
from src.modules.finance.service import FinanceService
from tests.factories import create_container, create_order


class TestBills:
    @pytest.mark.asyncio
    async def test_invoice_defaults_from_order(self, async_test_session):
        order = await create_order(async_test_session)
        service = FinanceService(async_test_session)

        invoice = await service.create_commercial_invoice(
            CommercialInvoiceCreate(order_id=order.id, issue_date=date(2026, 5, 1))
        )

        assert invoice.amount == Decimal("1000.00")
        assert invoice.currency == "USD"
        assert invoice.due_date == date(2026, 5, 31)
        assert invoice.invoice_no.startswith("CI-")
        assert order.workflow_status == WorkflowStatus.IN_TRANSIT

    @pytest.mark.asyncio
    async def test_vendor_bill_amount_defaults_to_vendor_cost(self, async_test_session):
        order = await create_order(async_test_session)
        bill = await FinanceService(async_test_session).create_vendor_bill(
            VendorBillCreate(order_id=order.id, bill_no="  VB-ACME-7 ")
        )
        assert bill.amount == Decimal("500.00")
        assert bill.bill_no == "VB-ACME-7"

    @pytest.mark.asyncio
    async def test_logistics_bill_requires_positive_amount(self, async_test_session):
        container = await create_container(async_test_session)
        with pytest.raises(ValidationException):
            await FinanceService(async_test_session).create_logistics_bill(
                LogisticsBillCreate(container_id=container.id, amount=Decimal("0"))
            )

    @pytest.mark.asyncio
    async def test_logistics_bill_without_order(self, async_test_session):
        container = await create_container(async_test_session)
        bill = await FinanceService(async_test_session).create_logistics_bill(
            LogisticsBillCreate(
                container_id=container.id, amount=Decimal("75.5"), issue_date=date(2026, 3, 1)
            )
        )
        assert bill.order_id is None
        assert bill.provider == "3PL"
        assert bill.amount == Decimal("75.50")
        assert bill.due_date == date(2026, 3, 16)

    @pytest.mark.asyncio
    async def test_update_bill_rederives_status(self, async_test_session):
        order = await create_order(async_test_session)
        service = FinanceService(async_test_session)
        invoice = await service.create_commercial_invoice(CommercialInvoiceCreate(order_id=order.id))
        await service.create_payment(
            PaymentCreate(
                target_type=PaymentTargetType.CUSTOMER_INVOICE,
                target_id=invoice.id,
                amount=Decimal("400"),
            )
        )
        assert invoice.status == BillStatus.PARTIAL

        await service.update_bill(
            PaymentTargetType.CUSTOMER_INVOICE, invoice.id, BillUpdate(amount=Decimal("400"))
        )
        assert invoice.status == BillStatus.PAID

    @pytest.mark.asyncio
    async def test_delete_bill_with_payments_is_conflict(self, async_test_session):
        order = await create_order(async_test_session)
        service = FinanceService(async_test_session)
        invoice = await service.create_commercial_invoice(CommercialInvoiceCreate(order_id=order.id))
        payment = await service.create_payment(
            PaymentCreate(
                target_type=PaymentTargetType.CUSTOMER_INVOICE,
                target_id=invoice.id,
                amount=Decimal("10"),
            )
        )

        with pytest.raises(ConflictException):
            await service.delete_bill(PaymentTargetType.CUSTOMER_INVOICE, invoice.id)

        await service.delete_payment(payment.id)
        await service.delete_bill(PaymentTargetType.CUSTOMER_INVOICE, invoice.id)
        with pytest.raises(NotFoundException):
            await service.get_bill(PaymentTargetType.CUSTOMER_INVOICE, invoice.id)
        assert order.workflow_status == WorkflowStatus.PO_UPLOADED


class TestPayments:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-5"])
    async def test_rejects_non_positive_amount(self, async_test_session, amount):
        order = await create_order(async_test_session)
        service = FinanceService(async_test_session)
        invoice = await service.create_commercial_invoice(CommercialInvoiceCreate(order_id=order.id))

        with pytest.raises(ValidationException) as exc_info:
            await service.create_payment(
                PaymentCreate(
                    target_type=PaymentTargetType.CUSTOMER_INVOICE,
                    target_id=invoice.id,
                    amount=Decimal(amount),
                )
            )
        assert exc_info.value.details[0]["field"] == "amount"

    @pytest.mark.asyncio
    async def test_unknown_target_is_404(self, async_test_session):
        with pytest.raises(NotFoundException):
            await FinanceService(async_test_session).create_payment(
                PaymentCreate(
                    target_type=PaymentTargetType.VENDOR_BILL,
                    target_id=uuid.uuid4(),
                    amount=Decimal("1"),
                )
            )

    @pytest.mark.asyncio
    async def test_direction_defaults_by_target(self, async_test_session):
        order = await create_order(async_test_session)
        service = FinanceService(async_test_session)
        invoice = await service.create_commercial_invoice(CommercialInvoiceCreate(order_id=order.id))
        bill = await service.create_vendor_bill(VendorBillCreate(order_id=order.id))

        incoming = await service.create_payment(
            PaymentCreate(
                target_type=PaymentTargetType.CUSTOMER_INVOICE, target_id=invoice.id, amount=Decimal("1")
            )
        )
        outgoing = await service.create_payment(
            PaymentCreate(
                target_type=PaymentTargetType.VENDOR_BILL, target_id=bill.id, amount=Decimal("1")
            )
        )

        assert incoming.direction == PaymentDirection.IN
        assert outgoing.direction == PaymentDirection.OUT
        assert incoming.payment_date is not None
        listed = await service.list_payments(order_id=order.id)
        assert {p.id for p in listed} == {incoming.id, outgoing.id}

    @pytest.mark.asyncio
    async def test_over_payment_marks_paid(self, async_test_session):
        order = await create_order(async_test_session)
        service = FinanceService(async_test_session)
        invoice = await service.create_commercial_invoice(CommercialInvoiceCreate(order_id=order.id))

        await service.create_payment(
            PaymentCreate(
                target_type=PaymentTargetType.CUSTOMER_INVOICE,
                target_id=invoice.id,
                amount=Decimal("1200"),
            )
        )

        assert invoice.status == BillStatus.PAID
        balance = await service.bill_balance(PaymentTargetType.CUSTOMER_INVOICE, invoice)
        assert balance.paid == Decimal("1200.00")

    @pytest.mark.asyncio
    async def test_update_ignores_null_amount(self, async_test_session):
        order = await create_order(async_test_session)
        service = FinanceService(async_test_session)
        invoice = await service.create_commercial_invoice(CommercialInvoiceCreate(order_id=order.id))
        payment = await service.create_payment(
            PaymentCreate(
                target_type=PaymentTargetType.CUSTOMER_INVOICE,
                target_id=invoice.id,
                amount=Decimal("400"),
            )
        )

        updated = await service.update_payment(
            payment.id, PaymentUpdate(amount=None, reference_no="TT-77")
        )

        assert updated.amount == Decimal("400.00")
        assert updated.reference_no == "TT-77"
        assert invoice.status == BillStatus.PARTIAL


class TestOrderSummary:
    @pytest.mark.asyncio
    async def test_totals_per_side(self, async_test_session):
        order = await create_order(async_test_session)
        container = await create_container(async_test_session)
        service = FinanceService(async_test_session)
        invoice = await service.create_commercial_invoice(CommercialInvoiceCreate(order_id=order.id))
        await service.create_vendor_bill(VendorBillCreate(order_id=order.id))
        await service.create_logistics_bill(
            LogisticsBillCreate(container_id=container.id, order_id=order.id, amount=Decimal("60"))
        )
        await service.create_payment(
            PaymentCreate(
                target_type=PaymentTargetType.CUSTOMER_INVOICE,
                target_id=invoice.id,
                amount=Decimal("250"),
            )
        )

        summary = await service.order_summary(order.id)

        assert len(summary["documents"]) == 3
        assert summary["receivable"]["outstanding"] == Decimal("750.00")
        assert summary["vendor_payable"]["outstanding"] == Decimal("500.00")
        assert summary["logistics_payable"]["amount"] == Decimal("60.00")
        assert summary["logistics_payable"]["count"] == 1
        assert summary["settled"] is False
        assert summary["workflow_status"] == WorkflowStatus.IN_TRANSIT
