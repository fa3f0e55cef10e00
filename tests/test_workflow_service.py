"""Tests for WorkflowService: triggers, cascading rollbacks and status projection."""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from src.exceptions import ConflictException, NotFoundException
from src.models.commercial_invoice import CommercialInvoice
from src.models.enums import (
    BillStatus,
    ContainerStatus,
    PaymentTargetType,
    WorkflowRollback,
    WorkflowStatus,
    WorkflowTrigger,
)
from src.models.logistics_bill import LogisticsBill
from src.models.payment import Payment
from src.models.shipping_document import ShippingDocument
from src.models.vendor_bill import VendorBill
from src.modules.finance.schemas import LogisticsBillCreate, PaymentCreate, PaymentUpdate
from src.modules.finance.service import FinanceService
from src.modules.logistics.schemas import AllocationCreate
from src.modules.logistics.service import LogisticsService
from src.modules.workflow.schemas import MilestoneUpdate
from src.modules.workflow.service import WorkflowService
from tests.factories import create_container, create_order


async def _count(session, model, **filters) -> int:
    query = select(func.count()).select_from(model)
    for column, value in filters.items():
        query = query.where(getattr(model, column) == value)
    return (await session.execute(query)).scalar() or 0


async def _allocated_order(session):
    order = await create_order(session)
    container = await create_container(session)
    await LogisticsService(session).create_allocation(
        AllocationCreate(container_id=container.id, order_id=order.id)
    )
    return order, container


async def _pay(session, target_type, target_id, amount: str):
    return await FinanceService(session).create_payment(
        PaymentCreate(target_type=target_type, target_id=target_id, amount=Decimal(amount))
    )


class TestTriggers:
    @pytest.mark.asyncio
    async def test_allocation_moves_order_to_partially_shipped(self, async_test_session):
        order, _ = await _allocated_order(async_test_session)
        assert order.workflow_status == WorkflowStatus.PARTIALLY_SHIPPED

    @pytest.mark.asyncio
    async def test_generate_shipping_doc_is_not_duplicated(self, async_test_session):
        order, container = await _allocated_order(async_test_session)
        service = WorkflowService(async_test_session)

        first = await service.apply_trigger(order.id, WorkflowTrigger.GENERATE_SHIPPING_DOC)
        second = await service.apply_trigger(order.id, WorkflowTrigger.GENERATE_SHIPPING_DOC)

        assert first["documents"]["shipping_document_created"] is True
        assert second["documents"]["shipping_document_created"] is False
        assert first["container_id"] == container.id
        assert second["workflow_status"] == WorkflowStatus.SHIPPING_DOC_SENT
        assert await _count(async_test_session, ShippingDocument, order_id=order.id) == 1

    @pytest.mark.asyncio
    async def test_start_transit_opens_invoice_and_vendor_bill(self, async_test_session):
        order, container = await _allocated_order(async_test_session)

        outcome = await WorkflowService(async_test_session).apply_trigger(
            order.id, WorkflowTrigger.START_TRANSIT
        )

        documents = outcome["documents"]
        assert documents["shipping_document_created"]
        assert documents["commercial_invoice_created"]
        assert documents["vendor_bill_created"]
        assert outcome["workflow_status"] == WorkflowStatus.IN_TRANSIT
        assert container.status == ContainerStatus.IN_TRANSIT
        assert container.atd is not None

        invoice = await async_test_session.get(CommercialInvoice, documents["commercial_invoice_id"])
        bill = await async_test_session.get(VendorBill, documents["vendor_bill_id"])
        assert invoice.amount == order.total_amount == Decimal("1000.00")
        assert bill.amount == Decimal("500.00")
        assert invoice.status == BillStatus.OPEN
        assert invoice.invoice_no.startswith("CI-")
        assert (invoice.due_date - invoice.issue_date).days == order.customer_term_days

    @pytest.mark.asyncio
    async def test_explicit_unknown_container_is_404(self, async_test_session):
        order = await create_order(async_test_session)
        with pytest.raises(NotFoundException):
            await WorkflowService(async_test_session).apply_trigger(
                order.id, WorkflowTrigger.GENERATE_SHIPPING_DOC, container_id=uuid.uuid4()
            )

    @pytest.mark.asyncio
    async def test_mark_delivered_sets_arrival(self, async_test_session):
        order, container = await _allocated_order(async_test_session)
        delivered = datetime(2026, 6, 1, 9, 30, tzinfo=UTC)
        service = WorkflowService(async_test_session)

        await service.apply_trigger(order.id, WorkflowTrigger.START_TRANSIT)
        outcome = await service.apply_trigger(
            order.id, WorkflowTrigger.MARK_DELIVERED, delivered_at=delivered
        )

        assert outcome["workflow_status"] == WorkflowStatus.AR_AP_OPEN
        assert order.delivered_at == delivered
        assert container.status == ContainerStatus.ARRIVED
        assert container.ata == delivered
        assert container.arrival_at_warehouse == delivered


class TestClosing:
    @pytest.mark.asyncio
    async def test_closes_when_settled_and_reopens_on_one_cent(self, async_test_session):
        order, _ = await _allocated_order(async_test_session)
        service = WorkflowService(async_test_session)
        transit = await service.apply_trigger(order.id, WorkflowTrigger.START_TRANSIT)
        await service.apply_trigger(order.id, WorkflowTrigger.MARK_DELIVERED)
        documents = transit["documents"]

        invoice_payment = await _pay(
            async_test_session, PaymentTargetType.CUSTOMER_INVOICE,
            documents["commercial_invoice_id"], "1000.00",
        )
        await _pay(async_test_session, PaymentTargetType.VENDOR_BILL, documents["vendor_bill_id"], "500.00")

        assert order.workflow_status == WorkflowStatus.CLOSED
        closed_at = order.closed_at
        assert closed_at is not None

        # Recompute is idempotent and keeps the first close time
        await service.recompute(order.id)
        assert order.workflow_status == WorkflowStatus.CLOSED
        assert order.closed_at == closed_at

        await FinanceService(async_test_session).update_payment(
            invoice_payment.id, PaymentUpdate(amount=Decimal("999.99"))
        )
        assert order.workflow_status == WorkflowStatus.AR_AP_OPEN
        assert order.closed_at is None

    @pytest.mark.asyncio
    async def test_milestones_edit_inputs_only(self, async_test_session):
        order, _ = await _allocated_order(async_test_session)
        service = WorkflowService(async_test_session)
        await service.apply_trigger(order.id, WorkflowTrigger.START_TRANSIT)

        updated = await service.update_milestones(
            order.id,
            MilestoneUpdate(delivered_at=datetime(2026, 7, 1, tzinfo=UTC), vendor_term_days=60),
        )
        assert updated.workflow_status == WorkflowStatus.AR_AP_OPEN
        assert updated.vendor_term_days == 60

        cleared = await service.update_milestones(order.id, MilestoneUpdate(delivered_at=None))
        assert cleared.workflow_status == WorkflowStatus.IN_TRANSIT


class TestRollback:
    @pytest.mark.asyncio
    async def test_undo_start_transit_cascade(self, async_test_session):
        order, container = await _allocated_order(async_test_session)
        service = WorkflowService(async_test_session)
        documents = (await service.apply_trigger(order.id, WorkflowTrigger.START_TRANSIT))["documents"]
        await _pay(
            async_test_session, PaymentTargetType.CUSTOMER_INVOICE,
            documents["commercial_invoice_id"], "400",
        )
        await _pay(async_test_session, PaymentTargetType.VENDOR_BILL, documents["vendor_bill_id"], "500")

        outcome = await service.apply_rollback(order.id, WorkflowRollback.UNDO_START_TRANSIT)

        assert outcome["removed"]["payments"] == 2
        assert outcome["removed"]["commercial_invoices"] == 1
        assert outcome["removed"]["vendor_bills"] == 1
        assert outcome["removed"]["shipping_documents"] == 0
        assert await _count(async_test_session, CommercialInvoice, order_id=order.id) == 0
        assert await _count(async_test_session, VendorBill, order_id=order.id) == 0
        assert await _count(async_test_session, Payment) == 0
        assert await _count(async_test_session, ShippingDocument, order_id=order.id) == 1
        assert container.status == ContainerStatus.PLANNED
        assert container.atd is None
        assert container.ata is None
        assert container.arrival_at_warehouse is None
        assert outcome["workflow_status"] == WorkflowStatus.SHIPPING_DOC_SENT

    @pytest.mark.asyncio
    async def test_undo_mark_delivered_keeps_transit(self, async_test_session):
        order, container = await _allocated_order(async_test_session)
        service = WorkflowService(async_test_session)
        await service.apply_trigger(order.id, WorkflowTrigger.START_TRANSIT)
        await service.apply_trigger(order.id, WorkflowTrigger.MARK_DELIVERED)
        logistics_bill = await FinanceService(async_test_session).create_logistics_bill(
            LogisticsBillCreate(container_id=container.id, order_id=order.id, amount=Decimal("80"))
        )
        await _pay(async_test_session, PaymentTargetType.LOGISTICS_BILL, logistics_bill.id, "80")

        outcome = await service.apply_rollback(order.id, WorkflowRollback.UNDO_MARK_DELIVERED)

        assert outcome["removed"]["payments"] == 1
        assert outcome["removed"]["logistics_bills"] == 1
        assert outcome["removed"]["delivery_cleared"] is True
        assert await _count(async_test_session, LogisticsBill) == 0
        assert await _count(async_test_session, CommercialInvoice, order_id=order.id) == 1
        assert order.delivered_at is None
        assert container.status == ContainerStatus.IN_TRANSIT
        assert container.atd is not None
        assert container.ata is None
        assert outcome["workflow_status"] == WorkflowStatus.IN_TRANSIT

    @pytest.mark.asyncio
    async def test_undo_shipping_doc_clears_everything(self, async_test_session):
        order, container = await _allocated_order(async_test_session)
        service = WorkflowService(async_test_session)
        await service.apply_trigger(order.id, WorkflowTrigger.START_TRANSIT)

        outcome = await service.apply_rollback(order.id, WorkflowRollback.UNDO_SHIPPING_DOC)

        assert outcome["removed"]["shipping_documents"] == 1
        assert container.status == ContainerStatus.PLANNED
        # The allocation is not a workflow step and stays
        assert outcome["workflow_status"] == WorkflowStatus.PARTIALLY_SHIPPED

    @pytest.mark.asyncio
    async def test_nothing_to_undo_is_conflict(self, async_test_session):
        order = await create_order(async_test_session)
        with pytest.raises(ConflictException):
            await WorkflowService(async_test_session).apply_rollback(
                order.id, WorkflowRollback.UNDO_SHIPPING_DOC
            )

    @pytest.mark.asyncio
    async def test_undo_delivery_never_advances_planned_container(self, async_test_session):
        order, container = await _allocated_order(async_test_session)

        with pytest.raises(ConflictException):
            await WorkflowService(async_test_session).apply_rollback(
                order.id, WorkflowRollback.UNDO_MARK_DELIVERED
            )

        assert container.status == ContainerStatus.PLANNED
        assert container.atd is None
        assert order.workflow_status == WorkflowStatus.PARTIALLY_SHIPPED


class TestTimeline:
    @pytest.mark.asyncio
    async def test_events_newest_first(self, async_test_session):
        order, _ = await _allocated_order(async_test_session)
        service = WorkflowService(async_test_session)
        await service.apply_trigger(order.id, WorkflowTrigger.START_TRANSIT)
        await service.apply_trigger(
            order.id, WorkflowTrigger.MARK_DELIVERED,
            delivered_at=datetime(2099, 1, 1, tzinfo=UTC),
        )

        timeline = await service.get_timeline(order.id)
        types = [event["event_type"] for event in timeline["events"]]

        # Same instant: the later lifecycle step is listed first
        assert types[:3] == ["ORDER_DELIVERED", "WAREHOUSE_ARRIVAL", "CONTAINER_ATA"]
        assert {"ORDER_CREATED", "CONTAINER_ALLOCATED", "SHIPPING_DOC_ISSUED",
                "CONTAINER_ATD", "AR_OPENED", "VENDOR_AP_OPENED"} <= set(types)
        stamps = [event["occurred_at"] for event in timeline["events"]]
        assert stamps == sorted(stamps, reverse=True)
