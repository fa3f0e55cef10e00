"""Tests for workflow status derivation and rollback planning."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.models.enums import (
    ContainerStatus,
    PaymentTargetType,
    WorkflowRollback,
    WorkflowStatus,
)
from src.modules.finance.ledger import BillBalance, summarize_balances
from src.modules.workflow.constants import RollbackStep
from src.modules.workflow.state import (
    OrderGraphSnapshot,
    container_revert_status,
    derive_closed_at,
    derive_workflow_status,
    plan_rollback,
    reverts_container,
)


def _bill(target_type: PaymentTargetType, amount: str, paid: str) -> BillBalance:
    return BillBalance(
        target_type=target_type,
        bill_id=uuid.uuid4(),
        document_no="DOC",
        amount=Decimal(amount),
        paid=Decimal(paid),
    )


def _snapshot(
    delivered: bool = False,
    shipping_documents: int = 0,
    allocations: int = 0,
    bills: list[BillBalance] | None = None,
) -> OrderGraphSnapshot:
    return OrderGraphSnapshot(
        delivered=delivered,
        shipping_document_count=shipping_documents,
        allocation_count=allocations,
        balances=summarize_balances(bills or []),
    )


class TestDeriveWorkflowStatus:
    def test_new_order(self) -> None:
        assert derive_workflow_status(_snapshot()) == WorkflowStatus.PO_UPLOADED

    def test_allocated(self) -> None:
        assert derive_workflow_status(_snapshot(allocations=1)) == WorkflowStatus.PARTIALLY_SHIPPED

    def test_shipping_doc_beats_allocation(self) -> None:
        status = derive_workflow_status(_snapshot(shipping_documents=1, allocations=2))
        assert status == WorkflowStatus.SHIPPING_DOC_SENT

    def test_finance_documents_before_delivery(self) -> None:
        snapshot = _snapshot(
            shipping_documents=1,
            bills=[_bill(PaymentTargetType.CUSTOMER_INVOICE, "100", "0")],
        )
        assert derive_workflow_status(snapshot) == WorkflowStatus.IN_TRANSIT

    def test_settled_but_not_delivered_is_in_transit(self) -> None:
        snapshot = _snapshot(bills=[_bill(PaymentTargetType.CUSTOMER_INVOICE, "100", "100")])
        assert derive_workflow_status(snapshot) == WorkflowStatus.IN_TRANSIT

    def test_delivered_with_open_balance(self) -> None:
        snapshot = _snapshot(
            delivered=True,
            bills=[
                _bill(PaymentTargetType.CUSTOMER_INVOICE, "1000", "1000"),
                _bill(PaymentTargetType.VENDOR_BILL, "500", "100"),
            ],
        )
        assert derive_workflow_status(snapshot) == WorkflowStatus.AR_AP_OPEN

    def test_delivered_and_settled_is_closed(self) -> None:
        bills = [
            _bill(PaymentTargetType.CUSTOMER_INVOICE, "1000", "1000"),
            _bill(PaymentTargetType.VENDOR_BILL, "500", "500"),
            _bill(PaymentTargetType.LOGISTICS_BILL, "80", "80"),
        ]
        assert derive_workflow_status(_snapshot(delivered=True, bills=bills)) == WorkflowStatus.CLOSED

    @pytest.mark.parametrize("side", list(PaymentTargetType))
    def test_one_cent_on_any_side_reopens(self, side) -> None:
        bills = [
            _bill(kind, "100", "99.99" if kind == side else "100")
            for kind in PaymentTargetType
        ]
        assert derive_workflow_status(_snapshot(delivered=True, bills=bills)) == WorkflowStatus.AR_AP_OPEN

    def test_delivered_without_finance_documents(self) -> None:
        assert derive_workflow_status(_snapshot(delivered=True, allocations=1)) == WorkflowStatus.IN_TRANSIT
        assert derive_workflow_status(_snapshot(delivered=True)) == WorkflowStatus.PO_UPLOADED


class TestDeriveClosedAt:
    def test_set_on_first_close(self) -> None:
        now = datetime(2026, 4, 1, tzinfo=UTC)
        assert derive_closed_at(WorkflowStatus.CLOSED, None, now) == now

    def test_kept_while_closed(self) -> None:
        first = datetime(2026, 4, 1, tzinfo=UTC)
        later = first + timedelta(days=3)
        assert derive_closed_at(WorkflowStatus.CLOSED, first, later) == first

    def test_cleared_when_reopened(self) -> None:
        first = datetime(2026, 4, 1, tzinfo=UTC)
        assert derive_closed_at(WorkflowStatus.AR_AP_OPEN, first, first) is None


class TestPlanRollback:
    def test_undo_delivery(self) -> None:
        assert plan_rollback(WorkflowRollback.UNDO_MARK_DELIVERED) == [
            RollbackStep.DELETE_LOGISTICS_PAYMENTS,
            RollbackStep.DELETE_LOGISTICS_BILLS,
            RollbackStep.CLEAR_DELIVERY,
            RollbackStep.REVERT_CONTAINERS,
        ]

    def test_undo_transit_includes_delivery_steps(self) -> None:
        steps = plan_rollback(WorkflowRollback.UNDO_START_TRANSIT)
        assert set(plan_rollback(WorkflowRollback.UNDO_MARK_DELIVERED)) < set(steps)
        assert RollbackStep.DELETE_SHIPPING_DOCUMENTS not in steps

    def test_payments_go_before_bills(self) -> None:
        steps = plan_rollback(WorkflowRollback.UNDO_SHIPPING_DOC)
        assert steps.index(RollbackStep.DELETE_INVOICE_AND_VENDOR_PAYMENTS) < steps.index(
            RollbackStep.DELETE_INVOICES_AND_VENDOR_BILLS
        )
        assert steps[-1] == RollbackStep.DELETE_SHIPPING_DOCUMENTS
        assert len(steps) == len(RollbackStep)

    def test_container_targets(self) -> None:
        assert container_revert_status(WorkflowRollback.UNDO_MARK_DELIVERED) == ContainerStatus.IN_TRANSIT
        assert container_revert_status(WorkflowRollback.UNDO_START_TRANSIT) == ContainerStatus.PLANNED
        assert container_revert_status(WorkflowRollback.UNDO_SHIPPING_DOC) == ContainerStatus.PLANNED

    @pytest.mark.parametrize(
        ("status", "target", "expected"),
        [
            (ContainerStatus.ARRIVED, ContainerStatus.IN_TRANSIT, True),
            (ContainerStatus.IN_TRANSIT, ContainerStatus.IN_TRANSIT, True),
            (ContainerStatus.PLANNED, ContainerStatus.IN_TRANSIT, False),
            (ContainerStatus.IN_TRANSIT, ContainerStatus.PLANNED, True),
            (ContainerStatus.PLANNED, ContainerStatus.PLANNED, True),
        ],
    )
    def test_revert_never_moves_forward(self, status, target, expected) -> None:
        assert reverts_container(status, target) is expected
