"""Workflow status derivation and rollback planning.

The order's workflow status is a projection of its child records. Everything
here is pure; ``WorkflowProjector`` gathers the inputs and stores the result.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from src.models.enums import ContainerStatus, WorkflowRollback, WorkflowStatus
from src.modules.finance.ledger import OrderBalances
from src.modules.workflow.constants import (
    CONTAINER_REVERT_STATUS,
    CONTAINER_STATUS_RANK,
    ROLLBACK_LEVELS,
    ROLLBACK_STEPS,
    RollbackStep,
)


@dataclass(frozen=True)
class OrderGraphSnapshot:
    """What the status depends on, read from one order's records."""

    delivered: bool
    shipping_document_count: int
    allocation_count: int
    balances: OrderBalances

    @property
    def has_finance_documents(self) -> bool:
        return self.balances.document_count > 0


def derive_workflow_status(snapshot: OrderGraphSnapshot) -> WorkflowStatus:
    if snapshot.delivered:
        if snapshot.balances.settled:
            return WorkflowStatus.CLOSED
        if snapshot.has_finance_documents:
            return WorkflowStatus.AR_AP_OPEN
        if snapshot.shipping_document_count or snapshot.allocation_count:
            return WorkflowStatus.IN_TRANSIT
        return WorkflowStatus.PO_UPLOADED

    if snapshot.has_finance_documents:
        return WorkflowStatus.IN_TRANSIT
    if snapshot.shipping_document_count:
        return WorkflowStatus.SHIPPING_DOC_SENT
    if snapshot.allocation_count:
        return WorkflowStatus.PARTIALLY_SHIPPED
    return WorkflowStatus.PO_UPLOADED


def derive_closed_at(
    status: WorkflowStatus,
    previous: datetime | None,
    now: datetime,
) -> datetime | None:
    """Keep the first close time while CLOSED; clear it otherwise."""
    if status != WorkflowStatus.CLOSED:
        return None
    return previous or now


def plan_rollback(action: WorkflowRollback) -> list[RollbackStep]:
    """Cleanup steps for ``action``, in execution order."""
    level = ROLLBACK_LEVELS[action]
    return [step for step_level, step in ROLLBACK_STEPS if step_level <= level]


def container_revert_status(action: WorkflowRollback) -> ContainerStatus:
    return CONTAINER_REVERT_STATUS[action]


def reverts_container(status: ContainerStatus, target: ContainerStatus) -> bool:
    """True unless moving to ``target`` would push the container forward."""
    return CONTAINER_STATUS_RANK[status] >= CONTAINER_STATUS_RANK[target]
