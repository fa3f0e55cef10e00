"""Workflow constants: rollback levels and the ordered cleanup steps."""

from __future__ import annotations

import enum

from src.models.enums import ContainerStatus, WorkflowRollback


class RollbackStep(str, enum.Enum):
    DELETE_LOGISTICS_PAYMENTS = "DELETE_LOGISTICS_PAYMENTS"
    DELETE_INVOICE_AND_VENDOR_PAYMENTS = "DELETE_INVOICE_AND_VENDOR_PAYMENTS"
    DELETE_LOGISTICS_BILLS = "DELETE_LOGISTICS_BILLS"
    DELETE_INVOICES_AND_VENDOR_BILLS = "DELETE_INVOICES_AND_VENDOR_BILLS"
    CLEAR_DELIVERY = "CLEAR_DELIVERY"
    REVERT_CONTAINERS = "REVERT_CONTAINERS"
    DELETE_SHIPPING_DOCUMENTS = "DELETE_SHIPPING_DOCUMENTS"


# Each undo level includes every level below it
ROLLBACK_LEVELS: dict[WorkflowRollback, int] = {
    WorkflowRollback.UNDO_MARK_DELIVERED: 1,
    WorkflowRollback.UNDO_START_TRANSIT: 2,
    WorkflowRollback.UNDO_SHIPPING_DOC: 3,
}

# Fixed execution order: payments, bills, order timestamps, containers, documents.
# Every step is safe to run against already-clean state.
ROLLBACK_STEPS: tuple[tuple[int, RollbackStep], ...] = (
    (1, RollbackStep.DELETE_LOGISTICS_PAYMENTS),
    (2, RollbackStep.DELETE_INVOICE_AND_VENDOR_PAYMENTS),
    (1, RollbackStep.DELETE_LOGISTICS_BILLS),
    (2, RollbackStep.DELETE_INVOICES_AND_VENDOR_BILLS),
    (1, RollbackStep.CLEAR_DELIVERY),
    (1, RollbackStep.REVERT_CONTAINERS),
    (3, RollbackStep.DELETE_SHIPPING_DOCUMENTS),
)

# Undoing delivery puts containers back at sea; deeper undos un-ship them
CONTAINER_REVERT_STATUS: dict[WorkflowRollback, ContainerStatus] = {
    WorkflowRollback.UNDO_MARK_DELIVERED: ContainerStatus.IN_TRANSIT,
    WorkflowRollback.UNDO_START_TRANSIT: ContainerStatus.PLANNED,
    WorkflowRollback.UNDO_SHIPPING_DOC: ContainerStatus.PLANNED,
}

# Lifecycle position; a revert never moves a container to a later position
CONTAINER_STATUS_RANK: dict[ContainerStatus, int] = {
    ContainerStatus.PLANNED: 0,
    ContainerStatus.IN_TRANSIT: 1,
    ContainerStatus.ARRIVED: 2,
}

# ── Timeline event types ─────────────────────────────────────────────────────
EVENT_ORDER_CREATED = "ORDER_CREATED"
EVENT_CONTAINER_ALLOCATED = "CONTAINER_ALLOCATED"
EVENT_SHIPPING_DOC_ISSUED = "SHIPPING_DOC_ISSUED"
EVENT_CONTAINER_ATD = "CONTAINER_ATD"
EVENT_CONTAINER_ATA = "CONTAINER_ATA"
EVENT_WAREHOUSE_ARRIVAL = "WAREHOUSE_ARRIVAL"
EVENT_AR_OPENED = "AR_OPENED"
EVENT_VENDOR_AP_OPENED = "VENDOR_AP_OPENED"
EVENT_LOGISTICS_AP_OPENED = "LOGISTICS_AP_OPENED"
EVENT_PAYMENT_POSTED = "PAYMENT_POSTED"
EVENT_ORDER_DELIVERED = "ORDER_DELIVERED"
EVENT_ORDER_CLOSED = "ORDER_CLOSED"

# Lifecycle order, used to break ties between events stamped at the same instant
EVENT_SEQUENCE: dict[str, int] = {
    event_type: position
    for position, event_type in enumerate((
        EVENT_ORDER_CREATED,
        EVENT_CONTAINER_ALLOCATED,
        EVENT_SHIPPING_DOC_ISSUED,
        EVENT_CONTAINER_ATD,
        EVENT_AR_OPENED,
        EVENT_VENDOR_AP_OPENED,
        EVENT_CONTAINER_ATA,
        EVENT_WAREHOUSE_ARRIVAL,
        EVENT_ORDER_DELIVERED,
        EVENT_LOGISTICS_AP_OPENED,
        EVENT_PAYMENT_POSTED,
        EVENT_ORDER_CLOSED,
    ))
}
