"""Workflow service: forward triggers, cascading rollbacks, milestones and timeline.

Triggers and rollbacks only change child records and containers; the order's
status always comes from ``WorkflowProjector.recompute`` at the end.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime, time

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import ConflictException, NotFoundException
from src.models.commercial_invoice import CommercialInvoice
from src.models.container import Container
from src.models.container_allocation import ContainerAllocation
from src.models.enums import (
    ContainerStatus,
    PaymentTargetType,
    ShippingDocumentStatus,
    WorkflowRollback,
    WorkflowTrigger,
)
from src.models.logistics_bill import LogisticsBill
from src.models.order import Order
from src.models.payment import Payment
from src.models.shipping_document import ShippingDocument
from src.models.vendor_bill import VendorBill
from src.modules.finance.constants import BILL_MODELS, SHIPPING_DOCUMENT_PREFIX
from src.modules.finance.numbering import document_code
from src.modules.finance.service import FinanceService
from src.modules.workflow import constants as events
from src.modules.workflow.constants import RollbackStep
from src.modules.workflow.projector import WorkflowProjector
from src.modules.workflow.schemas import MilestoneUpdate
from src.modules.workflow.state import (
    container_revert_status,
    plan_rollback,
    reverts_container,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | date) -> datetime:
    """Normalize a date or naive datetime to an aware UTC datetime."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class WorkflowService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.projector = WorkflowProjector(db)
        self.finance = FinanceService(db)

    # ------------------------------------------------------------------
    # Graph lookups
    # ------------------------------------------------------------------

    async def _get_container(self, container_id: uuid.UUID) -> Container:
        result = await self.db.execute(select(Container).where(Container.id == container_id))
        container = result.scalar_one_or_none()
        if container is None:
            raise NotFoundException(f"Container {container_id} not found")
        return container

    async def _resolve_container(
        self,
        order_id: uuid.UUID,
        container_id: uuid.UUID | None,
    ) -> Container | None:
        """Explicit container, else the one behind the order's first allocation."""
        if container_id is not None:
            return await self._get_container(container_id)
        result = await self.db.execute(
            select(ContainerAllocation.container_id)
            .where(ContainerAllocation.order_id == order_id)
            .order_by(ContainerAllocation.created_at)
            .limit(1)
        )
        allocated = result.scalar_one_or_none()
        if allocated is None:
            return None
        return await self._get_container(allocated)

    async def order_container_ids(self, order_id: uuid.UUID) -> set[uuid.UUID]:
        """Containers reached through shipping docs, allocations and logistics bills."""
        ids: set[uuid.UUID] = set()
        for column, owner in (
            (ShippingDocument.container_id, ShippingDocument.order_id),
            (ContainerAllocation.container_id, ContainerAllocation.order_id),
            (LogisticsBill.container_id, LogisticsBill.order_id),
        ):
            result = await self.db.execute(
                select(column).where(owner == order_id, column.is_not(None)).distinct()
            )
            ids.update(result.scalars().all())
        return ids

    async def _first(self, model, order_id: uuid.UUID, *criteria):
        result = await self.db.execute(
            select(model)
            .where(model.order_id == order_id, *criteria)
            .order_by(model.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _ensure_shipping_document(
        self,
        order: Order,
        container: Container | None,
        now: datetime,
    ) -> tuple[ShippingDocument, bool]:
        existing = None
        if container is not None:
            existing = await self._first(
                ShippingDocument, order.id, ShippingDocument.container_id == container.id
            )
        if existing is None:
            existing = await self._first(ShippingDocument, order.id)
        if existing is not None:
            return existing, False

        document = ShippingDocument(
            order_id=order.id,
            container_id=container.id if container else None,
            doc_no=document_code(SHIPPING_DOCUMENT_PREFIX, now),
            status=ShippingDocumentStatus.ISSUED,
            issue_date=now,
        )
        self.db.add(document)
        await self.db.flush()
        logger.info("Issued shipping document %s for order %s", document.doc_no, order.id)
        return document, True

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def apply_trigger(
        self,
        order_id: uuid.UUID,
        action: WorkflowTrigger,
        container_id: uuid.UUID | None = None,
        delivered_at: datetime | None = None,
        now: datetime | None = None,
    ) -> dict:
        """Run one forward step for an order and recompute its status.

        Documents that already exist are reused, so repeating a trigger never
        issues duplicates.
        """
        now = now or datetime.now(UTC)
        order = await self.projector.lock_order(order_id)
        container = await self._resolve_container(order_id, container_id)
        documents: dict = {}

        if action == WorkflowTrigger.GENERATE_SHIPPING_DOC:
            document, created = await self._ensure_shipping_document(order, container, now)
            documents.update(shipping_document_id=document.id, shipping_document_created=created)

        elif action == WorkflowTrigger.START_TRANSIT:
            document, created = await self._ensure_shipping_document(order, container, now)
            documents.update(shipping_document_id=document.id, shipping_document_created=created)

            invoice = await self._first(CommercialInvoice, order.id)
            documents["commercial_invoice_created"] = invoice is None
            if invoice is None:
                invoice = await self.finance.open_commercial_invoice(
                    order, now, container_id=container.id if container else None
                )
            documents["commercial_invoice_id"] = invoice.id

            bill = await self._first(VendorBill, order.id)
            documents["vendor_bill_created"] = bill is None
            if bill is None:
                bill = await self.finance.open_vendor_bill(order, now)
            documents["vendor_bill_id"] = bill.id

            if container is not None:
                container.status = ContainerStatus.IN_TRANSIT
                container.atd = now

        elif action == WorkflowTrigger.MARK_DELIVERED:
            delivered = delivered_at or now
            order.delivered_at = delivered
            if container is not None:
                container.status = ContainerStatus.ARRIVED
                container.ata = delivered
                container.arrival_at_warehouse = delivered

        await self.db.flush()
        order = await self.projector.recompute(order_id, now)
        logger.info(
            "Applied %s to order %s (container %s) -> %s",
            action.value, order_id, container.id if container else None,
            order.workflow_status.value,
        )
        return {
            "order_id": order_id,
            "action": action,
            "container_id": container.id if container else None,
            "documents": documents,
            "workflow_status": order.workflow_status,
        }

    # ------------------------------------------------------------------
    # Rollbacks
    # ------------------------------------------------------------------

    async def _bill_ids(self, target_type: PaymentTargetType, order_id: uuid.UUID) -> list[uuid.UUID]:
        model = BILL_MODELS[target_type]
        result = await self.db.execute(select(model.id).where(model.order_id == order_id))
        return list(result.scalars().all())

    async def _delete_payments(self, order_id: uuid.UUID, *target_types: PaymentTargetType) -> int:
        removed = 0
        for target_type in target_types:
            bill_ids = await self._bill_ids(target_type, order_id)
            if not bill_ids:
                continue
            result = await self.db.execute(
                delete(Payment).where(
                    Payment.target_type == target_type,
                    Payment.target_id.in_(bill_ids),
                )
            )
            removed += result.rowcount or 0
        return removed

    async def _delete_for_order(self, model, order_id: uuid.UUID) -> int:
        result = await self.db.execute(delete(model).where(model.order_id == order_id))
        return result.rowcount or 0

    async def _revert_containers(
        self,
        container_ids: set[uuid.UUID],
        action: WorkflowRollback,
    ) -> int:
        """Put containers back to the state before the undone step; returns how many changed."""
        if not container_ids:
            return 0
        target = container_revert_status(action)
        result = await self.db.execute(select(Container).where(Container.id.in_(container_ids)))
        reverted = 0
        for container in result.scalars().all():
            if not reverts_container(container.status, target):
                continue
            changes = {"status": target, "ata": None, "arrival_at_warehouse": None}
            if target == ContainerStatus.PLANNED:
                changes["atd"] = None
            if all(getattr(container, field) == value for field, value in changes.items()):
                continue
            for field, value in changes.items():
                setattr(container, field, value)
            reverted += 1
        return reverted

    async def apply_rollback(
        self,
        order_id: uuid.UUID,
        action: WorkflowRollback,
        now: datetime | None = None,
    ) -> dict:
        """Undo a workflow step and everything that depends on it.

        Runs the ordered cleanup steps up to the requested level. Raises
        ``ConflictException`` when the order holds nothing that level would undo.
        """
        order = await self.projector.lock_order(order_id)
        # Collected up front: deleting logistics bills drops their container links
        container_ids = await self.order_container_ids(order_id)
        counts = {
            "payments": 0,
            "logistics_bills": 0,
            "commercial_invoices": 0,
            "vendor_bills": 0,
            "shipping_documents": 0,
            "containers_reverted": 0,
            "delivery_cleared": False,
        }

        for step in plan_rollback(action):
            if step == RollbackStep.DELETE_LOGISTICS_PAYMENTS:
                counts["payments"] += await self._delete_payments(
                    order_id, PaymentTargetType.LOGISTICS_BILL
                )
            elif step == RollbackStep.DELETE_INVOICE_AND_VENDOR_PAYMENTS:
                counts["payments"] += await self._delete_payments(
                    order_id, PaymentTargetType.CUSTOMER_INVOICE, PaymentTargetType.VENDOR_BILL
                )
            elif step == RollbackStep.DELETE_LOGISTICS_BILLS:
                counts["logistics_bills"] = await self._delete_for_order(LogisticsBill, order_id)
            elif step == RollbackStep.DELETE_INVOICES_AND_VENDOR_BILLS:
                counts["commercial_invoices"] = await self._delete_for_order(
                    CommercialInvoice, order_id
                )
                counts["vendor_bills"] = await self._delete_for_order(VendorBill, order_id)
            elif step == RollbackStep.CLEAR_DELIVERY:
                if order.delivered_at is not None:
                    order.delivered_at = None
                    counts["delivery_cleared"] = True
            elif step == RollbackStep.REVERT_CONTAINERS:
                counts["containers_reverted"] = await self._revert_containers(
                    container_ids, action
                )
            elif step == RollbackStep.DELETE_SHIPPING_DOCUMENTS:
                counts["shipping_documents"] = await self._delete_for_order(
                    ShippingDocument, order_id
                )

        if not any(counts.values()):
            raise ConflictException(
                f"Nothing to undo for {action.value} on order {order_id}"
            )

        await self.db.flush()
        order = await self.projector.recompute(order_id, now)
        logger.info(
            "Rolled back %s on order %s: %s -> %s",
            action.value, order_id, counts, order.workflow_status.value,
        )
        return {
            "order_id": order_id,
            "action": action,
            "removed": counts,
            "workflow_status": order.workflow_status,
        }

    # ------------------------------------------------------------------
    # Milestones / recompute
    # ------------------------------------------------------------------

    async def update_milestones(self, order_id: uuid.UUID, data: MilestoneUpdate) -> Order:
        """Edit delivery and payment-term inputs, then re-derive the status."""
        order = await self.projector.lock_order(order_id)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field != "delivered_at":
                continue
            setattr(order, field, value)
        await self.db.flush()
        logger.info("Updated milestones on order %s: %s", order_id, sorted(changes))
        return await self.projector.recompute(order_id)

    async def recompute(self, order_id: uuid.UUID) -> Order:
        return await self.projector.recompute(order_id)

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    async def get_timeline(self, order_id: uuid.UUID) -> dict:
        """Dated events read off the order's records, newest first."""
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")

        timeline: list[dict] = []

        def add(event_type: str, when, reference_id, description: str) -> None:
            if when is not None:
                timeline.append({
                    "event_type": event_type,
                    "occurred_at": _as_utc(when),
                    "reference_id": reference_id,
                    "description": description,
                })

        add(events.EVENT_ORDER_CREATED, order.created_at, order.id, f"PO {order.vpo_number} uploaded")

        allocations = await self.db.execute(
            select(ContainerAllocation).where(ContainerAllocation.order_id == order_id)
        )
        for allocation in allocations.scalars().all():
            add(
                events.EVENT_CONTAINER_ALLOCATED, allocation.created_at, allocation.container_id,
                "Allocated to container",
            )

        documents = await self.db.execute(
            select(ShippingDocument).where(ShippingDocument.order_id == order_id)
        )
        for document in documents.scalars().all():
            add(
                events.EVENT_SHIPPING_DOC_ISSUED, document.issue_date or document.created_at,
                document.id, f"Shipping document {document.doc_no}",
            )

        container_ids = await self.order_container_ids(order_id)
        if container_ids:
            containers = await self.db.execute(
                select(Container).where(Container.id.in_(container_ids))
            )
            for container in containers.scalars().all():
                label = container.container_no
                add(events.EVENT_CONTAINER_ATD, container.atd, container.id, f"{label} departed")
                add(events.EVENT_CONTAINER_ATA, container.ata, container.id, f"{label} arrived")
                add(
                    events.EVENT_WAREHOUSE_ARRIVAL, container.arrival_at_warehouse, container.id,
                    f"{label} received at warehouse",
                )

        opened = {
            PaymentTargetType.CUSTOMER_INVOICE: events.EVENT_AR_OPENED,
            PaymentTargetType.VENDOR_BILL: events.EVENT_VENDOR_AP_OPENED,
            PaymentTargetType.LOGISTICS_BILL: events.EVENT_LOGISTICS_AP_OPENED,
        }
        for bill, balance in await self.projector.load_bills(order_id):
            add(
                opened[balance.target_type], bill.created_at, bill.id,
                f"{bill.document_no} for {bill.amount} {bill.currency}",
            )

        for payment in await self.finance.list_payments(order_id=order_id):
            add(
                events.EVENT_PAYMENT_POSTED, payment.payment_date or payment.created_at,
                payment.id, f"{payment.direction.value} {payment.amount}",
            )

        add(events.EVENT_ORDER_DELIVERED, order.delivered_at, order.id, "Delivered")
        add(events.EVENT_ORDER_CLOSED, order.closed_at, order.id, "All balances settled")

        timeline.sort(
            key=lambda event: (event["occurred_at"], events.EVENT_SEQUENCE[event["event_type"]]),
            reverse=True,
        )
        return {
            "order_id": order.id,
            "workflow_status": order.workflow_status,
            "events": timeline,
        }
