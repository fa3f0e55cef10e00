"""WorkflowProjector: the single writer of an order's workflow status."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import NotFoundException
from src.models.container_allocation import ContainerAllocation
from src.models.order import Order
from src.models.order_item import OrderItem
from src.models.payment import Payment
from src.models.shipping_document import ShippingDocument
from src.modules.finance.constants import BILL_MODELS, Bill
from src.modules.finance.ledger import BillBalance, OrderBalances, summarize_balances
from src.modules.order.estimator import sum_money, summarize_order_totals
from src.modules.workflow.state import (
    OrderGraphSnapshot,
    derive_closed_at,
    derive_workflow_status,
)

logger = logging.getLogger(__name__)


class WorkflowProjector:
    """Reads an order's child records and stores the derived status.

    ``recompute`` is idempotent and may be called any number of times; every
    code path that changes an order's graph ends by calling it.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def lock_order(self, order_id: uuid.UUID) -> Order:
        """Load the order with a row lock, serializing work on the same order."""
        result = await self.db.execute(
            select(Order).where(Order.id == order_id).with_for_update()
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")
        return order

    async def _count(self, model, order_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(model).where(model.order_id == order_id)
        )
        return result.scalar() or 0

    async def load_bills(self, order_id: uuid.UUID) -> list[tuple[Bill, BillBalance]]:
        """Every bill of the order with its paid amount.

        Stored bill statuses are brought in line with their payments on the way.
        """
        rows: list[tuple[Bill, BillBalance]] = []
        for target_type, model in BILL_MODELS.items():
            result = await self.db.execute(
                select(model).where(model.order_id == order_id).order_by(model.created_at)
            )
            bills = list(result.scalars().all())
            if not bills:
                continue

            payment_result = await self.db.execute(
                select(Payment).where(
                    Payment.target_type == target_type,
                    Payment.target_id.in_([bill.id for bill in bills]),
                )
            )
            paid_by_bill: dict[uuid.UUID, list] = {}
            for payment in payment_result.scalars().all():
                paid_by_bill.setdefault(payment.target_id, []).append(payment.amount)

            for bill in bills:
                balance = BillBalance(
                    target_type=target_type,
                    bill_id=bill.id,
                    document_no=bill.document_no,
                    amount=bill.amount,
                    paid=sum_money(paid_by_bill.get(bill.id, [])),
                    currency=bill.currency,
                )
                if bill.status != balance.status:
                    bill.status = balance.status
                rows.append((bill, balance))
        return rows

    async def load_balances(self, order_id: uuid.UUID) -> OrderBalances:
        return summarize_balances(balance for _, balance in await self.load_bills(order_id))

    async def recompute(self, order_id: uuid.UUID, now: datetime | None = None) -> Order:
        """Derive and store the order's workflow status and totals."""
        now = now or datetime.now(UTC)
        order = await self.lock_order(order_id)

        snapshot = OrderGraphSnapshot(
            delivered=order.delivered_at is not None,
            shipping_document_count=await self._count(ShippingDocument, order_id),
            allocation_count=await self._count(ContainerAllocation, order_id),
            balances=await self.load_balances(order_id),
        )
        status = derive_workflow_status(snapshot)
        closed_at = derive_closed_at(status, order.closed_at, now)

        items_result = await self.db.execute(
            select(OrderItem).where(OrderItem.order_id == order_id)
        )
        totals = summarize_order_totals(items_result.scalars().all())
        order.total_amount = totals.total_amount
        order.estimated_margin = totals.estimated_margin
        order.estimated_margin_rate = totals.estimated_margin_rate

        previous = order.workflow_status
        order.apply_projection(status, closed_at)
        await self.db.flush()

        if previous != status:
            logger.info(
                "Order %s workflow %s -> %s",
                order_id, getattr(previous, "value", previous), status.value,
            )
        return order
