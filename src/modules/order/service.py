"""Order service: PO ingestion, line-item pricing and order edits."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.config import settings
from src.exceptions import ConflictException, NotFoundException, ValidationException
from src.models.container_allocation import ContainerAllocation
from src.models.enums import WorkflowStatus
from src.models.order import Order
from src.models.order_item import OrderItem
from src.models.shipping_document import ShippingDocument
from src.modules.finance.constants import BILL_MODELS
from src.modules.order.constants import ORDER_HEADER_FIELDS
from src.modules.order.estimator import estimate_margin
from src.modules.order.schemas import OrderCreate, OrderItemCreate, OrderItemUpdate, OrderUpdate
from src.modules.tariff.classifier import derive_tariff_key, infer_origin_country
from src.modules.tariff.resolver import resolve_tariff_rate
from src.modules.tariff.service import TariffRateService
from src.modules.workflow.projector import WorkflowProjector

logger = logging.getLogger(__name__)

# Columns that may not be cleared through a PATCH
_NON_NULLABLE_HEADER_FIELDS = frozenset({
    "vpo_number",
    "currency",
    "customer_term_days",
    "vendor_term_days",
    "logistics_term_days",
})
# Filled from settings when the PO does not carry them
_DEFAULTED_FIELDS = frozenset({
    "currency",
    "customer_term_days",
    "vendor_term_days",
    "logistics_term_days",
})
_ITEM_INPUT_FIELDS = tuple(OrderItemCreate.model_fields)


def price_item(item: OrderItem, origin_country: str, rate_map: dict[str, Decimal]) -> None:
    """Derive the item's tariff key, rate and margin estimate from its inputs."""
    tariff_key = derive_tariff_key(item.description, item.collection, item.material)
    resolution = resolve_tariff_rate(tariff_key, origin_country, rate_map)
    estimate = estimate_margin(
        item.customer_unit_price or Decimal("0"),
        item.vendor_unit_price or Decimal("0"),
        item.quantity or 0,
        resolution.rate,
    )
    item.tariff_key = tariff_key
    item.tariff_rate = resolution.rate
    item.total = estimate.customer_revenue
    item.estimated_duty_cost = estimate.duty_cost
    item.estimated_3pl_cost = estimate.estimated_3pl_cost
    item.estimated_margin = estimate.estimated_margin


class OrderService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.projector = WorkflowProjector(db)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_order(self, data: OrderCreate) -> Order:
        """Persist an extracted PO and price every line against the rate table."""
        origin_country = infer_origin_country(data.supplier_name, data.supplier_address)
        rate_map = await TariffRateService(self.db).load_rate_map()

        header = data.model_dump(
            include=set(ORDER_HEADER_FIELDS) - _DEFAULTED_FIELDS, exclude_none=True
        )
        order = Order(
            **header,
            currency=data.currency or settings.default_currency,
            customer_term_days=_or_default(
                data.customer_term_days, settings.default_customer_term_days
            ),
            vendor_term_days=_or_default(data.vendor_term_days, settings.default_vendor_term_days),
            logistics_term_days=_or_default(
                data.logistics_term_days, settings.default_logistics_term_days
            ),
        )
        self.db.add(order)
        await self.db.flush()

        for payload in data.items:
            item = OrderItem(order_id=order.id, **payload.model_dump())
            price_item(item, origin_country, rate_map)
            self.db.add(item)
        await self.db.flush()

        await self.projector.recompute(order.id)
        logger.info(
            "Created order %s (VPO %s) with %d items, origin %s",
            order.id, order.vpo_number, len(data.items), origin_country,
        )
        return await self.get_order(order.id)

    # ------------------------------------------------------------------
    # Get / List
    # ------------------------------------------------------------------

    async def get_order(self, order_id: uuid.UUID) -> Order:
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")
        return order

    async def list_orders(
        self,
        status: WorkflowStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        query = select(Order).options(selectinload(Order.items))
        count_query = select(func.count()).select_from(Order)

        if status is not None:
            query = query.where(Order.workflow_status == status)
            count_query = count_query.where(Order.workflow_status == status)

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(Order.created_at.desc()).offset(offset).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def _load_items(self, order_id: uuid.UUID) -> dict[uuid.UUID, OrderItem]:
        result = await self.db.execute(select(OrderItem).where(OrderItem.order_id == order_id))
        return {item.id: item for item in result.scalars().all()}

    async def update_order(self, order_id: uuid.UUID, data: OrderUpdate) -> Order:
        """Apply header and line edits, then re-price the affected lines.

        Lines referenced by id must belong to the order; every check runs
        before anything is written.
        """
        order = await self.projector.lock_order(order_id)
        items = await self._load_items(order_id)

        item_updates = data.items or []
        edited_ids = {u.id for u in item_updates if u.id is not None}
        edited_and_removed = edited_ids & set(data.removed_item_ids)
        if edited_and_removed:
            raise ValidationException.for_field(
                "removed_item_ids",
                "Items cannot be edited and removed in the same request: "
                + ", ".join(sorted(str(i) for i in edited_and_removed)),
            )
        unknown = [
            str(i) for i in
            [u.id for u in item_updates if u.id is not None] + list(data.removed_item_ids)
            if i not in items
        ]
        if unknown:
            raise NotFoundException(
                f"Order {order_id} has no items {', '.join(unknown)}"
            )

        header = data.model_dump(exclude_unset=True, include=set(ORDER_HEADER_FIELDS))
        for field, value in header.items():
            if value is None and field in _NON_NULLABLE_HEADER_FIELDS:
                continue
            setattr(order, field, value)
        supplier_changed = bool({"supplier_name", "supplier_address"} & header.keys())

        for item_id in data.removed_item_ids:
            await self.db.delete(items.pop(item_id))

        touched: list[OrderItem] = []
        for update in item_updates:
            touched.append(self._apply_item_update(order_id, items, update))

        to_price = list(items.values()) if supplier_changed else touched
        if to_price:
            await self._reprice(order, to_price)

        await self.db.flush()
        await self.projector.recompute(order_id)
        logger.info(
            "Updated order %s: %d header fields, %d items edited, %d removed",
            order_id, len(header), len(touched), len(data.removed_item_ids),
        )
        return await self.get_order(order_id)

    def _apply_item_update(
        self,
        order_id: uuid.UUID,
        items: dict[uuid.UUID, OrderItem],
        update: OrderItemUpdate,
    ) -> OrderItem:
        changes = update.model_dump(exclude_unset=True, include=set(_ITEM_INPUT_FIELDS))
        if update.id is None:
            fields = {k: v for k, v in changes.items() if v is not None}
            item = OrderItem(order_id=order_id, **OrderItemCreate(**fields).model_dump())
            self.db.add(item)
            return item

        item = items[update.id]
        for field, value in changes.items():
            if value is None and field in ("quantity", "customer_unit_price", "vendor_unit_price"):
                continue
            setattr(item, field, value)
        return item

    async def _reprice(self, order: Order, items: list[OrderItem]) -> None:
        origin_country = infer_origin_country(order.supplier_name, order.supplier_address)
        rate_map = await TariffRateService(self.db).load_rate_map()
        for item in items:
            price_item(item, origin_country, rate_map)

    async def recalculate_items(self, order_id: uuid.UUID) -> Order:
        """Re-price every line against the current rate table."""
        order = await self.projector.lock_order(order_id)
        items = list((await self._load_items(order_id)).values())
        await self._reprice(order, items)
        await self.db.flush()
        await self.projector.recompute(order_id)
        logger.info("Recalculated %d items for order %s", len(items), order_id)
        return await self.get_order(order_id)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_order(self, order_id: uuid.UUID) -> None:
        """Delete an order that has no invoices or bills."""
        order = await self.projector.lock_order(order_id)

        for target_type, model in BILL_MODELS.items():
            result = await self.db.execute(
                select(func.count()).select_from(model).where(model.order_id == order_id)
            )
            if (result.scalar() or 0) > 0:
                raise ConflictException(
                    f"Order {order_id} still has {target_type.value} documents; "
                    "roll back or delete them first"
                )

        vpo_number = order.vpo_number
        for model in (ShippingDocument, ContainerAllocation, OrderItem):
            await self.db.execute(delete(model).where(model.order_id == order_id))
        await self.db.execute(delete(Order).where(Order.id == order_id))
        await self.db.flush()
        logger.info("Deleted order %s (VPO %s)", order_id, vpo_number)


def _or_default(value: int | None, default: int) -> int:
    return default if value is None else value
