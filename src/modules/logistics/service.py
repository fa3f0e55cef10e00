"""Logistics service: containers, order-to-container allocations and shipping documents."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import NotFoundException, ValidationException
from src.models.container import Container
from src.models.container_allocation import ContainerAllocation
from src.models.enums import ContainerStatus
from src.models.order_item import OrderItem
from src.models.shipping_document import ShippingDocument
from src.modules.finance.constants import SHIPPING_DOCUMENT_PREFIX
from src.modules.finance.numbering import resolve_document_no
from src.modules.logistics.schemas import (
    AllocationCreate,
    ContainerCreate,
    ContainerUpdate,
    ShippingDocumentCreate,
)
from src.modules.workflow.projector import WorkflowProjector

logger = logging.getLogger(__name__)


class LogisticsService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.projector = WorkflowProjector(db)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    async def create_container(self, data: ContainerCreate) -> Container:
        container = Container(
            container_no=data.container_no.strip(),
            vessel_name=data.vessel_name.strip() if data.vessel_name else None,
            status=ContainerStatus.PLANNED,
            etd=data.etd,
            eta=data.eta,
        )
        self.db.add(container)
        await self.db.flush()
        logger.info("Created container %s (%s)", container.id, container.container_no)
        return container

    async def get_container(self, container_id: uuid.UUID) -> Container:
        result = await self.db.execute(select(Container).where(Container.id == container_id))
        container = result.scalar_one_or_none()
        if container is None:
            raise NotFoundException(f"Container {container_id} not found")
        return container

    async def list_containers(self, status: ContainerStatus | None = None) -> list[Container]:
        query = select(Container).order_by(Container.created_at.desc())
        if status is not None:
            query = query.where(Container.status == status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_container(self, container_id: uuid.UUID, data: ContainerUpdate) -> Container:
        container = await self.get_container(container_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "container_no" and value is None:
                continue
            setattr(container, field, value)
        await self.db.flush()
        logger.info("Updated container %s", container_id)
        return container

    # ------------------------------------------------------------------
    # Allocations
    # ------------------------------------------------------------------

    async def create_allocation(self, data: AllocationCreate) -> ContainerAllocation:
        """Put (part of) an order into a container, then recompute the order."""
        await self.projector.lock_order(data.order_id)
        await self.get_container(data.container_id)
        if data.order_item_id is not None:
            result = await self.db.execute(
                select(OrderItem.id).where(
                    OrderItem.id == data.order_item_id,
                    OrderItem.order_id == data.order_id,
                )
            )
            if result.scalar_one_or_none() is None:
                raise ValidationException.for_field(
                    "order_item_id",
                    f"Item {data.order_item_id} does not belong to order {data.order_id}",
                )

        allocation = ContainerAllocation(**data.model_dump())
        self.db.add(allocation)
        await self.db.flush()
        await self.projector.recompute(data.order_id)
        logger.info(
            "Allocated order %s to container %s (allocation %s)",
            data.order_id, data.container_id, allocation.id,
        )
        return allocation

    async def list_allocations(
        self,
        order_id: uuid.UUID | None = None,
        container_id: uuid.UUID | None = None,
    ) -> list[ContainerAllocation]:
        query = select(ContainerAllocation).order_by(ContainerAllocation.created_at)
        if order_id is not None:
            query = query.where(ContainerAllocation.order_id == order_id)
        if container_id is not None:
            query = query.where(ContainerAllocation.container_id == container_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def delete_allocation(self, allocation_id: uuid.UUID) -> None:
        result = await self.db.execute(
            select(ContainerAllocation).where(ContainerAllocation.id == allocation_id)
        )
        allocation = result.scalar_one_or_none()
        if allocation is None:
            raise NotFoundException(f"Allocation {allocation_id} not found")

        order_id = allocation.order_id
        await self.projector.lock_order(order_id)
        await self.db.delete(allocation)
        await self.db.flush()
        await self.projector.recompute(order_id)
        logger.info("Deleted allocation %s from order %s", allocation_id, order_id)

    # ------------------------------------------------------------------
    # Shipping documents
    # ------------------------------------------------------------------

    async def create_shipping_document(self, data: ShippingDocumentCreate) -> ShippingDocument:
        await self.projector.lock_order(data.order_id)
        if data.container_id is not None:
            await self.get_container(data.container_id)

        now = datetime.now(UTC)
        document = ShippingDocument(
            order_id=data.order_id,
            container_id=data.container_id,
            doc_no=resolve_document_no(data.doc_no, SHIPPING_DOCUMENT_PREFIX, now),
            status=data.status,
            issue_date=data.issue_date or now,
            payload=data.payload,
        )
        self.db.add(document)
        await self.db.flush()
        await self.projector.recompute(data.order_id)
        logger.info("Created shipping document %s for order %s", document.doc_no, data.order_id)
        return document

    async def list_shipping_documents(self, order_id: uuid.UUID) -> list[ShippingDocument]:
        result = await self.db.execute(
            select(ShippingDocument)
            .where(ShippingDocument.order_id == order_id)
            .order_by(ShippingDocument.created_at)
        )
        return list(result.scalars().all())

    async def delete_shipping_document(self, document_id: uuid.UUID) -> None:
        result = await self.db.execute(
            select(ShippingDocument).where(ShippingDocument.id == document_id)
        )
        document = result.scalar_one_or_none()
        if document is None:
            raise NotFoundException(f"Shipping document {document_id} not found")

        order_id = document.order_id
        await self.projector.lock_order(order_id)
        await self.db.delete(document)
        await self.db.flush()
        await self.projector.recompute(order_id)
        logger.info("Deleted shipping document %s from order %s", document.doc_no, order_id)
