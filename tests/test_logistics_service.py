"""Tests for LogisticsService: containers, allocations and shipping documents."""

import uuid
from datetime import date

import pytest

from src.exceptions import NotFoundException, ValidationException
from src.models.enums import ContainerStatus, ShippingDocumentStatus, WorkflowStatus
from src.modules.logistics.schemas import (
    AllocationCreate,
    ContainerCreate,
    ContainerUpdate,
    ShippingDocumentCreate,
)
from src.modules.logistics.service import LogisticsService
from tests.factories import create_order


class TestContainers:
    @pytest.mark.asyncio
    async def test_create_update_and_filter(self, async_test_session):
        service = LogisticsService(async_test_session)
        container = await service.create_container(
            ContainerCreate(container_no=" TGHU7654321 ", vessel_name="Ever Given", etd=date(2026, 4, 1))
        )
        assert container.container_no == "TGHU7654321"
        assert container.status == ContainerStatus.PLANNED

        updated = await service.update_container(
            container.id, ContainerUpdate(eta=date(2026, 5, 2), container_no=None)
        )
        assert updated.eta == date(2026, 5, 2)
        assert updated.container_no == "TGHU7654321"

        assert [c.id for c in await service.list_containers(ContainerStatus.PLANNED)] == [container.id]
        assert await service.list_containers(ContainerStatus.ARRIVED) == []

    @pytest.mark.asyncio
    async def test_missing_container(self, async_test_session):
        with pytest.raises(NotFoundException):
            await LogisticsService(async_test_session).get_container(uuid.uuid4())


class TestAllocations:
    @pytest.mark.asyncio
    async def test_allocation_drives_status(self, async_test_session):
        order = await create_order(async_test_session)
        service = LogisticsService(async_test_session)
        container = await service.create_container(ContainerCreate(container_no="MSCU0000001"))

        allocation = await service.create_allocation(
            AllocationCreate(container_id=container.id, order_id=order.id, allocated_qty=10)
        )
        assert order.workflow_status == WorkflowStatus.PARTIALLY_SHIPPED
        assert len(await service.list_allocations(container_id=container.id)) == 1

        await service.delete_allocation(allocation.id)
        assert order.workflow_status == WorkflowStatus.PO_UPLOADED

    @pytest.mark.asyncio
    async def test_item_must_belong_to_order(self, async_test_session):
        order = await create_order(async_test_session)
        other = await create_order(async_test_session, vpo_number="VPO-9")
        service = LogisticsService(async_test_session)
        container = await service.create_container(ContainerCreate(container_no="MSCU0000002"))

        with pytest.raises(ValidationException):
            await service.create_allocation(
                AllocationCreate(
                    container_id=container.id,
                    order_id=order.id,
                    order_item_id=other.items[0].id,
                )
            )

    @pytest.mark.asyncio
    async def test_unknown_order_is_404(self, async_test_session):
        service = LogisticsService(async_test_session)
        container = await service.create_container(ContainerCreate(container_no="MSCU0000003"))

        with pytest.raises(NotFoundException):
            await service.create_allocation(
                AllocationCreate(container_id=container.id, order_id=uuid.uuid4())
            )


class TestShippingDocuments:
    @pytest.mark.asyncio
    async def test_create_and_delete(self, async_test_session):
        order = await create_order(async_test_session)
        service = LogisticsService(async_test_session)

        document = await service.create_shipping_document(
            ShippingDocumentCreate(order_id=order.id, payload={"incoterm": "FOB"})
        )
        assert document.doc_no.startswith("SD-")
        assert document.status == ShippingDocumentStatus.DRAFT
        assert order.workflow_status == WorkflowStatus.SHIPPING_DOC_SENT

        await service.delete_shipping_document(document.id)
        assert await service.list_shipping_documents(order.id) == []
        assert order.workflow_status == WorkflowStatus.PO_UPLOADED
