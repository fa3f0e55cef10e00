"""Logistics API router: containers, allocations and shipping documents."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.models.enums import ContainerStatus
from src.modules.logistics.schemas import (
    AllocationCreate,
    AllocationResponse,
    ContainerCreate,
    ContainerResponse,
    ContainerUpdate,
    ShippingDocumentCreate,
    ShippingDocumentResponse,
)
from src.modules.logistics.service import LogisticsService

router = APIRouter(prefix="/logistics", tags=["logistics"])


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


@router.post("/containers", response_model=ContainerResponse, status_code=201)
async def create_container(
    body: ContainerCreate,
    db: AsyncSession = Depends(get_db),
):
    container = await LogisticsService(db).create_container(body)
    return ContainerResponse.model_validate(container)


@router.get("/containers", response_model=list[ContainerResponse])
async def list_containers(
    status: ContainerStatus | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    containers = await LogisticsService(db).list_containers(status)
    return [ContainerResponse.model_validate(c) for c in containers]


@router.get("/containers/{container_id}", response_model=ContainerResponse)
async def get_container(
    container_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    container = await LogisticsService(db).get_container(container_id)
    return ContainerResponse.model_validate(container)


@router.patch("/containers/{container_id}", response_model=ContainerResponse)
async def update_container(
    container_id: uuid.UUID,
    body: ContainerUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Edit planning fields. Departure and arrival are set by workflow triggers."""
    container = await LogisticsService(db).update_container(container_id, body)
    return ContainerResponse.model_validate(container)


# ---------------------------------------------------------------------------
# Allocations
# ---------------------------------------------------------------------------


@router.post("/allocations", response_model=AllocationResponse, status_code=201)
async def create_allocation(
    body: AllocationCreate,
    db: AsyncSession = Depends(get_db),
):
    allocation = await LogisticsService(db).create_allocation(body)
    return AllocationResponse.model_validate(allocation)


@router.get("/allocations", response_model=list[AllocationResponse])
async def list_allocations(
    order_id: uuid.UUID | None = Query(None),
    container_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    allocations = await LogisticsService(db).list_allocations(order_id, container_id)
    return [AllocationResponse.model_validate(a) for a in allocations]


@router.delete("/allocations/{allocation_id}", status_code=204)
async def delete_allocation(
    allocation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    await LogisticsService(db).delete_allocation(allocation_id)


# ---------------------------------------------------------------------------
# Shipping documents
# ---------------------------------------------------------------------------


@router.post("/shipping-docs", response_model=ShippingDocumentResponse, status_code=201)
async def create_shipping_document(
    body: ShippingDocumentCreate,
    db: AsyncSession = Depends(get_db),
):
    document = await LogisticsService(db).create_shipping_document(body)
    return ShippingDocumentResponse.model_validate(document)


@router.get("/shipping-docs", response_model=list[ShippingDocumentResponse])
async def list_shipping_documents(
    order_id: uuid.UUID = Query(...),
    db: AsyncSession = Depends(get_db),
):
    documents = await LogisticsService(db).list_shipping_documents(order_id)
    return [ShippingDocumentResponse.model_validate(d) for d in documents]


@router.delete("/shipping-docs/{document_id}", status_code=204)
async def delete_shipping_document(
    document_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    await LogisticsService(db).delete_shipping_document(document_id)
