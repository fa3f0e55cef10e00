"""Order API router: PO ingestion, line edits and repricing."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.models.enums import WorkflowStatus
from src.modules.order.schemas import (
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderUpdate,
)
from src.modules.order.service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=OrderResponse, status_code=201)
async def create_order(
    body: OrderCreate,
    db: AsyncSession = Depends(get_db),
):
    """Ingest a purchase order; every line is classified and priced on the way in."""
    order = await OrderService(db).create_order(body)
    return OrderResponse.model_validate(order)


@router.get("/", response_model=OrderListResponse)
async def list_orders(
    status: WorkflowStatus | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    items, total = await OrderService(db).list_orders(status=status, limit=limit, offset=offset)
    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).get_order(order_id)
    return OrderResponse.model_validate(order)


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: uuid.UUID,
    body: OrderUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Edit header fields and lines; touched lines are re-derived."""
    order = await OrderService(db).update_order(order_id, body)
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/recalculate", response_model=OrderResponse)
async def recalculate_order(
    order_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Re-resolve every line against the current tariff table."""
    order = await OrderService(db).recalculate_items(order_id)
    return OrderResponse.model_validate(order)


@router.delete("/{order_id}", status_code=204)
async def delete_order(
    order_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete an order; rejected with 409 while invoices or bills exist."""
    await OrderService(db).delete_order(order_id)
