"""Workflow API router: triggers, rollbacks, milestones and timeline per order."""

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.middleware.rate_limit import limiter
from src.models.order import Order
from src.modules.workflow.schemas import (
    MilestoneUpdate,
    TimelineResponse,
    WorkflowRollbackRequest,
    WorkflowRollbackResponse,
    WorkflowStatusResponse,
    WorkflowTriggerRequest,
    WorkflowTriggerResponse,
)
from src.modules.workflow.service import WorkflowService

router = APIRouter(prefix="/workflow", tags=["workflow"])


def _status_response(order: Order) -> WorkflowStatusResponse:
    return WorkflowStatusResponse(
        order_id=order.id,
        workflow_status=order.workflow_status,
        delivered_at=order.delivered_at,
        closed_at=order.closed_at,
        total_amount=order.total_amount,
        estimated_margin=order.estimated_margin,
        estimated_margin_rate=order.estimated_margin_rate,
    )


@router.post("/orders/{order_id}/trigger", response_model=WorkflowTriggerResponse)
@limiter.limit("30/minute")
async def trigger(
    request: Request,
    order_id: uuid.UUID,
    body: WorkflowTriggerRequest,
    db: AsyncSession = Depends(get_db),
):
    """Advance the order one step: shipping doc, transit or delivery."""
    outcome = await WorkflowService(db).apply_trigger(
        order_id,
        body.action,
        container_id=body.container_id,
        delivered_at=body.delivered_at,
    )
    return WorkflowTriggerResponse(**outcome)


@router.post("/orders/{order_id}/rollback", response_model=WorkflowRollbackResponse)
@limiter.limit("30/minute")
async def rollback(
    request: Request,
    order_id: uuid.UUID,
    body: WorkflowRollbackRequest,
    db: AsyncSession = Depends(get_db),
):
    """Undo a step along with every dependent document and payment."""
    outcome = await WorkflowService(db).apply_rollback(order_id, body.action)
    return WorkflowRollbackResponse(**outcome)


@router.patch("/orders/{order_id}/milestones", response_model=WorkflowStatusResponse)
async def update_milestones(
    order_id: uuid.UUID,
    body: MilestoneUpdate,
    db: AsyncSession = Depends(get_db),
):
    order = await WorkflowService(db).update_milestones(order_id, body)
    return _status_response(order)


@router.post("/orders/{order_id}/recompute", response_model=WorkflowStatusResponse)
async def recompute(
    order_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    order = await WorkflowService(db).recompute(order_id)
    return _status_response(order)


@router.get("/orders/{order_id}/timeline", response_model=TimelineResponse)
async def timeline(
    order_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return TimelineResponse(**await WorkflowService(db).get_timeline(order_id))
