"""Centralized v1 API router: all module routers are included here."""

from fastapi import APIRouter

from src.modules.finance.router import router as finance_router
from src.modules.logistics.router import router as logistics_router
from src.modules.order.router import router as order_router
from src.modules.tariff.router import router as tariff_router
from src.modules.workflow.router import router as workflow_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(order_router)
v1_router.include_router(tariff_router)
v1_router.include_router(logistics_router)
v1_router.include_router(finance_router)
v1_router.include_router(workflow_router)
