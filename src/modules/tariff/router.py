"""Tariff API router: rate table maintenance and resolution preview."""

import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.database.session import get_db
from src.exceptions import UnauthorizedException
from src.middleware.rate_limit import limiter
from src.modules.tariff.schemas import (
    TariffRateCreate,
    TariffRateListResponse,
    TariffRateResponse,
    TariffRateUpdate,
    TariffRefreshResponse,
    TariffResolveRequest,
    TariffResolveResponse,
    TariffSyncResponse,
)
from src.modules.tariff.service import TariffRateService

router = APIRouter(prefix="/tariffs", tags=["Tariffs"])


def require_cron_secret(authorization: str | None = Header(default=None)) -> None:
    """Guard for scheduler-driven endpoints; open when no secret is configured."""
    if not settings.cron_secret:
        return
    if authorization != f"Bearer {settings.cron_secret}":
        raise UnauthorizedException("Invalid or missing cron secret")


@router.get("", response_model=TariffRateListResponse)
async def list_tariffs(db: AsyncSession = Depends(get_db)) -> TariffRateListResponse:
    """List the rate table, refreshing synced rows first when they are stale."""
    rows, refreshed = await TariffRateService(db).list_rates(datetime.now(UTC))
    return TariffRateListResponse(
        items=[TariffRateResponse.model_validate(r) for r in rows],
        total=len(rows),
        auto_refreshed=refreshed,
    )


@router.post("", response_model=TariffRateResponse, status_code=201)
async def upsert_tariff(
    body: TariffRateCreate,
    db: AsyncSession = Depends(get_db),
) -> TariffRateResponse:
    row = await TariffRateService(db).upsert_manual(body)
    return TariffRateResponse.model_validate(row)


@router.patch("/{rate_id}", response_model=TariffRateResponse)
async def update_tariff(
    rate_id: uuid.UUID,
    body: TariffRateUpdate,
    db: AsyncSession = Depends(get_db),
) -> TariffRateResponse:
    row = await TariffRateService(db).update_rate(rate_id, body)
    return TariffRateResponse.model_validate(row)


@router.delete("/{rate_id}", status_code=204)
async def delete_tariff(rate_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> None:
    await TariffRateService(db).delete_rate(rate_id)


@router.post("/sync", response_model=TariffSyncResponse)
@limiter.limit("10/minute")
async def sync_tariffs(request: Request, db: AsyncSession = Depends(get_db)) -> TariffSyncResponse:
    """Insert rows for every key referenced by order items and refresh synced rows."""
    service = TariffRateService(db)
    created, refreshed = await service.sync_from_order_items(datetime.now(UTC))
    rows, _ = await service.list_rates(datetime.now(UTC))
    return TariffSyncResponse(
        created=created,
        refreshed=refreshed,
        items=[TariffRateResponse.model_validate(r) for r in rows],
    )


@router.post(
    "/refresh",
    response_model=TariffRefreshResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def refresh_tariffs(db: AsyncSession = Depends(get_db)) -> TariffRefreshResponse:
    """Recompute synced rows; called by an external scheduler."""
    now = datetime.now(UTC)
    count = await TariffRateService(db).refresh_synced(now)
    return TariffRefreshResponse(refreshed=count, refreshed_at=now)


@router.post("/resolve", response_model=TariffResolveResponse)
async def resolve_tariff(
    body: TariffResolveRequest,
    db: AsyncSession = Depends(get_db),
) -> TariffResolveResponse:
    """Classify item text and show which rate it would get."""
    preview = await TariffRateService(db).preview(body)
    return TariffResolveResponse(**preview)
