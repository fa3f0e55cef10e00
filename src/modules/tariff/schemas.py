"""Pydantic v2 schemas for the tariff module."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import TariffSource
from src.schemas.responses import Rate

# ── Request schemas ──────────────────────────────────────────────────────────


class TariffRateCreate(BaseModel):
    """Manual upsert of one rate-table row."""

    tariff_key: str = Field(..., min_length=1, max_length=255)
    # Omitted -> computed default for the key
    tariff_rate: Decimal | None = None
    notes: str | None = None


class TariffRateUpdate(BaseModel):
    tariff_rate: Decimal
    notes: str | None = None


class TariffResolveRequest(BaseModel):
    """Item text to classify and price without touching any order."""

    description: str | None = None
    collection: str | None = None
    material: str | None = None
    supplier_name: str | None = None
    supplier_address: str | None = None
    origin_country: str | None = Field(default=None, min_length=2, max_length=2)


# ── Response schemas ─────────────────────────────────────────────────────────


class TariffRateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tariff_key: str
    tariff_rate: Rate
    source: TariffSource
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class TariffRateListResponse(BaseModel):
    items: list[TariffRateResponse]
    total: int
    auto_refreshed: bool = False


class TariffSyncResponse(BaseModel):
    created: int
    refreshed: int
    items: list[TariffRateResponse]


class TariffRefreshResponse(BaseModel):
    refreshed: int
    refreshed_at: datetime


class TariffResolveResponse(BaseModel):
    tariff_key: str
    origin_country: str
    tariff_rate: Rate
    matched_key: str | None = None
    lookup_keys: list[str]
