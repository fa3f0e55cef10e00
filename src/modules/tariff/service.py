"""TariffRateService: the rate table behind tariff resolution.

Rows tagged ``manual`` are authoritative and never recomputed. Rows tagged
``sync`` hold computed defaults and are refreshed when stale or on demand.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.exceptions import NotFoundException
from src.models.enums import TariffSource
from src.models.order import Order
from src.models.order_item import OrderItem
from src.models.tariff_rate import TariffRate
from src.modules.tariff.classifier import (
    derive_tariff_key,
    infer_origin_country,
    normalize_tariff_key,
)
from src.modules.tariff.resolver import (
    TariffResolution,
    build_lookup_keys,
    country_key,
    default_tariff_rate_by_key,
    is_stale,
    resolve_tariff_rate,
    round_rate,
)
from src.modules.tariff.schemas import TariffRateCreate, TariffRateUpdate, TariffResolveRequest

logger = logging.getLogger(__name__)

SYNC_NOTE = "Auto-synced from description + collection + material"


class TariffRateService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _all_rows(self) -> list[TariffRate]:
        result = await self.db.execute(select(TariffRate).order_by(TariffRate.tariff_key))
        return list(result.scalars().all())

    async def get_rate(self, rate_id: uuid.UUID) -> TariffRate:
        result = await self.db.execute(select(TariffRate).where(TariffRate.id == rate_id))
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundException(f"Tariff rate {rate_id} not found")
        return row

    async def list_rates(self, now: datetime | None = None) -> tuple[list[TariffRate], bool]:
        """All rows ordered by key, refreshing synced rows first if any is stale.

        Returns ``(rows, auto_refreshed)``.
        """
        now = now or datetime.now(UTC)
        max_age = timedelta(days=settings.tariff_refresh_interval_days)
        rows = await self._all_rows()

        needs_refresh = any(
            row.source == TariffSource.SYNC and is_stale(row.updated_at, now, max_age)
            for row in rows
        )
        if not needs_refresh:
            return rows, False

        self._recompute_synced(rows, now)
        await self.db.flush()
        logger.info("Auto-refreshed synced tariff rows (stale after %d days)", max_age.days)
        return await self._all_rows(), True

    async def load_rate_map(self) -> dict[str, Decimal]:
        """``{normalized key: rate}`` for the resolver."""
        result = await self.db.execute(select(TariffRate.tariff_key, TariffRate.tariff_rate))
        return {normalize_tariff_key(key): Decimal(rate) for key, rate in result.all()}

    async def resolve(
        self,
        base_key: str,
        origin_country: str | None,
        rate_map: dict[str, Decimal] | None = None,
    ) -> TariffResolution:
        if rate_map is None:
            rate_map = await self.load_rate_map()
        return resolve_tariff_rate(base_key, origin_country, rate_map)

    async def preview(self, data: TariffResolveRequest) -> dict:
        """Classify free text and resolve its rate against the current table."""
        tariff_key = derive_tariff_key(data.description, data.collection, data.material)
        country = (
            data.origin_country.upper()
            if data.origin_country
            else infer_origin_country(data.supplier_name, data.supplier_address)
        )
        resolution = await self.resolve(tariff_key, country)
        return {
            "tariff_key": tariff_key,
            "origin_country": country,
            "tariff_rate": resolution.rate,
            "matched_key": resolution.matched_key,
            "lookup_keys": build_lookup_keys(tariff_key, country),
        }

    # ------------------------------------------------------------------
    # Manual edits
    # ------------------------------------------------------------------

    async def upsert_manual(self, data: TariffRateCreate) -> TariffRate:
        """Insert or overwrite a row keyed by its normalized key, marking it manual."""
        key = normalize_tariff_key(data.tariff_key)
        if data.tariff_rate is None:
            rate = default_tariff_rate_by_key(key)
        else:
            rate = round_rate(max(Decimal("0"), data.tariff_rate))

        result = await self.db.execute(select(TariffRate).where(TariffRate.tariff_key == key))
        row = result.scalar_one_or_none()
        if row is None:
            row = TariffRate(tariff_key=key)
            self.db.add(row)

        row.tariff_rate = rate
        row.source = TariffSource.MANUAL
        row.notes = data.notes
        row.updated_at = datetime.now(UTC)
        await self.db.flush()
        logger.info("Upserted manual tariff %s = %s", key, rate)
        return row

    async def update_rate(self, rate_id: uuid.UUID, data: TariffRateUpdate) -> TariffRate:
        """Overwrite a row's rate; an edited row becomes manual."""
        row = await self.get_rate(rate_id)
        row.tariff_rate = round_rate(max(Decimal("0"), data.tariff_rate))
        row.notes = data.notes
        row.source = TariffSource.MANUAL
        row.updated_at = datetime.now(UTC)
        await self.db.flush()
        logger.info("Updated tariff %s = %s", row.tariff_key, row.tariff_rate)
        return row

    async def delete_rate(self, rate_id: uuid.UUID) -> None:
        row = await self.get_rate(rate_id)
        await self.db.delete(row)
        await self.db.flush()
        logger.info("Deleted tariff %s", row.tariff_key)

    # ------------------------------------------------------------------
    # Synced rows
    # ------------------------------------------------------------------

    @staticmethod
    def _recompute_synced(rows: list[TariffRate], now: datetime) -> int:
        count = 0
        for row in rows:
            if row.source != TariffSource.SYNC:
                continue
            row.tariff_rate = default_tariff_rate_by_key(row.tariff_key)
            # Set explicitly: an unchanged rate would not trigger onupdate
            row.updated_at = now
            count += 1
        return count

    async def refresh_synced(self, now: datetime | None = None) -> int:
        """Recompute every synced row. Manual rows are left untouched."""
        now = now or datetime.now(UTC)
        count = self._recompute_synced(await self._all_rows(), now)
        await self.db.flush()
        logger.info("Refreshed %d synced tariff rows", count)
        return count

    async def sync_from_order_items(self, now: datetime | None = None) -> tuple[int, int]:
        """Make sure every key referenced by an order item has a row.

        Keys are ``"{origin country} | {derived key}"``. Missing keys are
        inserted as synced defaults; existing synced rows are refreshed.
        Returns ``(created, refreshed)``.
        """
        now = now or datetime.now(UTC)
        result = await self.db.execute(
            select(
                OrderItem.description,
                OrderItem.collection,
                OrderItem.material,
                Order.supplier_name,
                Order.supplier_address,
            ).outerjoin(Order, OrderItem.order_id == Order.id)
        )
        referenced = {
            country_key(
                derive_tariff_key(description, collection, material),
                infer_origin_country(supplier_name, supplier_address),
            )
            for description, collection, material, supplier_name, supplier_address in result.all()
        }

        rows = await self._all_rows()
        refreshed = self._recompute_synced(rows, now)

        existing = {normalize_tariff_key(row.tariff_key) for row in rows}
        missing = sorted(referenced - existing)
        for key in missing:
            self.db.add(
                TariffRate(
                    tariff_key=key,
                    tariff_rate=default_tariff_rate_by_key(key),
                    source=TariffSource.SYNC,
                    notes=SYNC_NOTE,
                    updated_at=now,
                )
            )
        await self.db.flush()
        logger.info(
            "Tariff sync: %d keys referenced, %d created, %d refreshed",
            len(referenced), len(missing), refreshed,
        )
        return len(missing), refreshed
