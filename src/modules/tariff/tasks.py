"""Celery tasks for the tariff rate table."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from celery_app import celery
from src.database.engine import async_session

logger = logging.getLogger(__name__)


# ── Async implementations ────────────────────────────────────────────────────


async def _refresh_synced_tariffs_async() -> int:
    from src.modules.tariff.service import TariffRateService

    async with async_session() as session:
        try:
            count = await TariffRateService(session).refresh_synced(datetime.now(UTC))
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    logger.info("Scheduled tariff refresh updated %d synced rows", count)
    return count


# ── Celery task definitions ──────────────────────────────────────────────────


@celery.task(
    name="src.modules.tariff.tasks.refresh_synced_tariffs",
    bind=True,
    max_retries=3,
)
def refresh_synced_tariffs(self) -> int:
    """Monthly: recompute every synced tariff row. Manual rows are preserved."""
    try:
        return asyncio.run(_refresh_synced_tariffs_async())
    except Exception as exc:
        logger.exception("refresh_synced_tariffs failed")
        raise self.retry(exc=exc, countdown=300)
