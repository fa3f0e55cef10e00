"""TariffRate model: one row of the duty-rate lookup table."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import TariffSource


class TariffRate(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "tariff_rates"

    # Normalized category key, optionally prefixed with "<country> | "
    tariff_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    tariff_rate: Mapped[Decimal] = mapped_column(Numeric(8, 4), nullable=False)
    source: Mapped[TariffSource] = mapped_column(nullable=False, default=TariffSource.SYNC)
    notes: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<TariffRate {self.tariff_key}={self.tariff_rate} ({self.source.value})>"
