"""Container model: a physical shipping unit shared by one or more orders."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import ContainerStatus


class Container(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "containers"

    container_no: Mapped[str] = mapped_column(String(50), nullable=False)
    vessel_name: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[ContainerStatus] = mapped_column(
        nullable=False, default=ContainerStatus.PLANNED, server_default="PLANNED"
    )

    # Planned
    etd: Mapped[date | None] = mapped_column(Date)
    eta: Mapped[date | None] = mapped_column(Date)

    # Actual
    atd: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ata: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    arrival_at_warehouse: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_containers_container_no", "container_no"),
        Index("ix_containers_status", "status"),
    )
