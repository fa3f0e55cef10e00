"""ContainerAllocation model: join of an order (or one of its lines) to a container."""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ContainerAllocation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "container_allocations"

    container_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("containers.id", ondelete="CASCADE"),
        nullable=False,
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    order_item_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("order_items.id", ondelete="SET NULL"),
    )
    allocated_qty: Mapped[int | None] = mapped_column(Integer)
    allocated_amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2))
    notes: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("ix_container_allocations_order_id", "order_id"),
        Index("ix_container_allocations_container_id", "container_id"),
    )
