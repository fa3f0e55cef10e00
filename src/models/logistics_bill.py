"""LogisticsBill model: payable owed to the 3PL for a container."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.finance_document import FinanceDocumentMixin


class LogisticsBill(UUIDPrimaryKeyMixin, TimestampMixin, FinanceDocumentMixin, Base):
    __tablename__ = "logistics_bills"

    order_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="SET NULL"),
    )
    container_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("containers.id", ondelete="SET NULL"),
    )
    provider: Mapped[str] = mapped_column(String(100), nullable=False, default="3PL")
    bill_no: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (
        Index("ix_logistics_bills_order_id", "order_id"),
        Index("ix_logistics_bills_container_id", "container_id"),
        Index("ix_logistics_bills_status", "status"),
    )

    @property
    def document_no(self) -> str:
        return self.bill_no
