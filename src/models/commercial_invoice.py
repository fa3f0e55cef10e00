"""CommercialInvoice model: receivable raised against the customer."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.finance_document import FinanceDocumentMixin


class CommercialInvoice(UUIDPrimaryKeyMixin, TimestampMixin, FinanceDocumentMixin, Base):
    __tablename__ = "commercial_invoices"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    container_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("containers.id", ondelete="SET NULL"),
    )
    invoice_no: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (
        Index("ix_commercial_invoices_order_id", "order_id"),
        Index("ix_commercial_invoices_status", "status"),
    )

    @property
    def document_no(self) -> str:
        return self.invoice_no
