"""ShippingDocument model: the shipping instruction sent to the 3PL."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import ShippingDocumentStatus


class ShippingDocument(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "shipping_documents"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    container_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("containers.id", ondelete="SET NULL"),
    )
    doc_no: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[ShippingDocumentStatus] = mapped_column(
        nullable=False, default=ShippingDocumentStatus.DRAFT, server_default="DRAFT"
    )
    issue_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payload: Mapped[dict | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"))

    __table_args__ = (
        Index("ix_shipping_documents_order_id", "order_id"),
        Index("ix_shipping_documents_container_id", "container_id"),
    )
