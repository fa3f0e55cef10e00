"""VendorBill model: payable owed to the garment supplier."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.finance_document import FinanceDocumentMixin


class VendorBill(UUIDPrimaryKeyMixin, TimestampMixin, FinanceDocumentMixin, Base):
    __tablename__ = "vendor_bills"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    bill_no: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (
        Index("ix_vendor_bills_order_id", "order_id"),
        Index("ix_vendor_bills_status", "status"),
    )

    @property
    def document_no(self) -> str:
        return self.bill_no
