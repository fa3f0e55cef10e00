"""Order model: one customer purchase order and its fulfillment milestones."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import WorkflowStatus

if TYPE_CHECKING:
    from src.models.order_item import OrderItem


class Order(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "orders"

    vpo_number: Mapped[str] = mapped_column(String(100), nullable=False)

    # Parties
    customer_name: Mapped[str | None] = mapped_column(String(255))
    customer_address: Mapped[str | None] = mapped_column(Text)
    supplier_name: Mapped[str | None] = mapped_column(String(255))
    supplier_address: Mapped[str | None] = mapped_column(Text)

    # PO header
    order_date: Mapped[date | None] = mapped_column(Date)
    so_reference: Mapped[str | None] = mapped_column(String(100))
    exp_ship_date: Mapped[date | None] = mapped_column(Date)
    cancel_date: Mapped[date | None] = mapped_column(Date)
    ship_to: Mapped[str | None] = mapped_column(Text)
    ship_via: Mapped[str | None] = mapped_column(String(100))
    shipment_terms: Mapped[str | None] = mapped_column(String(100))
    payment_terms: Mapped[str | None] = mapped_column(String(100))
    customer_notes: Mapped[str | None] = mapped_column(Text)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    # Workflow projection, written only through apply_projection()
    _workflow_status: Mapped[WorkflowStatus] = mapped_column(
        "workflow_status",
        nullable=False,
        default=WorkflowStatus.PO_UPLOADED,
        server_default=WorkflowStatus.PO_UPLOADED.value,
    )
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Payment terms in days
    customer_term_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    vendor_term_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    logistics_term_days: Mapped[int] = mapped_column(Integer, nullable=False, default=15)

    # Denormalized from order_items
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    estimated_margin: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    estimated_margin_rate: Mapped[Decimal] = mapped_column(
        Numeric(8, 4), nullable=False, default=Decimal("0.0000")
    )

    # Relationships
    items: Mapped[list[OrderItem]] = relationship(
        "OrderItem", back_populates="order", lazy="raise", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_orders_vpo_number", "vpo_number"),
        Index("ix_orders_workflow_status", "workflow_status"),
    )

    @hybrid_property
    def workflow_status(self) -> WorkflowStatus:
        return self._workflow_status

    def apply_projection(self, status: WorkflowStatus, closed_at: datetime | None) -> None:
        """Store a freshly derived workflow status.

        The status is a cached projection of the order's child records;
        ``WorkflowProjector.recompute`` is the only caller.
        """
        self._workflow_status = status
        self.closed_at = closed_at

    def __repr__(self) -> str:
        return f"<Order id={self.id} vpo={self.vpo_number} status={self._workflow_status}>"
