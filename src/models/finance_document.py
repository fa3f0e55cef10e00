"""Columns shared by commercial invoices, vendor bills and logistics bills."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.enums import BillStatus


class FinanceDocumentMixin:
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    # Derived from payments; OPEN at creation
    status: Mapped[BillStatus] = mapped_column(
        nullable=False, default=BillStatus.OPEN, server_default="OPEN"
    )
    issue_date: Mapped[date | None] = mapped_column(Date)
    due_date: Mapped[date | None] = mapped_column(Date)
