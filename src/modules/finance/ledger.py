"""Reconciliation ledger: outstanding balances per bill and per order.

Pure functions over amounts already loaded from the database. Over-payment is
not rejected here: a bill's raw outstanding may go negative, and is clamped to
zero only when displayed or aggregated.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from src.models.enums import BillStatus, PaymentTargetType
from src.modules.order.estimator import round_money, sum_money

ZERO = Decimal("0.00")


def outstanding(amount: Decimal, paid: Decimal) -> Decimal:
    """Raw balance ``amount - paid``; negative when over-paid."""
    return round_money(Decimal(amount) - Decimal(paid))


def derive_bill_status(amount: Decimal, paid: Decimal) -> BillStatus:
    if paid >= amount:
        return BillStatus.PAID
    if paid > 0:
        return BillStatus.PARTIAL
    return BillStatus.OPEN


@dataclass(frozen=True)
class BillBalance:
    target_type: PaymentTargetType
    bill_id: uuid.UUID
    document_no: str
    amount: Decimal
    paid: Decimal
    currency: str = "USD"

    @property
    def outstanding(self) -> Decimal:
        return max(ZERO, outstanding(self.amount, self.paid))

    @property
    def overpaid(self) -> bool:
        return self.paid > self.amount

    @property
    def status(self) -> BillStatus:
        return derive_bill_status(self.amount, self.paid)


@dataclass(frozen=True)
class LedgerTotals:
    amount: Decimal = ZERO
    paid: Decimal = ZERO
    outstanding: Decimal = ZERO
    count: int = 0

    @classmethod
    def of(cls, balances: Iterable[BillBalance]) -> LedgerTotals:
        balances = list(balances)
        return cls(
            amount=sum_money(b.amount for b in balances),
            paid=sum_money(b.paid for b in balances),
            outstanding=sum_money(b.outstanding for b in balances),
            count=len(balances),
        )


@dataclass(frozen=True)
class OrderBalances:
    """AR, vendor AP and logistics AP for one order."""

    bills: tuple[BillBalance, ...] = field(default_factory=tuple)

    def _totals(self, target_type: PaymentTargetType) -> LedgerTotals:
        return LedgerTotals.of(b for b in self.bills if b.target_type == target_type)

    @property
    def receivable(self) -> LedgerTotals:
        return self._totals(PaymentTargetType.CUSTOMER_INVOICE)

    @property
    def vendor_payable(self) -> LedgerTotals:
        return self._totals(PaymentTargetType.VENDOR_BILL)

    @property
    def logistics_payable(self) -> LedgerTotals:
        return self._totals(PaymentTargetType.LOGISTICS_BILL)

    @property
    def document_count(self) -> int:
        return len(self.bills)

    @property
    def settled(self) -> bool:
        """At least one document, and AR, vendor AP and logistics AP all at 0.00."""
        if not self.bills:
            return False
        return all(
            totals.outstanding == ZERO
            for totals in (self.receivable, self.vendor_payable, self.logistics_payable)
        )


def summarize_balances(bills: Iterable[BillBalance]) -> OrderBalances:
    return OrderBalances(bills=tuple(bills))
