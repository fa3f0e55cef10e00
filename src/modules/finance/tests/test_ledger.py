"""Tests for the reconciliation ledger: bill status, balances and settlement."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from src.models.enums import BillStatus, PaymentTargetType
from src.modules.finance.ledger import (
    BillBalance,
    LedgerTotals,
    derive_bill_status,
    outstanding,
    summarize_balances,
)
from src.modules.finance.numbering import document_code, resolve_document_no


def _balance(
    target_type: PaymentTargetType,
    amount: str,
    paid: str,
) -> BillBalance:
    return BillBalance(
        target_type=target_type,
        bill_id=uuid.uuid4(),
        document_no="DOC-1",
        amount=Decimal(amount),
        paid=Decimal(paid),
    )


class TestBillStatus:
    def test_open(self) -> None:
        assert derive_bill_status(Decimal("100"), Decimal("0")) == BillStatus.OPEN

    def test_partial(self) -> None:
        assert derive_bill_status(Decimal("100"), Decimal("40")) == BillStatus.PARTIAL

    def test_paid_exact(self) -> None:
        assert derive_bill_status(Decimal("100"), Decimal("100.00")) == BillStatus.PAID

    def test_overpaid_is_paid(self) -> None:
        assert derive_bill_status(Decimal("100"), Decimal("120")) == BillStatus.PAID

    def test_zero_amount_bill_is_paid(self) -> None:
        assert derive_bill_status(Decimal("0"), Decimal("0")) == BillStatus.PAID


class TestOutstanding:
    def test_raw_value_goes_negative(self) -> None:
        assert outstanding(Decimal("100"), Decimal("120")) == Decimal("-20.00")

    def test_balance_clamps_for_display(self) -> None:
        balance = _balance(PaymentTargetType.VENDOR_BILL, "100", "120")
        assert balance.outstanding == Decimal("0.00")
        assert balance.overpaid

    def test_totals(self) -> None:
        totals = LedgerTotals.of([
            _balance(PaymentTargetType.VENDOR_BILL, "100", "30"),
            _balance(PaymentTargetType.VENDOR_BILL, "50.50", "0"),
        ])
        assert totals.amount == Decimal("150.50")
        assert totals.paid == Decimal("30.00")
        assert totals.outstanding == Decimal("120.50")
        assert totals.count == 2


class TestOrderBalances:
    def test_settled_when_every_side_is_zero(self) -> None:
        balances = summarize_balances([
            _balance(PaymentTargetType.CUSTOMER_INVOICE, "1000", "1000"),
            _balance(PaymentTargetType.VENDOR_BILL, "500", "500"),
            _balance(PaymentTargetType.LOGISTICS_BILL, "80", "80"),
        ])
        assert balances.settled
        assert balances.document_count == 3

    def test_one_cent_outstanding_is_not_settled(self) -> None:
        balances = summarize_balances([
            _balance(PaymentTargetType.CUSTOMER_INVOICE, "1000", "1000"),
            _balance(PaymentTargetType.VENDOR_BILL, "500", "500"),
            _balance(PaymentTargetType.LOGISTICS_BILL, "80", "79.99"),
        ])
        assert not balances.settled
        assert balances.logistics_payable.outstanding == Decimal("0.01")

    def test_no_documents_is_not_settled(self) -> None:
        assert not summarize_balances([]).settled

    def test_overpayment_does_not_offset_other_bills(self) -> None:
        balances = summarize_balances([
            _balance(PaymentTargetType.VENDOR_BILL, "100", "150"),
            _balance(PaymentTargetType.VENDOR_BILL, "50", "0"),
        ])
        assert balances.vendor_payable.outstanding == Decimal("50.00")
        assert balances.receivable.count == 0


class TestDocumentNumbers:
    def test_generated_code(self) -> None:
        now = datetime(2026, 5, 4, 3, 2, 1, tzinfo=UTC)
        assert document_code("CI", now) == "CI-20260504030201"

    def test_requested_number_wins(self) -> None:
        assert resolve_document_no("  INV-77 ", "CI") == "INV-77"

    def test_blank_number_generates(self) -> None:
        assert resolve_document_no("   ", "VB").startswith("VB-")
