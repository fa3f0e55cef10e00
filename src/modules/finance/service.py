"""Finance service: invoices, bills and the payments posted against them.

Every mutation re-derives the affected bill's status from its payments and
then recomputes the owning order's workflow status.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.exceptions import ConflictException, NotFoundException, ValidationException
from src.models.commercial_invoice import CommercialInvoice
from src.models.container import Container
from src.models.enums import BillStatus, PaymentTargetType
from src.models.logistics_bill import LogisticsBill
from src.models.order import Order
from src.models.order_item import OrderItem
from src.models.payment import Payment
from src.models.vendor_bill import VendorBill
from src.modules.finance.constants import (
    BILL_MODELS,
    DEFAULT_LOGISTICS_PROVIDER,
    DOCUMENT_NUMBER_FIELDS,
    DOCUMENT_PREFIXES,
    Bill,
)
from src.modules.finance.ledger import (
    BillBalance,
    derive_bill_status,
    outstanding,
    summarize_balances,
)
from src.modules.finance.numbering import resolve_document_no
from src.modules.finance.schemas import (
    BillUpdate,
    CommercialInvoiceCreate,
    LogisticsBillCreate,
    PaymentCreate,
    PaymentUpdate,
    VendorBillCreate,
)
from src.modules.finance.targets import PaymentTarget
from src.modules.order.estimator import parse_decimal_input, round_money, sum_money
from src.modules.workflow.projector import WorkflowProjector

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _as_date(value: datetime | date) -> date:
    return value.date() if isinstance(value, datetime) else value


def _require_positive(field: str, value: Decimal | str | None) -> Decimal:
    amount = parse_decimal_input(value, fallback=Decimal("NaN"))
    if amount.is_nan() or amount <= 0:
        raise ValidationException.for_field(field, f"{field} must be a positive number")
    return round_money(amount)


class FinanceService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.projector = WorkflowProjector(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def vendor_cost_total(self, order_id: uuid.UUID) -> Decimal:
        """Sum of quantity x vendor unit price over the order's lines."""
        result = await self.db.execute(
            select(OrderItem.quantity, OrderItem.vendor_unit_price).where(
                OrderItem.order_id == order_id
            )
        )
        return sum_money(
            Decimal(qty or 0) * Decimal(price or 0) for qty, price in result.all()
        )

    async def paid_amount(self, target: PaymentTarget) -> Decimal:
        result = await self.db.execute(
            select(Payment.amount).where(
                Payment.target_type == target.target_type,
                Payment.target_id == target.target_id,
            )
        )
        return sum_money(result.scalars().all())

    async def _payment_count(self, target: PaymentTarget) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Payment).where(
                Payment.target_type == target.target_type,
                Payment.target_id == target.target_id,
            )
        )
        return result.scalar() or 0

    async def refresh_bill_status(self, target: PaymentTarget) -> Bill:
        """Re-derive a bill's status from the payments posted against it."""
        bill = await target.load(self.db)
        paid = await self.paid_amount(target)
        status = derive_bill_status(bill.amount, paid)
        if bill.status != status:
            logger.info(
                "%s %s status %s -> %s",
                target.label, bill.document_no, bill.status.value, status.value,
            )
            bill.status = status
        if paid > bill.amount:
            logger.warning(
                "%s %s over-paid: amount %s, paid %s",
                target.label, bill.document_no, bill.amount, paid,
            )
        await self.db.flush()
        return bill

    async def _recompute_owner(self, order_id: uuid.UUID | None) -> None:
        if order_id is not None:
            await self.projector.recompute(order_id)

    async def _get_container(self, container_id: uuid.UUID) -> Container:
        result = await self.db.execute(select(Container).where(Container.id == container_id))
        container = result.scalar_one_or_none()
        if container is None:
            raise NotFoundException(f"Container {container_id} not found")
        return container

    # ------------------------------------------------------------------
    # Opening documents (no recompute; callers recompute once at the end)
    # ------------------------------------------------------------------

    async def open_commercial_invoice(
        self,
        order: Order,
        now: datetime,
        *,
        container_id: uuid.UUID | None = None,
        invoice_no: str | None = None,
        amount: Decimal | None = None,
        currency: str | None = None,
        issue_date: date | None = None,
        due_date: date | None = None,
    ) -> CommercialInvoice:
        issue = issue_date or now.date()
        anchor = _as_date(order.delivered_at) if order.delivered_at else issue
        invoice = CommercialInvoice(
            order_id=order.id,
            container_id=container_id,
            invoice_no=resolve_document_no(
                invoice_no, DOCUMENT_PREFIXES[PaymentTargetType.CUSTOMER_INVOICE], now
            ),
            issue_date=issue,
            due_date=due_date or anchor + timedelta(days=order.customer_term_days),
            amount=round_money(order.total_amount if amount is None else amount),
            currency=currency or order.currency or settings.default_currency,
            status=BillStatus.OPEN,
        )
        self.db.add(invoice)
        await self.db.flush()
        logger.info("Opened commercial invoice %s for order %s", invoice.invoice_no, order.id)
        return invoice

    async def open_vendor_bill(
        self,
        order: Order,
        now: datetime,
        *,
        bill_no: str | None = None,
        amount: Decimal | None = None,
        currency: str | None = None,
        issue_date: date | None = None,
        due_date: date | None = None,
    ) -> VendorBill:
        issue = issue_date or now.date()
        if amount is None or amount <= 0:
            amount = await self.vendor_cost_total(order.id)
        bill = VendorBill(
            order_id=order.id,
            bill_no=resolve_document_no(
                bill_no, DOCUMENT_PREFIXES[PaymentTargetType.VENDOR_BILL], now
            ),
            issue_date=issue,
            due_date=due_date or issue + timedelta(days=order.vendor_term_days),
            amount=round_money(amount),
            currency=currency or order.currency or settings.default_currency,
            status=BillStatus.OPEN,
        )
        self.db.add(bill)
        await self.db.flush()
        logger.info("Opened vendor bill %s for order %s", bill.bill_no, order.id)
        return bill

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_commercial_invoice(self, data: CommercialInvoiceCreate) -> CommercialInvoice:
        order = await self.projector.lock_order(data.order_id)
        if data.container_id is not None:
            await self._get_container(data.container_id)
        invoice = await self.open_commercial_invoice(
            order,
            datetime.now(UTC),
            container_id=data.container_id,
            invoice_no=data.invoice_no,
            amount=data.amount,
            currency=data.currency,
            issue_date=data.issue_date,
            due_date=data.due_date,
        )
        await self.projector.recompute(order.id)
        return invoice

    async def create_vendor_bill(self, data: VendorBillCreate) -> VendorBill:
        order = await self.projector.lock_order(data.order_id)
        bill = await self.open_vendor_bill(
            order,
            datetime.now(UTC),
            bill_no=data.bill_no,
            amount=data.amount,
            currency=data.currency,
            issue_date=data.issue_date,
            due_date=data.due_date,
        )
        await self.projector.recompute(order.id)
        return bill

    async def create_logistics_bill(self, data: LogisticsBillCreate) -> LogisticsBill:
        """Open a 3PL bill against a container, optionally tied to an order.

        Due date anchors on warehouse arrival, then delivery, then issue date.
        """
        amount = _require_positive("amount", data.amount)
        container = await self._get_container(data.container_id)
        order = (
            await self.projector.lock_order(data.order_id)
            if data.order_id is not None
            else None
        )

        now = datetime.now(UTC)
        issue = data.issue_date or now.date()
        if container.arrival_at_warehouse is not None:
            anchor = _as_date(container.arrival_at_warehouse)
        elif order is not None and order.delivered_at is not None:
            anchor = _as_date(order.delivered_at)
        else:
            anchor = issue
        term_days = order.logistics_term_days if order else settings.default_logistics_term_days

        bill = LogisticsBill(
            order_id=data.order_id,
            container_id=data.container_id,
            provider=(data.provider or "").strip() or DEFAULT_LOGISTICS_PROVIDER,
            bill_no=resolve_document_no(
                data.bill_no, DOCUMENT_PREFIXES[PaymentTargetType.LOGISTICS_BILL], now
            ),
            issue_date=issue,
            due_date=data.due_date or anchor + timedelta(days=term_days),
            amount=amount,
            currency=data.currency or (order.currency if order else settings.default_currency),
            status=BillStatus.OPEN,
        )
        self.db.add(bill)
        await self.db.flush()
        await self._recompute_owner(data.order_id)
        logger.info(
            "Opened logistics bill %s for container %s (order %s)",
            bill.bill_no, data.container_id, data.order_id,
        )
        return bill

    # ------------------------------------------------------------------
    # Read / update / delete bills
    # ------------------------------------------------------------------

    async def get_bill(self, target_type: PaymentTargetType, bill_id: uuid.UUID) -> Bill:
        return await PaymentTarget(target_type, bill_id).load(self.db)

    async def bill_balance(self, target_type: PaymentTargetType, bill: Bill) -> BillBalance:
        paid = await self.paid_amount(PaymentTarget(target_type, bill.id))
        return BillBalance(
            target_type=target_type,
            bill_id=bill.id,
            document_no=bill.document_no,
            amount=bill.amount,
            paid=paid,
            currency=bill.currency,
        )

    async def list_bills(
        self,
        target_type: PaymentTargetType,
        order_id: uuid.UUID | None = None,
    ) -> list[Bill]:
        model = BILL_MODELS[target_type]
        query = select(model).order_by(model.created_at.desc())
        if order_id is not None:
            query = query.where(model.order_id == order_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_bill(
        self,
        target_type: PaymentTargetType,
        bill_id: uuid.UUID,
        data: BillUpdate,
    ) -> Bill:
        target = PaymentTarget(target_type, bill_id)
        bill = await target.load(self.db)
        changes = data.model_dump(exclude_unset=True)

        if "amount" in changes:
            if target_type == PaymentTargetType.LOGISTICS_BILL:
                changes["amount"] = _require_positive("amount", changes["amount"])
            else:
                amount = parse_decimal_input(changes["amount"], fallback=Decimal("-1"))
                if amount < 0:
                    raise ValidationException.for_field("amount", "amount must not be negative")
                changes["amount"] = round_money(amount)

        if bill.order_id is not None:
            await self.projector.lock_order(bill.order_id)

        for field, value in changes.items():
            if value is None:
                continue
            if field == "document_no":
                setattr(bill, DOCUMENT_NUMBER_FIELDS[target_type], value.strip())
            else:
                setattr(bill, field, value)
        await self.db.flush()

        await self.refresh_bill_status(target)
        await self._recompute_owner(bill.order_id)
        logger.info("Updated %s %s", target.label, bill.document_no)
        return bill

    async def delete_bill(self, target_type: PaymentTargetType, bill_id: uuid.UUID) -> None:
        """Delete a bill that has no payments posted against it."""
        target = PaymentTarget(target_type, bill_id)
        bill = await target.load(self.db)
        payment_count = await self._payment_count(target)
        if payment_count:
            raise ConflictException(
                f"Cannot delete {target.label} {bill.document_no}: "
                f"{payment_count} payment(s) posted; delete them first"
            )

        order_id = bill.order_id
        if order_id is not None:
            await self.projector.lock_order(order_id)
        await self.db.delete(bill)
        await self.db.flush()
        await self._recompute_owner(order_id)
        logger.info("Deleted %s %s", target.label, bill.document_no)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def get_payment(self, payment_id: uuid.UUID) -> Payment:
        result = await self.db.execute(select(Payment).where(Payment.id == payment_id))
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFoundException(f"Payment {payment_id} not found")
        return payment

    async def list_payments(
        self,
        target_type: PaymentTargetType | None = None,
        target_id: uuid.UUID | None = None,
        order_id: uuid.UUID | None = None,
    ) -> list[Payment]:
        query = select(Payment).order_by(Payment.created_at)
        if target_type is not None:
            query = query.where(Payment.target_type == target_type)
        if target_id is not None:
            query = query.where(Payment.target_id == target_id)
        if order_id is not None:
            bills = await self.projector.load_bills(order_id)
            ids_by_type: dict[PaymentTargetType, list[uuid.UUID]] = {}
            for _, balance in bills:
                ids_by_type.setdefault(balance.target_type, []).append(balance.bill_id)
            if not ids_by_type:
                return []
            query = query.where(
                or_(*(
                    and_(Payment.target_type == kind, Payment.target_id.in_(ids))
                    for kind, ids in ids_by_type.items()
                ))
            )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_payment(self, data: PaymentCreate) -> Payment:
        """Post a payment, then re-derive the bill status and the order status."""
        amount = _require_positive("amount", data.amount)
        target = PaymentTarget(data.target_type, data.target_id)
        bill = await target.load(self.db)
        if bill.order_id is not None:
            await self.projector.lock_order(bill.order_id)

        payment = Payment(
            target_type=data.target_type,
            target_id=data.target_id,
            direction=data.direction or target.default_direction,
            amount=amount,
            payment_date=data.payment_date or datetime.now(UTC),
            method=data.method,
            reference_no=data.reference_no,
            notes=data.notes,
        )
        self.db.add(payment)
        await self.db.flush()

        await self.refresh_bill_status(target)
        await self._recompute_owner(bill.order_id)
        logger.info(
            "Posted payment %s of %s against %s %s",
            payment.id, amount, target.label, bill.document_no,
        )
        return payment

    async def update_payment(self, payment_id: uuid.UUID, data: PaymentUpdate) -> Payment:
        payment = await self.get_payment(payment_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field not in ("amount", "direction")
        }
        if "amount" in changes:
            changes["amount"] = _require_positive("amount", changes["amount"])

        target = PaymentTarget(payment.target_type, payment.target_id)
        bill = await target.load(self.db)
        if bill.order_id is not None:
            await self.projector.lock_order(bill.order_id)

        for field, value in changes.items():
            setattr(payment, field, value)
        await self.db.flush()

        await self.refresh_bill_status(target)
        await self._recompute_owner(bill.order_id)
        logger.info("Updated payment %s on %s %s", payment_id, target.label, bill.document_no)
        return payment

    async def delete_payment(self, payment_id: uuid.UUID) -> None:
        payment = await self.get_payment(payment_id)
        target = PaymentTarget(payment.target_type, payment.target_id)
        bill = await target.load(self.db)
        if bill.order_id is not None:
            await self.projector.lock_order(bill.order_id)

        await self.db.delete(payment)
        await self.db.flush()

        await self.refresh_bill_status(target)
        await self._recompute_owner(bill.order_id)
        logger.info("Deleted payment %s from %s %s", payment_id, target.label, bill.document_no)

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    async def order_summary(self, order_id: uuid.UUID) -> dict:
        """Per-document and per-side balances for one order."""
        order = await self.projector.lock_order(order_id)
        bills = await self.projector.load_bills(order_id)
        balances = [balance for _, balance in bills]

        totals = summarize_balances(balances)
        return {
            "order_id": order.id,
            "workflow_status": order.workflow_status,
            "currency": order.currency,
            "documents": [bill_payload(bill, balance) for bill, balance in bills],
            "receivable": dataclasses.asdict(totals.receivable),
            "vendor_payable": dataclasses.asdict(totals.vendor_payable),
            "logistics_payable": dataclasses.asdict(totals.logistics_payable),
            "settled": totals.settled,
        }


def bill_payload(bill: Bill, balance: BillBalance) -> dict:
    """Flatten a bill and its balance into the ``BillResponse`` shape."""
    return {
        "id": bill.id,
        "target_type": balance.target_type,
        "document_no": bill.document_no,
        "order_id": bill.order_id,
        "container_id": getattr(bill, "container_id", None),
        "provider": getattr(bill, "provider", None),
        "amount": bill.amount,
        "paid": balance.paid,
        "outstanding": max(ZERO, outstanding(bill.amount, balance.paid)),
        "currency": bill.currency,
        "status": bill.status,
        "issue_date": bill.issue_date,
        "due_date": bill.due_date,
    }
