"""Finance constants: bill kinds, payment directions and document prefixes."""

from __future__ import annotations

from src.models.commercial_invoice import CommercialInvoice
from src.models.enums import PaymentDirection, PaymentTargetType
from src.models.logistics_bill import LogisticsBill
from src.models.vendor_bill import VendorBill

BillModel = type[CommercialInvoice] | type[VendorBill] | type[LogisticsBill]
Bill = CommercialInvoice | VendorBill | LogisticsBill

# Each payment target kind resolves to exactly one bill table
BILL_MODELS: dict[PaymentTargetType, BillModel] = {
    PaymentTargetType.CUSTOMER_INVOICE: CommercialInvoice,
    PaymentTargetType.VENDOR_BILL: VendorBill,
    PaymentTargetType.LOGISTICS_BILL: LogisticsBill,
}

# Receivables are paid in, payables are paid out
DEFAULT_DIRECTIONS: dict[PaymentTargetType, PaymentDirection] = {
    PaymentTargetType.CUSTOMER_INVOICE: PaymentDirection.IN,
    PaymentTargetType.VENDOR_BILL: PaymentDirection.OUT,
    PaymentTargetType.LOGISTICS_BILL: PaymentDirection.OUT,
}

DOCUMENT_PREFIXES: dict[PaymentTargetType, str] = {
    PaymentTargetType.CUSTOMER_INVOICE: "CI",
    PaymentTargetType.VENDOR_BILL: "VB",
    PaymentTargetType.LOGISTICS_BILL: "LB",
}
SHIPPING_DOCUMENT_PREFIX = "SD"

DEFAULT_LOGISTICS_PROVIDER = "3PL"

# Column holding each kind's document number
DOCUMENT_NUMBER_FIELDS: dict[PaymentTargetType, str] = {
    PaymentTargetType.CUSTOMER_INVOICE: "invoice_no",
    PaymentTargetType.VENDOR_BILL: "bill_no",
    PaymentTargetType.LOGISTICS_BILL: "bill_no",
}
