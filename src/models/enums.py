import enum


# ── Order workflow ────────────────────────────────────────────────────────


class WorkflowStatus(str, enum.Enum):
    PO_UPLOADED = "PO_UPLOADED"
    PARTIALLY_SHIPPED = "PARTIALLY_SHIPPED"
    SHIPPING_DOC_SENT = "SHIPPING_DOC_SENT"
    IN_TRANSIT = "IN_TRANSIT"
    AR_AP_OPEN = "AR_AP_OPEN"
    CLOSED = "CLOSED"


class WorkflowTrigger(str, enum.Enum):
    GENERATE_SHIPPING_DOC = "GENERATE_SHIPPING_DOC"
    START_TRANSIT = "START_TRANSIT"
    MARK_DELIVERED = "MARK_DELIVERED"


class WorkflowRollback(str, enum.Enum):
    UNDO_MARK_DELIVERED = "UNDO_MARK_DELIVERED"
    UNDO_START_TRANSIT = "UNDO_START_TRANSIT"
    UNDO_SHIPPING_DOC = "UNDO_SHIPPING_DOC"


# ── Logistics ─────────────────────────────────────────────────────────────


class ContainerStatus(str, enum.Enum):
    PLANNED = "PLANNED"
    IN_TRANSIT = "IN_TRANSIT"
    ARRIVED = "ARRIVED"


class ShippingDocumentStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ISSUED = "ISSUED"


# ── Finance ───────────────────────────────────────────────────────────────


class BillStatus(str, enum.Enum):
    OPEN = "OPEN"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class PaymentTargetType(str, enum.Enum):
    CUSTOMER_INVOICE = "CUSTOMER_INVOICE"
    VENDOR_BILL = "VENDOR_BILL"
    LOGISTICS_BILL = "LOGISTICS_BILL"


class PaymentDirection(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"


# ── Tariffs ───────────────────────────────────────────────────────────────


class TariffSource(str, enum.Enum):
    MANUAL = "manual"
    SYNC = "sync"
