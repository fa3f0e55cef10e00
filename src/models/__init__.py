# Import all models so SQLAlchemy metadata is populated for Alembic autogenerate
from src.models.commercial_invoice import CommercialInvoice
from src.models.container import Container
from src.models.container_allocation import ContainerAllocation
from src.models.enums import (
    BillStatus,
    ContainerStatus,
    PaymentDirection,
    PaymentTargetType,
    ShippingDocumentStatus,
    TariffSource,
    WorkflowRollback,
    WorkflowStatus,
    WorkflowTrigger,
)
from src.models.logistics_bill import LogisticsBill
from src.models.order import Order
from src.models.order_item import OrderItem
from src.models.payment import Payment
from src.models.shipping_document import ShippingDocument
from src.models.tariff_rate import TariffRate
from src.models.vendor_bill import VendorBill

__all__ = [
    "BillStatus",
    "CommercialInvoice",
    "Container",
    "ContainerAllocation",
    "ContainerStatus",
    "LogisticsBill",
    "Order",
    "OrderItem",
    "Payment",
    "PaymentDirection",
    "PaymentTargetType",
    "ShippingDocument",
    "ShippingDocumentStatus",
    "TariffRate",
    "TariffSource",
    "VendorBill",
    "WorkflowRollback",
    "WorkflowStatus",
    "WorkflowTrigger",
]
