"""Purchase order fulfillment schema

Revision ID: 001
Revises: None
Create Date: 2026-10-16

Creates: orders, order_items, containers, container_allocations,
         shipping_documents, commercial_invoices, vendor_bills,
         logistics_bills, payments, tariff_rates
Enums: workflowstatus, containerstatus, shippingdocumentstatus, billstatus,
       paymenttargettype, paymentdirection, tariffsource
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_FINANCE_COLUMNS = """
            amount NUMERIC(15, 2) NOT NULL,
            currency VARCHAR(3) NOT NULL DEFAULT 'USD',
            status billstatus NOT NULL DEFAULT 'OPEN',
            issue_date DATE,
            due_date DATE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
"""


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')

    # ── 1. Enum types ─────────────────────────────────────────────────────
    op.execute("""
        CREATE TYPE workflowstatus AS ENUM (
            'PO_UPLOADED', 'PARTIALLY_SHIPPED', 'SHIPPING_DOC_SENT',
            'IN_TRANSIT', 'AR_AP_OPEN', 'CLOSED'
        );
    """)
    op.execute("CREATE TYPE containerstatus AS ENUM ('PLANNED', 'IN_TRANSIT', 'ARRIVED');")
    op.execute("CREATE TYPE shippingdocumentstatus AS ENUM ('DRAFT', 'ISSUED');")
    op.execute("CREATE TYPE billstatus AS ENUM ('OPEN', 'PARTIAL', 'PAID');")
    op.execute("""
        CREATE TYPE paymenttargettype AS ENUM (
            'CUSTOMER_INVOICE', 'VENDOR_BILL', 'LOGISTICS_BILL'
        );
    """)
    op.execute("CREATE TYPE paymentdirection AS ENUM ('IN', 'OUT');")
    # Enum member names, as the ORM persists them
    op.execute("CREATE TYPE tariffsource AS ENUM ('MANUAL', 'SYNC');")

    # ── 2. orders ─────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE orders (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            vpo_number VARCHAR(100) NOT NULL,
            customer_name VARCHAR(255),
            customer_address TEXT,
            supplier_name VARCHAR(255),
            supplier_address TEXT,
            order_date DATE,
            so_reference VARCHAR(100),
            exp_ship_date DATE,
            cancel_date DATE,
            ship_to TEXT,
            ship_via VARCHAR(100),
            shipment_terms VARCHAR(100),
            payment_terms VARCHAR(100),
            customer_notes TEXT,
            currency VARCHAR(3) NOT NULL DEFAULT 'USD',
            workflow_status workflowstatus NOT NULL DEFAULT 'PO_UPLOADED',
            delivered_at TIMESTAMPTZ,
            closed_at TIMESTAMPTZ,
            customer_term_days INTEGER NOT NULL DEFAULT 30,
            vendor_term_days INTEGER NOT NULL DEFAULT 30,
            logistics_term_days INTEGER NOT NULL DEFAULT 15,
            total_amount NUMERIC(15, 2) NOT NULL DEFAULT 0,
            estimated_margin NUMERIC(15, 2) NOT NULL DEFAULT 0,
            estimated_margin_rate NUMERIC(8, 4) NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_orders_vpo_number ON orders (vpo_number);")
    op.execute("CREATE INDEX ix_orders_workflow_status ON orders (workflow_status);")

    # ── 3. order_items ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE order_items (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            product_code VARCHAR(100),
            description TEXT,
            collection VARCHAR(255),
            material VARCHAR(255),
            color VARCHAR(100),
            size_breakdown JSONB,
            quantity INTEGER NOT NULL DEFAULT 0,
            customer_unit_price NUMERIC(15, 2) NOT NULL DEFAULT 0,
            vendor_unit_price NUMERIC(15, 2) NOT NULL DEFAULT 0,
            tariff_key VARCHAR(255),
            tariff_rate NUMERIC(8, 4) NOT NULL DEFAULT 0,
            total NUMERIC(15, 2) NOT NULL DEFAULT 0,
            estimated_duty_cost NUMERIC(15, 2) NOT NULL DEFAULT 0,
            estimated_3pl_cost NUMERIC(15, 2) NOT NULL DEFAULT 0,
            estimated_margin NUMERIC(15, 2) NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_order_items_order_id ON order_items (order_id);")
    op.execute("CREATE INDEX ix_order_items_tariff_key ON order_items (tariff_key);")

    # ── 4. containers and allocations ─────────────────────────────────────
    op.execute("""
        CREATE TABLE containers (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            container_no VARCHAR(50) NOT NULL,
            vessel_name VARCHAR(100),
            status containerstatus NOT NULL DEFAULT 'PLANNED',
            etd DATE,
            eta DATE,
            atd TIMESTAMPTZ,
            ata TIMESTAMPTZ,
            arrival_at_warehouse TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_containers_container_no ON containers (container_no);")
    op.execute("CREATE INDEX ix_containers_status ON containers (status);")

    op.execute("""
        CREATE TABLE container_allocations (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            container_id UUID NOT NULL REFERENCES containers(id) ON DELETE CASCADE,
            order_id UUID NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            order_item_id UUID REFERENCES order_items(id) ON DELETE SET NULL,
            allocated_qty INTEGER,
            allocated_amount NUMERIC(15, 2),
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_container_allocations_order_id ON container_allocations (order_id);")
    op.execute(
        "CREATE INDEX ix_container_allocations_container_id ON container_allocations (container_id);"
    )

    # ── 5. shipping_documents ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE shipping_documents (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            container_id UUID REFERENCES containers(id) ON DELETE SET NULL,
            doc_no VARCHAR(50) NOT NULL,
            status shippingdocumentstatus NOT NULL DEFAULT 'DRAFT',
            issue_date TIMESTAMPTZ,
            payload JSONB,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_shipping_documents_order_id ON shipping_documents (order_id);")
    op.execute("CREATE INDEX ix_shipping_documents_container_id ON shipping_documents (container_id);")

    # ── 6. Finance documents ──────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE commercial_invoices (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            container_id UUID REFERENCES containers(id) ON DELETE SET NULL,
            invoice_no VARCHAR(50) NOT NULL,{_FINANCE_COLUMNS}        );
    """)
    op.execute("CREATE INDEX ix_commercial_invoices_order_id ON commercial_invoices (order_id);")
    op.execute("CREATE INDEX ix_commercial_invoices_status ON commercial_invoices (status);")

    op.execute(f"""
        CREATE TABLE vendor_bills (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            bill_no VARCHAR(50) NOT NULL,{_FINANCE_COLUMNS}        );
    """)
    op.execute("CREATE INDEX ix_vendor_bills_order_id ON vendor_bills (order_id);")
    op.execute("CREATE INDEX ix_vendor_bills_status ON vendor_bills (status);")

    op.execute(f"""
        CREATE TABLE logistics_bills (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID REFERENCES orders(id) ON DELETE SET NULL,
            container_id UUID REFERENCES containers(id) ON DELETE SET NULL,
            provider VARCHAR(100) NOT NULL DEFAULT '3PL',
            bill_no VARCHAR(50) NOT NULL,{_FINANCE_COLUMNS}        );
    """)
    op.execute("CREATE INDEX ix_logistics_bills_order_id ON logistics_bills (order_id);")
    op.execute("CREATE INDEX ix_logistics_bills_container_id ON logistics_bills (container_id);")
    op.execute("CREATE INDEX ix_logistics_bills_status ON logistics_bills (status);")

    # ── 7. payments (tagged reference, no foreign key) ────────────────────
    op.execute("""
        CREATE TABLE payments (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            target_type paymenttargettype NOT NULL,
            target_id UUID NOT NULL,
            direction paymentdirection NOT NULL,
            amount NUMERIC(15, 2) NOT NULL,
            payment_date TIMESTAMPTZ,
            method VARCHAR(50),
            reference_no VARCHAR(100),
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT ck_payments_amount_positive CHECK (amount > 0)
        );
    """)
    op.execute("CREATE INDEX ix_payments_target ON payments (target_type, target_id);")

    # ── 8. tariff_rates ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE tariff_rates (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            tariff_key VARCHAR(255) NOT NULL,
            tariff_rate NUMERIC(8, 4) NOT NULL,
            source tariffsource NOT NULL DEFAULT 'SYNC',
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_tariff_rates_tariff_key UNIQUE (tariff_key)
        );
    """)


def downgrade() -> None:
    # ── Drop tables in reverse order ───────────────────────────────────────
    op.execute("DROP TABLE IF EXISTS tariff_rates;")
    op.execute("DROP INDEX IF EXISTS ix_payments_target;")
    op.execute("DROP TABLE IF EXISTS payments;")
    op.execute("DROP TABLE IF EXISTS logistics_bills;")
    op.execute("DROP TABLE IF EXISTS vendor_bills;")
    op.execute("DROP TABLE IF EXISTS commercial_invoices;")
    op.execute("DROP TABLE IF EXISTS shipping_documents;")
    op.execute("DROP TABLE IF EXISTS container_allocations;")
    op.execute("DROP TABLE IF EXISTS containers;")
    op.execute("DROP TABLE IF EXISTS order_items;")
    op.execute("DROP TABLE IF EXISTS orders;")

    # ── Drop enum types ────────────────────────────────────────────────────
    op.execute("DROP TYPE IF EXISTS tariffsource;")
    op.execute("DROP TYPE IF EXISTS paymentdirection;")
    op.execute("DROP TYPE IF EXISTS paymenttargettype;")
    op.execute("DROP TYPE IF EXISTS billstatus;")
    op.execute("DROP TYPE IF EXISTS shippingdocumentstatus;")
    op.execute("DROP TYPE IF EXISTS containerstatus;")
    op.execute("DROP TYPE IF EXISTS workflowstatus;")
