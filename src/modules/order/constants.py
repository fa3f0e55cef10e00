"""Order module constants: margin estimate drivers and rounding quanta."""

from __future__ import annotations

from decimal import Decimal

# ── Estimated 3PL cost = duty * share + qty * per-unit freight ───────────────
THREE_PL_DUTY_SHARE = Decimal("0.4")
THREE_PL_PER_UNIT = Decimal("0.10")

# ── Rounding ─────────────────────────────────────────────────────────────────
MONEY_QUANTUM = Decimal("0.01")

ZERO = Decimal("0")

# Header fields a PATCH may change; workflow fields go through the workflow module
ORDER_HEADER_FIELDS: tuple[str, ...] = (
    "vpo_number",
    "customer_name",
    "customer_address",
    "supplier_name",
    "supplier_address",
    "order_date",
    "so_reference",
    "exp_ship_date",
    "cancel_date",
    "ship_to",
    "ship_via",
    "shipment_terms",
    "payment_terms",
    "customer_notes",
    "currency",
    "customer_term_days",
    "vendor_term_days",
    "logistics_term_days",
)
