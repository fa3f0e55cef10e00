"""Per-line margin estimate and order-level totals.

Money is rounded to cents and rates to 4 dp, both ROUND_HALF_UP. Order totals
are sums of the already-rounded line values, never a re-derivation from raw
inputs.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from src.modules.order.constants import (
    MONEY_QUANTUM,
    THREE_PL_DUTY_SHARE,
    THREE_PL_PER_UNIT,
    ZERO,
)
from src.modules.tariff.resolver import round_rate


@dataclass(frozen=True)
class MarginEstimate:
    customer_revenue: Decimal
    vendor_cost: Decimal
    duty_cost: Decimal
    estimated_3pl_cost: Decimal
    estimated_margin: Decimal
    estimated_margin_rate: Decimal


@dataclass(frozen=True)
class OrderTotals:
    total_amount: Decimal
    estimated_margin: Decimal
    estimated_margin_rate: Decimal


def round_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def parse_decimal_input(value: Any, fallback: Decimal = ZERO) -> Decimal:
    """Coerce user input to a finite Decimal, or return ``fallback``.

    Accepts ints, floats, Decimals and numeric strings; anything else,
    including NaN and infinities, yields the fallback.
    """
    if isinstance(value, bool) or value is None:
        return fallback
    if isinstance(value, (int, float, Decimal)):
        candidate = Decimal(str(value))
    elif isinstance(value, str):
        try:
            candidate = Decimal(value.strip())
        except InvalidOperation:
            return fallback
    else:
        return fallback
    return candidate if candidate.is_finite() else fallback


def sum_money(values: Iterable[Decimal | None]) -> Decimal:
    return round_money(sum((Decimal(v) for v in values if v is not None), ZERO))


def estimate_margin(
    customer_unit_price: Decimal,
    vendor_unit_price: Decimal,
    qty: Decimal | int,
    tariff_rate: Decimal,
) -> MarginEstimate:
    """Revenue, cost, duty, 3PL and margin for one order line.

    Negative inputs are treated as zero. The 3PL estimate is 40% of duty plus
    $0.10 per unit; margin rate is 0 when there is no revenue.
    """
    customer_unit = max(ZERO, Decimal(customer_unit_price))
    vendor_unit = max(ZERO, Decimal(vendor_unit_price))
    quantity = max(ZERO, Decimal(qty))
    rate = max(ZERO, Decimal(tariff_rate))

    revenue = customer_unit * quantity
    vendor_cost = vendor_unit * quantity
    duty_cost = vendor_cost * rate
    three_pl = duty_cost * THREE_PL_DUTY_SHARE + quantity * THREE_PL_PER_UNIT
    margin = revenue - vendor_cost - three_pl
    margin_rate = margin / revenue if revenue > 0 else ZERO

    return MarginEstimate(
        customer_revenue=round_money(revenue),
        vendor_cost=round_money(vendor_cost),
        duty_cost=round_money(duty_cost),
        estimated_3pl_cost=round_money(three_pl),
        estimated_margin=round_money(margin),
        estimated_margin_rate=round_rate(margin_rate),
    )


def summarize_order_totals(items: Iterable[Any]) -> OrderTotals:
    """Order revenue, margin and margin rate from persisted line values.

    ``items`` need ``total`` and ``estimated_margin`` attributes.
    """
    items = list(items)
    total = sum_money(item.total for item in items)
    margin = sum_money(item.estimated_margin for item in items)
    rate = round_rate(margin / total) if total > 0 else round_rate(ZERO)
    return OrderTotals(total_amount=total, estimated_margin=margin, estimated_margin_rate=rate)
