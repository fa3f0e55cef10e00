"""Tariff rate resolution: default rates, origin surcharge and the lookup ladder.

Resolution never fails: when the rate table has nothing for a key, the computed
default is returned, so a duty estimate can always be produced.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from src.modules.tariff.classifier import normalize_tariff_key
from src.modules.tariff.constants import (
    BASE_RATE_TABLE,
    CHINA_SURCHARGE,
    COUNTRY_SEGMENT_PATTERN,
    DEFAULT_ORIGIN_COUNTRY,
    DEFAULT_STALE_AFTER_DAYS,
    FABRIC_MIXED,
    FALLBACK_BASE_RATE,
    FALLBACK_BASE_RATES,
    KEY_SEPARATOR,
    MAX_RATE,
    MIN_RATE,
    PRODUCT_TYPE_FALLBACK,
    RATE_QUANTUM,
)


@dataclass(frozen=True)
class TariffResolution:
    """Outcome of a rate lookup; ``matched_key`` is None for a computed default."""

    rate: Decimal
    matched_key: str | None


# ---------------------------------------------------------------------------
# Rate arithmetic
# ---------------------------------------------------------------------------


def clamp_rate(value: Decimal) -> Decimal:
    return max(MIN_RATE, min(MAX_RATE, value))


def round_rate(value: Decimal) -> Decimal:
    return value.quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def _country_or_default(country: str | None) -> str:
    return (country or DEFAULT_ORIGIN_COUNTRY).upper()


def default_base_rate(base_key: str) -> Decimal:
    """Base ad-valorem rate for a ``"{category} | {fabric}"`` key."""
    parts = normalize_tariff_key(base_key).split(KEY_SEPARATOR)
    category = parts[0] if parts and parts[0] else PRODUCT_TYPE_FALLBACK
    fabric = parts[1] if len(parts) > 1 and parts[1] else FABRIC_MIXED

    for substrings, bucket_rates, other_rate in BASE_RATE_TABLE:
        if any(token in category for token in substrings):
            return bucket_rates.get(fabric, other_rate)
    return FALLBACK_BASE_RATES.get(fabric, FALLBACK_BASE_RATE)


def apply_origin_surcharge(base_rate: Decimal, country: str | None) -> Decimal:
    """Add the China surcharge when applicable, then clamp to [0, 1] and round."""
    rate = Decimal(str(base_rate))
    if _country_or_default(country) == "CN":
        rate += CHINA_SURCHARGE
    return round_rate(clamp_rate(rate))


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


def parse_country_from_key(tariff_key: str) -> tuple[str | None, str]:
    """Split an optional leading two-letter country segment off a key.

    ``"vn | tee | cotton-rich"`` -> ``("VN", "tee | cotton-rich")``;
    keys without a country segment come back with ``None``.
    """
    normalized = normalize_tariff_key(tariff_key)
    parts = normalized.split(KEY_SEPARATOR)
    if len(parts) >= 2 and COUNTRY_SEGMENT_PATTERN.match(parts[0]):
        return parts[0].upper(), KEY_SEPARATOR.join(parts[1:])
    return None, normalized


def country_key(base_key: str, country: str | None) -> str:
    prefix = _country_or_default(country).lower()
    return f"{prefix}{KEY_SEPARATOR}{normalize_tariff_key(base_key)}"


def build_lookup_keys(base_key: str, country: str | None) -> list[str]:
    """Keys to probe in the rate table, most specific first."""
    keys = [country_key(base_key, country), normalize_tariff_key(base_key)]
    return list(dict.fromkeys(keys))


def default_tariff_rate_by_key(tariff_key: str, origin_country: str | None = None) -> Decimal:
    """Computed rate for a (possibly country-prefixed) key.

    An explicit ``origin_country`` wins over the key's own country segment;
    with neither, China is assumed.
    """
    parsed_country, base_key = parse_country_from_key(tariff_key)
    country = origin_country or parsed_country or DEFAULT_ORIGIN_COUNTRY
    return apply_origin_surcharge(default_base_rate(base_key), country)


# ---------------------------------------------------------------------------
# Lookup ladder
# ---------------------------------------------------------------------------


def resolve_tariff_rate(
    base_key: str,
    origin_country: str | None,
    rate_map: Mapping[str, Decimal],
) -> TariffResolution:
    """Resolve the effective duty rate for ``base_key``.

    1. ``"{country} | {key}"`` in the table: used as stored (clamped, rounded).
    2. ``"{key}"`` in the table: the origin surcharge is applied on top.
    3. Otherwise the computed default for the key and origin.
    """
    normalized = normalize_tariff_key(base_key)
    country = _country_or_default(origin_country)

    specific = country_key(normalized, country)
    if specific in rate_map:
        return TariffResolution(
            rate=round_rate(clamp_rate(Decimal(str(rate_map[specific])))),
            matched_key=specific,
        )

    if normalized in rate_map:
        return TariffResolution(
            rate=apply_origin_surcharge(Decimal(str(rate_map[normalized])), country),
            matched_key=normalized,
        )

    return TariffResolution(
        rate=default_tariff_rate_by_key(normalized, country),
        matched_key=None,
    )


def is_stale(
    updated_at: datetime | None,
    now: datetime,
    max_age: timedelta = timedelta(days=DEFAULT_STALE_AFTER_DAYS),
) -> bool:
    """True when a row last written at ``updated_at`` is older than ``max_age``.

    Naive timestamps are read as UTC. A row with no timestamp is stale.
    """
    if updated_at is None:
        return True
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now - updated_at > max_age
