"""Tariff classification: derive a duty category key from free-text item fields.

Every function here is pure and total: unknown or empty input falls through to
the catch-all bucket of its cascade rather than raising.
"""

from __future__ import annotations

from decimal import Decimal

from src.modules.tariff.constants import (
    COTTON_KEYWORD_PATTERN,
    COUNTRY_KEYWORDS,
    DEFAULT_ORIGIN_COUNTRY,
    FABRIC_COTTON_RICH,
    FABRIC_MAJORITY_THRESHOLD,
    FABRIC_MIXED,
    FABRIC_POLY_RICH,
    FABRIC_RATIO_PATTERN,
    KEY_SEPARATOR,
    LIFECYCLE_GENERAL,
    LIFECYCLE_RULES,
    POLY_KEYWORD_PATTERN,
    PRODUCT_TYPE_FALLBACK,
    PRODUCT_TYPE_RULES,
)


def normalize_key(text: str | None) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return " ".join((text or "").lower().split())


def normalize_tariff_key(key: str | None) -> str:
    """Canonical form of a rate-table key: ``"cn | tee | cotton-rich"``.

    Segments are normalized individually and rejoined with ``" | "``, so
    ``"CN|Tee |  cotton-rich"`` and ``"cn | tee | cotton-rich"`` compare equal.
    """
    segments = (normalize_key(segment) for segment in (key or "").split("|"))
    return KEY_SEPARATOR.join(segment for segment in segments if segment)


def infer_origin_country(
    supplier_name: str | None, supplier_address: str | None
) -> str:
    """Guess the ISO2 origin country from the supplier's name and address."""
    haystack = f" {supplier_name or ''} {supplier_address or ''}".lower()
    for country, keywords in COUNTRY_KEYWORDS:
        if any(keyword in haystack for keyword in keywords):
            return country
    return DEFAULT_ORIGIN_COUNTRY


def detect_fabric_bucket(material: str | None) -> str:
    """Bucket a material description into cotton-rich, poly-rich or mixed.

    Explicit percentages ("60% cotton 40% polyester") are summed per fibre and
    decide first; keyword presence is the fallback.
    """
    text = (material or "").lower()
    if not text.strip():
        return FABRIC_MIXED

    cotton = Decimal("0")
    poly = Decimal("0")
    for ratio, fabric in FABRIC_RATIO_PATTERN.findall(text):
        if "cotton" in fabric:
            cotton += Decimal(ratio)
        if "poly" in fabric:
            poly += Decimal(ratio)

    if cotton > 0 or poly > 0:
        if cotton >= poly and cotton >= FABRIC_MAJORITY_THRESHOLD:
            return FABRIC_COTTON_RICH
        if poly > cotton and poly >= FABRIC_MAJORITY_THRESHOLD:
            return FABRIC_POLY_RICH
        if cotton > poly:
            return FABRIC_COTTON_RICH
        if poly > cotton:
            return FABRIC_POLY_RICH

    has_cotton = COTTON_KEYWORD_PATTERN.search(text) is not None
    has_poly = POLY_KEYWORD_PATTERN.search(text) is not None
    if has_cotton and not has_poly:
        return FABRIC_COTTON_RICH
    if has_poly and not has_cotton:
        return FABRIC_POLY_RICH
    return FABRIC_MIXED


def classify_lifecycle_group(description: str | None, collection: str | None) -> str:
    combined = f"{normalize_key(description)} {normalize_key(collection)}"
    for group, pattern in LIFECYCLE_RULES:
        if pattern.search(combined):
            return group
    return LIFECYCLE_GENERAL


def classify_product_type(description: str | None) -> str:
    text = normalize_key(description)
    for product_type, pattern in PRODUCT_TYPE_RULES:
        if pattern.search(text):
            return product_type
    return PRODUCT_TYPE_FALLBACK


def derive_tariff_key(
    description: str | None,
    collection: str | None,
    material: str | None,
) -> str:
    """Compose ``"{lifecycle} {type} | {fabric}"``.

    The lifecycle prefix is omitted for the ``general`` group, e.g.
    ``"tee | cotton-rich"`` vs ``"kids tee | cotton-rich"``.
    """
    lifecycle = classify_lifecycle_group(description, collection)
    product_type = classify_product_type(description)
    fabric = detect_fabric_bucket(material)

    category = product_type
    if lifecycle != LIFECYCLE_GENERAL:
        category = f"{lifecycle} {product_type}"
    return normalize_tariff_key(f"{category}{KEY_SEPARATOR}{fabric}")