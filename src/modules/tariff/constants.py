"""Tariff constants: origin keywords, classification cascades, base duty rates."""

from __future__ import annotations

import re
from decimal import Decimal

# ── Origin country ───────────────────────────────────────────────────────────

DEFAULT_ORIGIN_COUNTRY = "CN"

# Flat surcharge added on top of the base rate for goods of Chinese origin
CHINA_SURCHARGE = Decimal("0.075")

# Scanned in order against " {supplier name} {supplier address}", lowercased.
# First country with any matching keyword wins.
COUNTRY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("CN", (" china", " prc", "shanghai", "guangdong", "fujian", "zhejiang", "shenzhen")),
    ("VN", (" vietnam", "ho chi minh", "hanoi")),
    ("BD", (" bangladesh", "dhaka")),
    ("IN", (" india", "mumbai", "delhi")),
    ("PK", (" pakistan", "karachi")),
    ("ID", (" indonesia", "jakarta")),
    ("KH", (" cambodia", "phnom penh")),
)

# ── Fabric buckets ───────────────────────────────────────────────────────────

FABRIC_COTTON_RICH = "cotton-rich"
FABRIC_POLY_RICH = "poly-rich"
FABRIC_MIXED = "mixed"

FABRIC_RATIO_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*%?\s*(cotton|polyester|poly)")
COTTON_KEYWORD_PATTERN = re.compile(r"\bcotton\b|cotton-rich")
POLY_KEYWORD_PATTERN = re.compile(r"\bpoly\b|polyester|poly-rich")

# Share (in percent) at which a fibre counts as the majority
FABRIC_MAJORITY_THRESHOLD = Decimal("50")

# ── Classification cascades (first match wins) ───────────────────────────────

LIFECYCLE_GENERAL = "general"

LIFECYCLE_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("junior", re.compile(r"\bjunior\b|\bjr\b")),
    ("kids", re.compile(r"\bkid\b|\byouth\b|\btoddler\b|\binfant\b|\bgirl\b|\bboy\b")),
    ("mens", re.compile(r"\bmen\b|\bmens\b|\bmale\b")),
    ("womens", re.compile(r"\bwomen\b|\bwomens\b|\blady\b|\bladies\b")),
)

PRODUCT_TYPE_FALLBACK = "apparel"

PRODUCT_TYPE_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("tee", re.compile(r"\btee\b|t[\s-]?shirt|skimmer")),
    ("top", re.compile(r"\bhoodie\b|sweatshirt|sweater|fleece")),
    ("tank", re.compile(r"\btank\b")),
    ("dress", re.compile(r"\bdress\b")),
    ("leggings", re.compile(r"\blegging\b")),
    ("shorts", re.compile(r"\bshort\b")),
    ("pants", re.compile(r"\bpant\b|\btrouser\b")),
    ("jacket", re.compile(r"\bjacket\b|outerwear|coat")),
    ("accessory", re.compile(r"\bhat\b|\bbag\b|\bsock\b|\bcap\b")),
)

# ── Tariff keys ──────────────────────────────────────────────────────────────

KEY_SEPARATOR = " | "
COUNTRY_SEGMENT_PATTERN = re.compile(r"^[a-z]{2}$")

# ── Base ad-valorem rates ────────────────────────────────────────────────────
# (category substrings, per-bucket rates, rate for any other bucket).
# Rows are checked in order against the category half of the key.

BASE_RATE_TABLE: tuple[tuple[tuple[str, ...], dict[str, Decimal], Decimal], ...] = (
    (
        ("tee", "tank"),
        {FABRIC_COTTON_RICH: Decimal("0.25"), FABRIC_POLY_RICH: Decimal("0.22")},
        Decimal("0.24"),
    ),
    (
        ("top", "hoodie", "sweatshirt"),
        {FABRIC_COTTON_RICH: Decimal("0.26"), FABRIC_POLY_RICH: Decimal("0.23")},
        Decimal("0.25"),
    ),
    (
        ("dress", "jacket"),
        {FABRIC_POLY_RICH: Decimal("0.24")},
        Decimal("0.26"),
    ),
    (
        ("pants", "shorts", "leggings"),
        {FABRIC_POLY_RICH: Decimal("0.21")},
        Decimal("0.24"),
    ),
    (("accessory",), {}, Decimal("0.15")),
)

FALLBACK_BASE_RATES: dict[str, Decimal] = {
    FABRIC_POLY_RICH: Decimal("0.22"),
    FABRIC_COTTON_RICH: Decimal("0.24"),
}
FALLBACK_BASE_RATE = Decimal("0.23")

# ── Rate bounds & rounding ───────────────────────────────────────────────────

MIN_RATE = Decimal("0")
MAX_RATE = Decimal("1")
RATE_QUANTUM = Decimal("0.0001")

# Synced rows older than this are recomputed on the next listing
DEFAULT_STALE_AFTER_DAYS = 30
