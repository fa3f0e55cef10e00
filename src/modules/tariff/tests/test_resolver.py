"""Tests for tariff rate resolution: base rates, surcharge and lookup ladder."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.modules.tariff.resolver import (
    apply_origin_surcharge,
    build_lookup_keys,
    clamp_rate,
    default_base_rate,
    default_tariff_rate_by_key,
    is_stale,
    parse_country_from_key,
    resolve_tariff_rate,
)


class TestDefaultBaseRate:
    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("tee | cotton-rich", "0.25"),
            ("mens tee | poly-rich", "0.22"),
            ("tank | mixed", "0.24"),
            ("kids top | cotton-rich", "0.26"),
            ("dress | poly-rich", "0.24"),
            ("jacket | cotton-rich", "0.26"),
            ("shorts | poly-rich", "0.21"),
            ("pants | mixed", "0.24"),
            ("accessory | cotton-rich", "0.15"),
            ("apparel | poly-rich", "0.22"),
            ("apparel | cotton-rich", "0.24"),
            ("apparel | mixed", "0.23"),
        ],
    )
    def test_table(self, key, expected) -> None:
        assert default_base_rate(key) == Decimal(expected)

    def test_empty_key_uses_generic_fallback(self) -> None:
        assert default_base_rate("") == Decimal("0.23")


class TestApplyOriginSurcharge:
    def test_china_adds_surcharge(self) -> None:
        assert apply_origin_surcharge(Decimal("0.25"), "CN") == Decimal("0.3250")

    def test_missing_country_means_china(self) -> None:
        assert apply_origin_surcharge(Decimal("0.25"), None) == Decimal("0.3250")

    def test_other_country_unchanged(self) -> None:
        assert apply_origin_surcharge(Decimal("0.25"), "vn") == Decimal("0.2500")

    def test_rounds_half_up_to_four_places(self) -> None:
        assert apply_origin_surcharge(Decimal("0.12345"), "VN") == Decimal("0.1235")

    def test_clamped_to_one(self) -> None:
        assert apply_origin_surcharge(Decimal("0.98"), "CN") == Decimal("1.0000")

    def test_clamp_bounds(self) -> None:
        assert clamp_rate(Decimal("-0.2")) == Decimal("0")
        assert clamp_rate(Decimal("3")) == Decimal("1")


class TestKeys:
    def test_parse_country_prefix(self) -> None:
        assert parse_country_from_key("vn | tee | cotton-rich") == ("VN", "tee | cotton-rich")

    def test_parse_without_country(self) -> None:
        assert parse_country_from_key("kids tee|mixed") == (None, "kids tee | mixed")

    def test_lookup_keys_most_specific_first(self) -> None:
        assert build_lookup_keys("tee|cotton-rich", "BD") == [
            "bd | tee | cotton-rich",
            "tee | cotton-rich",
        ]

    def test_default_rate_reads_country_from_key(self) -> None:
        assert default_tariff_rate_by_key("vn | tee | cotton-rich") == Decimal("0.2500")
        assert default_tariff_rate_by_key("tee | cotton-rich") == Decimal("0.3250")

    def test_explicit_country_overrides_key(self) -> None:
        assert default_tariff_rate_by_key("cn | tee | cotton-rich", "VN") == Decimal("0.2500")


class TestResolveTariffRate:
    def test_country_entry_beats_base_entry(self) -> None:
        rate_map = {
            "cn | tee | cotton-rich": Decimal("0.30"),
            "tee | cotton-rich": Decimal("0.20"),
        }
        resolution = resolve_tariff_rate("tee|cotton-rich", "CN", rate_map)
        assert resolution.rate == Decimal("0.3000")
        assert resolution.matched_key == "cn | tee | cotton-rich"

    def test_base_entry_gets_surcharge(self) -> None:
        resolution = resolve_tariff_rate("tee | cotton-rich", "CN", {"tee | cotton-rich": Decimal("0.20")})
        assert resolution.rate == Decimal("0.2750")
        assert resolution.matched_key == "tee | cotton-rich"

    def test_base_entry_without_surcharge_outside_china(self) -> None:
        resolution = resolve_tariff_rate("tee | cotton-rich", "VN", {"tee | cotton-rich": Decimal("0.20")})
        assert resolution.rate == Decimal("0.2000")

    def test_country_entry_used_as_stored(self) -> None:
        resolution = resolve_tariff_rate("tee | cotton-rich", "CN", {"cn | tee | cotton-rich": 0.1})
        assert resolution.rate == Decimal("0.1000")

    def test_table_values_are_clamped(self) -> None:
        high = resolve_tariff_rate("tee | mixed", "VN", {"vn | tee | mixed": Decimal("1.7")})
        low = resolve_tariff_rate("tee | mixed", "VN", {"vn | tee | mixed": Decimal("-0.3")})
        assert high.rate == Decimal("1.0000")
        assert low.rate == Decimal("0.0000")

    def test_computed_default_when_absent(self) -> None:
        resolution = resolve_tariff_rate("accessory | mixed", "CN", {})
        assert resolution.rate == Decimal("0.2250")
        assert resolution.matched_key is None

    def test_other_country_entry_ignored(self) -> None:
        resolution = resolve_tariff_rate("tee | cotton-rich", "VN", {"cn | tee | cotton-rich": Decimal("0.5")})
        assert resolution.rate == Decimal("0.2500")

    def test_repeatable(self) -> None:
        rate_map = {"tee | cotton-rich": Decimal("0.20")}
        first = resolve_tariff_rate("tee | cotton-rich", "CN", rate_map)
        second = resolve_tariff_rate("tee | cotton-rich", "CN", rate_map)
        assert first == second


class TestIsStale:
    def setup_method(self) -> None:
        self.now = datetime(2026, 3, 1, tzinfo=UTC)

    def test_old_row_is_stale(self) -> None:
        assert is_stale(self.now - timedelta(days=31), self.now)

    def test_recent_row_is_fresh(self) -> None:
        assert not is_stale(self.now - timedelta(days=29), self.now)

    def test_missing_timestamp_is_stale(self) -> None:
        assert is_stale(None, self.now)

    def test_naive_timestamp_read_as_utc(self) -> None:
        assert not is_stale(datetime(2026, 2, 20), self.now)
