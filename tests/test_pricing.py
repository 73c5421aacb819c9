"""Tests for pricing.py — candidate field probing and monthly derivation."""

import pytest

from tariff_harvester.pricing import (
    DEFAULT_MONTHLY_PRICE,
    DEFAULT_UPFRONT_PRICE,
    resolve_from_variants_response,
    resolve_pricing,
    round_pence,
)


class TestResolvePricing:
    def test_total_cost_and_upfront(self):
        pricing = resolve_pricing({"totalDeviceCost": 1250, "minimumUpfrontPrice": 50})
        assert pricing.upfront_price == 50
        assert pricing.monthly_price == 33.33
        assert pricing.monthly_source == "totalDeviceCost"

    def test_empty_variant_uses_defaults(self):
        pricing = resolve_pricing({})
        assert pricing.upfront_price == DEFAULT_UPFRONT_PRICE == 50
        assert pricing.monthly_price == DEFAULT_MONTHLY_PRICE == 29

    def test_none_uses_defaults(self):
        pricing = resolve_pricing(None)
        assert (pricing.upfront_price, pricing.monthly_price) == (50, 29)

    def test_direct_monthly(self):
        pricing = resolve_pricing({"deviceMonthlyPrice": 25})
        assert pricing.monthly_price == 25
        assert pricing.upfront_price == 50

    def test_zero_upfront_counts(self):
        pricing = resolve_pricing({"minimumUpfrontPrice": 0, "upfrontPrice": 99, "totalDeviceCost": 720})
        assert pricing.upfront_price == 0
        assert pricing.monthly_price == 20

    def test_upfront_candidate_order(self):
        assert resolve_pricing({"upfront": 5, "minUpfront": 10}).upfront_price == 10
        assert resolve_pricing({"upfront": 5}).upfront_price == 5

    def test_cost_candidate_order(self):
        pricing = resolve_pricing({"price": 86, "cost": 122, "upfront": 14})
        assert pricing.monthly_source == "cost"
        assert pricing.monthly_price == 3

    def test_cost_uses_default_upfront(self):
        assert resolve_pricing({"deviceCost": 410}).monthly_price == 10

    def test_cost_beats_direct_monthly(self):
        pricing = resolve_pricing({"deviceMonthlyPrice": 25, "totalCost": 86})
        assert pricing.monthly_price == 1
        assert pricing.monthly_source == "totalCost"

    def test_monthly_candidate_order(self):
        assert resolve_pricing({"monthly": 3, "monthlyPrice": 7}).monthly_price == 7

    def test_null_field_is_absent(self):
        pricing = resolve_pricing({"minimumUpfrontPrice": None, "upfrontPrice": 30})
        assert pricing.upfront_price == 30

    def test_non_numeric_cost_falls_through(self):
        pricing = resolve_pricing({"totalDeviceCost": "n/a", "monthlyPrice": 12})
        assert pricing.monthly_price == 12


class TestResolveFromVariantsResponse:
    def test_first_variant_used(self):
        data = {"variants": [{"deviceMonthlyPrice": 11}, {"deviceMonthlyPrice": 22}]}
        assert resolve_from_variants_response(data).monthly_price == 11

    @pytest.mark.parametrize("data", [{}, {"variants": []}, {"variants": None}, [], None])
    def test_missing_variants_use_defaults(self, data):
        pricing = resolve_from_variants_response(data)
        assert (pricing.upfront_price, pricing.monthly_price) == (50, 29)


class TestRoundPence:
    def test_rounds_down(self):
        assert round_pence(33.3333) == 33.33

    def test_half_rounds_up(self):
        assert round_pence(0.125) == 0.13

    def test_negative_half_rounds_up(self):
        assert round_pence(-0.125) == -0.12
