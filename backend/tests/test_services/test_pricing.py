"""
Tests for price change helpers

Author: TM3
Date: 2026-02-09
"""
import pytest

from markettech.services.pricing import (
    calculate_discount_percentage, calculate_increase_percentage, get_price_change,
)


class TestPriceChange:

    @pytest.mark.parametrize("previous,current,expected", [
        (100, 75, {"type": "discount", "percentage": 25}),
        (100, 125, {"type": "increase", "percentage": 25}),
        (100, 100, {"type": "none", "percentage": 0}),
        (None, 100, {"type": "none", "percentage": 0}),
        ("", 100, {"type": "none", "percentage": 0}),
        ("199.90", "149.90", {"type": "discount", "percentage": 25}),
    ])
    def test_get_price_change(self, previous, current, expected):
        assert get_price_change(previous, current) == expected

    def test_rounds_half_up(self):
        # 2.5% off
        assert calculate_discount_percentage(200, 195) == 3

    def test_non_positive_prices_give_zero(self):
        assert calculate_discount_percentage(0, 10) == 0
        assert calculate_discount_percentage(100, -1) == 0
        assert calculate_increase_percentage(-5, 10) == 0

    def test_garbage_is_ignored(self):
        assert get_price_change("abc", 10) == {"type": "none", "percentage": 0}
