"""Tests for core.primitives.amounts."""

from decimal import Decimal

import pytest

from core.errors import ValidationError
from core.primitives.amounts import clamp_percent, money, quantity, round2, to_decimal


class TestAmounts:
    @pytest.mark.parametrize("value, expected", [
        ("10.005", Decimal("10.01")),
        ("10.004", Decimal("10.00")),
        (0.1, Decimal("0.10")),
        (-2.345, Decimal("-2.35")),
    ])
    def test_round2_half_up(self, value, expected):
        assert round2(value) == expected

    def test_quantity_has_three_places(self):
        assert str(quantity("1.2345")) == "1.235"

    @pytest.mark.parametrize("bad", [None, True, "abc", "NaN", "Infinity", [1]])
    def test_rejects_non_numbers(self, bad):
        with pytest.raises(ValidationError):
            to_decimal(bad)

    def test_money_error_names_field(self):
        with pytest.raises(ValidationError, match="price"):
            money("x", "price")

    @pytest.mark.parametrize("value, expected", [
        (150, Decimal("100")), (-10, Decimal("0")), (50, Decimal("50")),
    ])
    def test_clamp_percent(self, value, expected):
        assert clamp_percent(value) == expected
