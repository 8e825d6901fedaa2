"""
Unit tests for money helpers.

Tests cover:
- Decimal conversion without float artifacts
- Minor unit conversion and half-up rounding
"""

from decimal import Decimal

import pytest

from orderflow.utils.money import (
    from_minor_units,
    quantize_money,
    round_half_up,
    to_decimal,
    to_minor_units,
)


class TestToDecimal:
    """Test Decimal conversion."""

    def test_float_uses_string_repr(self):
        """0.1 must not become 0.1000000000000000055511151231257827."""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_decimal_passthrough(self):
        value = Decimal("12.34")
        assert to_decimal(value) is value

    def test_int_and_string(self):
        assert to_decimal(5) == Decimal("5")
        assert to_decimal("7.25") == Decimal("7.25")


class TestMinorUnits:
    """Test paise conversion."""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            (Decimal("12.345"), 1235),
            (Decimal("12.344"), 1234),
            (Decimal("0.005"), 1),
            ("850", 85000),
            (0.29, 29),
        ],
    )
    def test_to_minor_units(self, amount, expected):
        assert to_minor_units(amount) == expected

    def test_from_minor_units_has_two_places(self):
        result = from_minor_units(85000)

        assert result == Decimal("850")
        assert str(result) == "850.00"


class TestRounding:
    """Test half-up rounding helpers."""

    def test_round_half_up_whole_units(self):
        assert round_half_up(Decimal("2.5")) == Decimal("3")
        assert round_half_up(Decimal("-2.5")) == Decimal("-3")

    def test_quantize_money(self):
        assert quantize_money("10.005") == Decimal("10.01")
        assert quantize_money(3) == Decimal("3.00")
