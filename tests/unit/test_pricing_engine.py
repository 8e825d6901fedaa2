"""
Unit tests for checkout pricing.

Tests cover:
- Subtotal computation and line validation
- Offer applicability (active flag, window, minimum amount)
- Percentage and flat discounts, cap enforcement
- Non-negative totals
- Product final price rounding
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from orderflow.config.business_constants import DiscountType
from orderflow.services.pricing import (
    OfferTerms,
    PricingLine,
    compute_discount,
    compute_final_price,
    compute_order_total,
    compute_subtotal,
    is_offer_applicable,
)
from orderflow.utils.exceptions import InvalidOrderLine


NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def _lines(*pairs):
    return [PricingLine(unit_price=Decimal(p), quantity=q) for p, q in pairs]


def _percentage(value, cap="0", minimum="0", **kwargs):
    return OfferTerms(
        code="SAVE",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal(value),
        max_discount_amount=Decimal(cap),
        min_order_amount=Decimal(minimum),
        **kwargs,
    )


def _flat(value, minimum="0", **kwargs):
    return OfferTerms(
        code="FLAT",
        discount_type=DiscountType.FLAT,
        discount_value=Decimal(value),
        min_order_amount=Decimal(minimum),
        **kwargs,
    )


class TestSubtotal:
    """Test subtotal computation."""

    def test_two_line_cart(self):
        """400 x 1 + 300 x 2 = 1000."""
        assert compute_subtotal(_lines(("400", 1), ("300", 2))) == Decimal("1000.00")

    def test_add_on_price_counts_per_unit(self):
        """Add-on price is added to every unit."""
        lines = [
            PricingLine(
                unit_price=Decimal("250"), quantity=3, add_on_price=Decimal("49.50")
            )
        ]
        assert compute_subtotal(lines) == Decimal("898.50")

    def test_empty_lines_rejected(self):
        """An empty cart is an invalid order line."""
        with pytest.raises(InvalidOrderLine):
            compute_subtotal([])

    def test_unavailable_line_rejected(self):
        """Missing or inactive products reject the whole order."""
        lines = [
            PricingLine(product_id=7, unit_price=Decimal("100"), quantity=1),
            PricingLine(
                product_id=8,
                unit_price=Decimal("100"),
                quantity=1,
                is_available=False,
            ),
        ]
        with pytest.raises(InvalidOrderLine, match="8"):
            compute_order_total(lines)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, quantity):
        with pytest.raises(InvalidOrderLine):
            compute_subtotal(_lines(("100", quantity)))

    def test_negative_price_rejected(self):
        with pytest.raises(InvalidOrderLine):
            compute_subtotal(_lines(("-1", 1)))


class TestOfferApplicability:
    """Test offer eligibility rules."""

    def test_no_offer(self):
        assert is_offer_applicable(None, Decimal("1000"), NOW) is False

    def test_inactive_offer(self):
        offer = _flat("100", is_active=False)
        assert is_offer_applicable(offer, Decimal("1000"), NOW) is False

    def test_below_minimum(self):
        offer = _flat("100", minimum="500")
        assert is_offer_applicable(offer, Decimal("499.99"), NOW) is False

    def test_minimum_is_inclusive(self):
        offer = _flat("100", minimum="500")
        assert is_offer_applicable(offer, Decimal("500"), NOW) is True

    def test_not_started(self):
        offer = _flat("100", start_date=NOW + timedelta(days=1))
        assert is_offer_applicable(offer, Decimal("1000"), NOW) is False

    def test_expired(self):
        offer = _flat("100", end_date=NOW - timedelta(seconds=1))
        assert is_offer_applicable(offer, Decimal("1000"), NOW) is False

    def test_window_bounds_inclusive(self):
        offer = _flat("100", start_date=NOW, end_date=NOW)
        assert is_offer_applicable(offer, Decimal("1000"), NOW) is True

    def test_naive_dates_treated_as_utc(self):
        """Dates read back from SQLite are naive."""
        offer = _flat(
            "100",
            start_date=datetime(2024, 6, 1),
            end_date=datetime(2024, 6, 30),
        )
        assert is_offer_applicable(offer, Decimal("1000"), NOW) is True


class TestDiscount:
    """Test discount computation."""

    def test_percentage_discount(self):
        assert compute_discount(_percentage("10"), Decimal("1000")) == Decimal("100.00")

    def test_percentage_rounds_half_up_to_paise(self):
        """12.5% of 0.99 = 0.12375 -> 0.12; 15% of 0.10 = 0.015 -> 0.02."""
        assert compute_discount(_percentage("12.5"), Decimal("0.99")) == Decimal("0.12")
        assert compute_discount(_percentage("15"), Decimal("0.10")) == Decimal("0.02")

    def test_cap_enforced(self):
        """20% of 10000 is capped at 500."""
        offer = _percentage("20", cap="500")
        result = compute_order_total(_lines(("10000", 1)), offer, NOW)

        assert result.discount == Decimal("500.00")
        assert result.total == Decimal("9500.00")

    def test_zero_cap_means_uncapped(self):
        offer = _percentage("20", cap="0")
        assert compute_discount(offer, Decimal("10000")) == Decimal("2000.00")

    def test_flat_discount_ignores_cap(self):
        offer = OfferTerms(
            code="FLAT",
            discount_type=DiscountType.FLAT,
            discount_value=Decimal("300"),
            max_discount_amount=Decimal("100"),
        )
        assert compute_discount(offer, Decimal("1000")) == Decimal("300.00")

    def test_percentage_discount_monotonic(self):
        """Larger subtotals never get a smaller percentage discount."""
        offer = _percentage("7.5", cap="250")
        subtotals = [Decimal(s) for s in ("0.01", "10", "99.99", "1000", "3333.33", "5000")]
        discounts = [compute_discount(offer, s) for s in subtotals]

        assert discounts == sorted(discounts)

    def test_flat_discount_constant_once_eligible(self):
        offer = _flat("150", minimum="500")
        totals = [
            compute_order_total(_lines((s, 1)), offer, NOW).discount
            for s in ("500", "900", "5000")
        ]
        assert totals == [Decimal("150.00")] * 3


class TestOrderTotal:
    """Test full checkout pricing."""

    def test_flat_offer_scenario(self):
        """400 x 1 + 300 x 2 with flat 150 over 500 -> 850."""
        offer = _flat("150", minimum="500")
        result = compute_order_total(_lines(("400", 1), ("300", 2)), offer, NOW)

        assert result.subtotal == Decimal("1000.00")
        assert result.discount == Decimal("150.00")
        assert result.total == Decimal("850.00")
        assert result.offer_code == "FLAT"
        assert result.offer_applied is True
        assert result.savings_percent == Decimal("15.00")

    def test_expired_offer_yields_no_discount(self):
        offer = _percentage("50", end_date=NOW - timedelta(days=1))
        result = compute_order_total(_lines(("1000", 1)), offer, NOW)

        assert result.discount == Decimal("0.00")
        assert result.total == result.subtotal
        assert result.offer_code is None
        assert result.offer_applied is False

    def test_flat_discount_larger_than_subtotal(self):
        """Total floors at zero."""
        offer = _flat("1500")
        result = compute_order_total(_lines(("1000", 1)), offer, NOW)

        assert result.discount == Decimal("1500.00")
        assert result.total == Decimal("0.00")

    @pytest.mark.parametrize("value", ["100", "150", "99999"])
    def test_total_never_negative(self, value):
        offer = _percentage(value) if value == "100" else _flat(value)
        result = compute_order_total(_lines(("10", 2)), offer, NOW)

        assert result.total >= 0

    def test_offer_terms_from_mapping(self):
        """Anything with offer attributes validates into OfferTerms."""
        offer = {
            "code": "save10",
            "discount_type": "percentage",
            "discount_value": "10",
            "min_order_amount": None,
            "max_discount_amount": None,
        }
        result = compute_order_total(_lines(("200", 1)), offer, NOW)

        assert result.discount == Decimal("20.00")
        assert result.offer_code == "SAVE10"


class TestFinalPrice:
    """Test product final price."""

    def test_no_discount(self):
        assert compute_final_price(Decimal("500"), Decimal("0")) == Decimal("500")

    def test_rounds_half_up_to_whole_units(self):
        """999 * 0.85 = 849.15 -> 849; 999 * 0.5 = 499.5 -> 500."""
        assert compute_final_price(Decimal("999"), Decimal("15")) == Decimal("849")
        assert compute_final_price(Decimal("999"), Decimal("50")) == Decimal("500")

    def test_percent_clamped(self):
        assert compute_final_price(Decimal("100"), Decimal("150")) == Decimal("0")
        assert compute_final_price(Decimal("100"), Decimal("-5")) == Decimal("100")
