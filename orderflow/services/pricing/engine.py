"""
Pure business logic for checkout pricing.

This module contains standalone calculation logic without any
dependencies on database, ORM, or app-specific code.

Rounding policy: every input amount is converted to integer minor units
(paise), rounding half-up. Sums, percentages, caps and the final total are
computed on those integers; the percentage discount is the only step that
produces a fraction and it is rounded half-up back to a whole minor unit.
Results are returned as Decimal major units with two decimal places.
"""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from orderflow.config.business_constants import DiscountType
from orderflow.services.pricing.models import OfferTerms, PricingLine, PricingResult
from orderflow.utils.datetime_utils import ensure_utc, utc_now
from orderflow.utils.exceptions import InvalidOrderLine
from orderflow.utils.money import (
    from_minor_units,
    round_half_up,
    to_decimal,
    to_minor_units,
)


def _validate_line(index: int, line: PricingLine) -> None:
    if not line.is_available:
        raise InvalidOrderLine(
            f"Product {line.product_id if line.product_id is not None else 'unknown'} "
            "is not available"
        )
    if line.quantity < 1:
        raise InvalidOrderLine(f"Line {index + 1}: quantity must be at least 1")
    if line.unit_price < 0 or line.add_on_price < 0:
        raise InvalidOrderLine(f"Line {index + 1}: price cannot be negative")


def _subtotal_minor(lines: Sequence[PricingLine]) -> int:
    if not lines:
        raise InvalidOrderLine("Order must contain at least one line")

    subtotal = 0
    for index, line in enumerate(lines):
        _validate_line(index, line)
        unit = to_minor_units(line.unit_price) + to_minor_units(line.add_on_price)
        subtotal += unit * line.quantity
    return subtotal


def _as_terms(offer: Any) -> OfferTerms | None:
    if offer is None or isinstance(offer, OfferTerms):
        return offer
    return OfferTerms.model_validate(offer)


def _is_applicable_minor(terms: OfferTerms, subtotal_minor: int, now: datetime) -> bool:
    if not terms.is_active:
        return False

    now = ensure_utc(now)
    start = ensure_utc(terms.start_date)
    end = ensure_utc(terms.end_date)
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False

    return subtotal_minor >= to_minor_units(terms.min_order_amount)


def _discount_minor(terms: OfferTerms, subtotal_minor: int) -> int:
    if terms.discount_type == DiscountType.PERCENTAGE:
        raw = Decimal(subtotal_minor) * terms.discount_value / 100
        discount = int(round_half_up(raw))
        cap = to_minor_units(terms.max_discount_amount)
        if cap > 0:
            discount = min(discount, cap)
        return discount

    # Flat discounts are not clamped against the subtotal; total floors at 0
    return to_minor_units(terms.discount_value)


def compute_subtotal(lines: Sequence[PricingLine]) -> Decimal:
    """
    Sum of (unit_price + add_on_price) * quantity over all lines.

    Args:
        lines: Resolved cart lines

    Returns:
        Subtotal in major units

    Raises:
        InvalidOrderLine: Empty lines, unavailable product, bad quantity or price
    """
    return from_minor_units(_subtotal_minor(lines))


def is_offer_applicable(
    offer: Any,
    subtotal: Decimal,
    now: datetime | None = None,
) -> bool:
    """
    Check whether an offer applies to a subtotal at ``now``.

    An offer applies when it is active, ``now`` lies within
    [start_date, end_date] (a missing bound is open) and the subtotal
    reaches ``min_order_amount``.

    Args:
        offer: Offer row or OfferTerms, None means no offer
        subtotal: Order subtotal
        now: Evaluation time (defaults to current UTC time)

    Returns:
        True if the offer applies
    """
    terms = _as_terms(offer)
    if terms is None:
        return False
    return _is_applicable_minor(terms, to_minor_units(subtotal), now or utc_now())


def compute_discount(offer: Any, subtotal: Decimal) -> Decimal:
    """
    Discount an eligible offer grants on ``subtotal``.

    Percentage: subtotal * value / 100, clamped to max_discount_amount
    when that cap is positive. Flat: discount_value as is.

    Example:
        >>> terms = OfferTerms(code="SAVE20", discount_type="percentage",
        ...                    discount_value=Decimal("20"),
        ...                    max_discount_amount=Decimal("500"))
        >>> compute_discount(terms, Decimal("10000"))
        Decimal('500.00')
    """
    terms = _as_terms(offer)
    if terms is None:
        return Decimal("0.00")
    return from_minor_units(_discount_minor(terms, to_minor_units(subtotal)))


def compute_order_total(
    lines: Sequence[PricingLine],
    offer: Any = None,
    now: datetime | None = None,
) -> PricingResult:
    """
    Price a checkout.

    An ineligible offer is not an error: it simply yields no discount.

    Args:
        lines: Non-empty sequence of resolved cart lines
        offer: Optional Offer row or OfferTerms
        now: Evaluation time (defaults to current UTC time)

    Returns:
        PricingResult with subtotal, discount and total

    Raises:
        InvalidOrderLine: Empty lines or an unavailable/invalid line

    Example:
        >>> lines = [
        ...     PricingLine(unit_price=Decimal("400"), quantity=1),
        ...     PricingLine(unit_price=Decimal("300"), quantity=2),
        ... ]
        >>> terms = OfferTerms(code="FLAT150", discount_type="flat",
        ...                    discount_value=Decimal("150"),
        ...                    min_order_amount=Decimal("500"))
        >>> compute_order_total(lines, terms).total
        Decimal('850.00')
    """
    subtotal = _subtotal_minor(lines)
    terms = _as_terms(offer)

    discount = 0
    offer_code = None
    if terms is not None and _is_applicable_minor(terms, subtotal, now or utc_now()):
        discount = _discount_minor(terms, subtotal)
        offer_code = terms.code

    total = max(0, subtotal - discount)

    return PricingResult(
        subtotal=from_minor_units(subtotal),
        discount=from_minor_units(discount),
        total=from_minor_units(total),
        offer_code=offer_code,
    )


def compute_final_price(
    selling_price: Decimal | int | float | str,
    discount_percent: Decimal | int | float | str = Decimal("0"),
) -> Decimal:
    """
    Product price after its own discount, rounded half-up to whole units.

    Example:
        >>> compute_final_price(Decimal("999"), Decimal("15"))
        Decimal('849')
    """
    price = to_decimal(selling_price)
    percent = to_decimal(discount_percent)
    if price <= 0:
        return Decimal("0")
    if percent < 0:
        percent = Decimal("0")
    if percent > 100:
        percent = Decimal("100")
    return round_half_up(price * (100 - percent) / 100)
