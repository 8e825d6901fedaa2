"""
Pricing package.

Pure checkout arithmetic with no database dependencies:
- models: pydantic value objects (PricingLine, OfferTerms, PricingResult)
- engine: compute_order_total, is_offer_applicable, compute_final_price
"""

from orderflow.services.pricing.engine import (
    compute_discount,
    compute_final_price,
    compute_order_total,
    compute_subtotal,
    is_offer_applicable,
)
from orderflow.services.pricing.models import OfferTerms, PricingLine, PricingResult


__all__ = [
    "compute_order_total",
    "compute_subtotal",
    "compute_discount",
    "compute_final_price",
    "is_offer_applicable",
    "OfferTerms",
    "PricingLine",
    "PricingResult",
]
