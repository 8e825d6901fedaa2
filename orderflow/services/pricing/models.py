"""Pydantic models for the pricing engine."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from orderflow.config.business_constants import DiscountType


class PricingLine(BaseModel):
    """One resolved cart line.

    Prices are the values captured for this checkout; the engine never
    looks them up again.
    """

    model_config = ConfigDict(frozen=True)

    product_id: int | None = Field(default=None, description="Product reference")
    unit_price: Decimal = Field(..., description="Captured unit price")
    quantity: int = Field(..., description="Units ordered")
    add_on_price: Decimal = Field(default=Decimal("0"), description="Add-on price per unit")
    is_available: bool = Field(
        default=True,
        description="False when the product is missing or inactive",
    )


class OfferTerms(BaseModel):
    """Discount terms of an offer.

    Built from an ``Offer`` row with ``OfferTerms.model_validate(offer)``.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    code: str = Field(..., description="Offer code")
    discount_type: DiscountType = Field(..., description="percentage or flat")
    discount_value: Decimal = Field(..., ge=0, description="Percent or flat amount")
    min_order_amount: Decimal = Field(default=Decimal("0"), ge=0)
    max_discount_amount: Decimal = Field(default=Decimal("0"), ge=0)
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("min_order_amount", "max_discount_amount", mode="before")
    @classmethod
    def none_as_zero(cls, v):
        return Decimal("0") if v is None else v


class PricingResult(BaseModel):
    """Result of pricing a checkout."""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = Field(..., ge=0, description="Sum of line totals")
    discount: Decimal = Field(..., ge=0, description="Discount applied")
    total: Decimal = Field(..., ge=0, description="Amount payable")
    offer_code: str | None = Field(
        default=None, description="Code of the applied offer, None if not applied"
    )

    @property
    def offer_applied(self) -> bool:
        """Whether an offer contributed to this result."""
        return self.offer_code is not None

    @property
    def savings_percent(self) -> Decimal:
        """Discount as percentage of subtotal (0 for an empty subtotal)."""
        if self.subtotal <= 0:
            return Decimal("0")
        return (self.discount * 100 / self.subtotal).quantize(Decimal("0.01"))
