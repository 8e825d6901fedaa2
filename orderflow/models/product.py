"""
Product model.

Catalog entries whose current price is captured onto order lines at
checkout.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from orderflow.models.base import Base
from orderflow.models.types import MoneyType, PercentType
from orderflow.services.pricing.engine import compute_final_price


DEFAULT_ADD_ON = {"name": "None", "price": "0", "is_default": True}


class Product(Base):
    """
    Product entity.

    Attributes:
        id: Primary key
        name: Display name
        selling_price: Price before product-level discount
        discount_percent: Product-level discount (0-100)
        final_price: selling_price after discount, whole currency units
        stock: Units in stock
        add_ons: Optional extras, list of {name, price, is_default}
        sizes: Available sizes
        colors: Available colors
        is_active: Whether the product can be ordered
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint(
            'selling_price >= 0', name='check_product_price_non_negative'
        ),
        CheckConstraint(
            'discount_percent >= 0 AND discount_percent <= 100',
            name='check_product_discount_range',
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    selling_price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(
        PercentType, default=Decimal("0"), nullable=False
    )
    final_price: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        nullable=False,
        comment="selling_price * (1 - discount_percent/100), rounded half-up",
    )

    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    add_ons: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, default=list, nullable=False
    )
    sizes: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    colors: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False, index=True
    )

    def get_add_on_price(self, add_on_name: str | None) -> Decimal | None:
        """
        Price of the named add-on.

        Args:
            add_on_name: Add-on name, None means no add-on

        Returns:
            Add-on price, or None if the product has no such add-on
        """
        if not add_on_name:
            return Decimal("0")
        for add_on in self.add_ons or []:
            if add_on.get("name") == add_on_name:
                return Decimal(str(add_on.get("price", 0)))
        return None

    def __repr__(self) -> str:
        return (
            f"<Product(id={self.id}, name={self.name!r}, "
            f"final_price={self.final_price}, is_active={self.is_active})>"
        )


def _normalize_add_ons(add_ons: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    if not add_ons:
        return [dict(DEFAULT_ADD_ON)]
    normalized = [
        {
            "name": a["name"],
            "price": str(a.get("price", 0)),
            "is_default": bool(a.get("is_default", False)),
        }
        for a in add_ons
    ]
    if not any(a["is_default"] for a in normalized):
        normalized.insert(0, dict(DEFAULT_ADD_ON))
    return normalized


@event.listens_for(Product, "before_insert")
@event.listens_for(Product, "before_update")
def _sync_derived_fields(mapper, connection, target: Product) -> None:
    target.final_price = compute_final_price(
        target.selling_price, target.discount_percent or Decimal("0")
    )
    target.add_ons = _normalize_add_ons(target.add_ons)
