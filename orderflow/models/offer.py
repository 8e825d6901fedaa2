"""
Offer model.

Discount codes applied at checkout.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from orderflow.config.business_constants import DiscountType
from orderflow.models.base import Base
from orderflow.models.types import MoneyType


class Offer(Base):
    """
    Offer entity.

    An offer applies to a subtotal only while it is active, inside its
    [start_date, end_date] window and the subtotal reaches min_order_amount.

    Attributes:
        id: Primary key
        code: Unique code, always stored upper-cased
        title: Display title
        description: Optional description
        discount_type: percentage or flat
        discount_value: Percent (percentage) or amount (flat)
        min_order_amount: Minimum subtotal, 0 means no minimum
        max_discount_amount: Cap for percentage discounts, 0 means uncapped
        start_date: Optional start of the active window
        end_date: Optional end of the active window
        is_active: Admin switch
    """

    __tablename__ = "offers"
    __table_args__ = (
        CheckConstraint(
            'discount_value > 0', name='check_offer_discount_positive'
        ),
        CheckConstraint(
            'min_order_amount >= 0', name='check_offer_min_order_non_negative'
        ),
        CheckConstraint(
            'max_discount_amount >= 0', name='check_offer_max_discount_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    code: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    discount_type: Mapped[str] = mapped_column(
        String(20), default=DiscountType.PERCENTAGE.value, nullable=False
    )
    discount_value: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    min_order_amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    max_discount_amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<Offer(code={self.code!r}, type={self.discount_type}, "
            f"value={self.discount_value}, is_active={self.is_active})>"
        )
