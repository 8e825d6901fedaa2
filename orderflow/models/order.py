"""
Order models.

An order and its lines are written once at checkout. Lines keep the unit
price captured at that moment, so later product price changes never
affect a placed order.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orderflow.config.business_constants import OrderStatus, PaymentStatus
from orderflow.models.base import Base
from orderflow.models.types import MoneyType


class Order(Base):
    """
    Order entity.

    Attributes:
        id: Primary key
        user_id: Purchasing account (opaque subject id)
        subtotal: Sum of line totals
        discount: Discount applied
        total: Amount payable, never negative
        offer_code: Code that produced the discount, if any
        status: pending -> confirmed -> shipped -> delivered, or cancelled
        payment_status: pending, paid or failed
        payment_method: COD or gateway name
        shipping_address: Address snapshot
        notes: Customer notes
    """

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint('total >= 0', name='check_order_total_non_negative'),
        CheckConstraint('subtotal >= 0', name='check_order_subtotal_non_negative'),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )

    subtotal: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    discount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    offer_code: Mapped[str | None] = mapped_column(String(50), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=OrderStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    payment_status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.PENDING.value, nullable=False
    )
    payment_method: Mapped[str] = mapped_column(
        String(50), default="COD", nullable=False
    )

    shipping_address: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False
    )
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)

    lines: Mapped[list["OrderLine"]] = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderLine.id",
    )

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, user_id={self.user_id!r}, "
            f"total={self.total}, status={self.status})>"
        )


class OrderLine(Base):
    """
    Order line entity.

    Attributes:
        id: Primary key
        order_id: Owning order
        product_id: Product reference (kept even if product is deleted)
        product_name: Name at checkout
        product_price: Unit price at checkout
        add_on_name: Selected add-on
        add_on_price: Add-on price at checkout
        quantity: Units ordered, at least 1
        size: Selected size
        color: Selected color
    """

    __tablename__ = "order_lines"
    __table_args__ = (
        CheckConstraint('quantity >= 1', name='check_order_line_quantity_positive'),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int | None] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    product_price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    add_on_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    add_on_price: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    size: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)

    order: Mapped["Order"] = relationship("Order", back_populates="lines")

    @property
    def line_total(self) -> Decimal:
        """(product_price + add_on_price) * quantity."""
        return (self.product_price + self.add_on_price) * self.quantity
