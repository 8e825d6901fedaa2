"""
Business logic constants for orderflow.

Central location for business rules used by pricing, orders and the
referral program. Values here are product decisions, not deployment
settings, so they are not read from the environment.
"""

from decimal import Decimal
from enum import StrEnum


# Money is stored in major units with two decimal places (rupees.paise)
MONEY_QUANTUM = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100


# Referral program
REFERRAL_DEPTH = 3

# Flat bonus credited to each ancestor, keyed by distance from the new joiner
REFERRAL_BONUS_AMOUNTS = {
    1: Decimal("500"),
    2: Decimal("250"),
    3: Decimal("100"),
}

# Per-account commission rate table (percent). Stored on every account
# but not applied by the cascade, which pays the flat bonuses above.
DEFAULT_COMMISSION_RATES = {
    1: Decimal("10"),
    2: Decimal("5"),
    3: Decimal("2"),
}

REFERRAL_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
REFERRAL_CODE_RANDOM_LENGTH = 6

# Dashboard shows this many ledger entries
DASHBOARD_RECENT_TRANSACTIONS = 10


class DiscountType(StrEnum):
    """Offer discount kinds."""

    PERCENTAGE = "percentage"
    FLAT = "flat"


class OrderStatus(StrEnum):
    """Order fulfilment status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(StrEnum):
    """Order payment status."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class TransactionType(StrEnum):
    """Commission ledger entry kinds."""

    REFERRAL = "referral"
    TASK = "task"
    WITHDRAWAL = "withdrawal"
    BONUS = "bonus"
    COMMISSION = "commission"


class TransactionStatus(StrEnum):
    """Commission ledger entry status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# Customer-facing tracking steps per order status
ORDER_TRACKING_STEPS = {
    OrderStatus.PENDING: (1, "Order placed successfully"),
    OrderStatus.CONFIRMED: (2, "Order confirmed by seller"),
    OrderStatus.SHIPPED: (3, "Order shipped"),
    OrderStatus.DELIVERED: (4, "Order delivered"),
    OrderStatus.CANCELLED: (0, "Order cancelled"),
}
