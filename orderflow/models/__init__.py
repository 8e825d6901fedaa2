"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from orderflow.models.base import Base

# Catalog and checkout
from orderflow.models.offer import Offer
from orderflow.models.order import Order, OrderLine
from orderflow.models.product import Product

# Referral program
from orderflow.models.referral import (
    CommissionTransaction,
    ReferralAccount,
    ReferralDownline,
)

__all__ = [
    # Base
    "Base",
    # Catalog and checkout
    "Product",
    "Offer",
    "Order",
    "OrderLine",
    # Referral program
    "ReferralAccount",
    "ReferralDownline",
    "CommissionTransaction",
]
