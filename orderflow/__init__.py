"""
Orderflow.

Checkout pricing and multi-level referral commissions for the storefront
backend.
"""

__version__ = "1.0.0"
