"""
Standard type definitions for database models.

Provides consistent types for monetary and percentage fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for prices, totals, balances
# Precision: 18 digits total, 2 after decimal point (rupees.paise)
MoneyType = DECIMAL(18, 2)

# Percentage type for discounts and commission rates
# Precision: 5 digits total, 2 after decimal point
# Range: 0.00 to 999.99
PercentType = DECIMAL(5, 2)
