"""
Money helpers.

All monetary arithmetic that involves division or percentages is done in
integer minor units and rounded half-up, so the same inputs always yield
the same paise regardless of float representation.
"""

from decimal import ROUND_HALF_UP, Decimal

from orderflow.config.business_constants import (
    MINOR_UNITS_PER_MAJOR,
    MONEY_QUANTUM,
)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Convert a numeric value to Decimal without float artifacts.

    Args:
        value: Amount as Decimal, int, float or numeric string

    Returns:
        Decimal value
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_minor_units(amount: Decimal | int | float | str) -> int:
    """
    Convert a major-unit amount to integer minor units.

    Fractions of a minor unit are rounded half-up.

    Example:
        >>> to_minor_units(Decimal("12.345"))
        1235
    """
    scaled = to_decimal(amount) * MINOR_UNITS_PER_MAJOR
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(minor: int) -> Decimal:
    """
    Convert integer minor units back to a major-unit Decimal.

    Example:
        >>> from_minor_units(1235)
        Decimal('12.35')
    """
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(MONEY_QUANTUM)


def round_half_up(value: Decimal, quantum: Decimal = Decimal("1")) -> Decimal:
    """Round a Decimal half-up to the given quantum."""
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def quantize_money(amount: Decimal | int | float | str) -> Decimal:
    """Round an amount half-up to two decimal places."""
    return round_half_up(to_decimal(amount), MONEY_QUANTUM)
