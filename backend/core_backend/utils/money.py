"""
Decimal helpers for prices, discounts and stock quantities.

Money is never handled as float. Amounts are rounded to cents with
ROUND_HALF_UP (standard commercial rounding) at the points where a value
becomes part of an order record.
"""

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, str, int, float]


def to_decimal(value: Number) -> Decimal:
    """
    Convert any numeric input to Decimal without float artefacts.

    >>> to_decimal(18.5)
    Decimal('18.5')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Convert float to string first to avoid binary precision noise
        value = str(value)
    return Decimal(value)


def quantize_money(amount: Number) -> Decimal:
    """
    Round to two decimal places using ROUND_HALF_UP.

    >>> quantize_money("10.125")
    Decimal('10.13')
    """
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def floor_int(amount: Number) -> int:
    """Largest integer not greater than ``amount``."""
    return int(to_decimal(amount).to_integral_value(rounding=ROUND_FLOOR))
