"""
Points / currency scaling.

Amounts are persisted as integers multiplied by a ``rounding`` factor
(100 for every wallet and for the global config). ``down_scale`` converts a
display value into its stored form, ``up_scale`` converts it back.
"""

from decimal import Decimal
from typing import Optional, Union

Number = Union[int, float, Decimal]

DEFAULT_ROUNDING = 100


def down_scale(value: Number, rounding: Number = DEFAULT_ROUNDING) -> int:
    """
    Convert a display amount to its stored integer form.

    Example:
        >>> down_scale(12.34, 100)
        1234
    """
    scaled = Decimal(str(value)) * Decimal(str(rounding))
    return int(scaled.to_integral_value())


def up_scale(value: Optional[Number], rounding: Number = DEFAULT_ROUNDING) -> float:
    """
    Convert a stored integer amount back to its display value.

    ``None`` and ``0`` both map to ``0``.
    """
    if not value:
        return 0
    return float(Decimal(str(value)) / Decimal(str(rounding)))
