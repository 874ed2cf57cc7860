"""UQ112x112 fixed-point numbers.

A UQ112x112 value is an integer scaled by 2**112: 112 integer bits and 112
fractional bits, 224 bits in total. The cumulative price accumulators are
sums of these values multiplied by elapsed seconds.
"""

from __future__ import annotations

from decimal import Decimal, localcontext

from cpmm.constants import Q112, RESERVE_BITS
from cpmm.safe_int import S

__all__ = [
    "Q112",
    "encode",
    "uqdiv",
    "mul_decode",
    "to_decimal",
]


def encode(y: int) -> int:
    """Encode a uint112 as UQ112x112.

    Raises:
        UintOverflow: If y does not fit in 112 bits
    """
    return S(y).to_uint(RESERVE_BITS) * Q112


def uqdiv(x: int, y: int) -> int:
    """Divide a UQ112x112 by a uint112, returning UQ112x112.

    Raises:
        DivisionByZero: If y is zero
    """
    return (S(x) // S(y)).value


def mul_decode(x: int, y: int) -> int:
    """Multiply a UQ112x112 by an integer and drop the fractional bits."""
    return (x * y) >> RESERVE_BITS


def to_decimal(x: int) -> Decimal:
    """Exact-enough Decimal view of a UQ112x112 for display and reporting."""
    with localcontext() as ctx:
        ctx.prec = 78
        return Decimal(x) / Decimal(Q112)
