"""Mathematical utilities for the constant-product ledger.

This package provides the stateless primitives ledgers and routers share:
- pricing: constant-product quotes with the input-side fee
- fixed_point: UQ112x112 encoding for the price accumulators
- oracle: time-weighted averages over the accumulators
"""

from cpmm.math.fixed_point import Q112, encode, mul_decode, to_decimal, uqdiv
from cpmm.math.oracle import FixedWindowOracle, average_price, current_cumulative_prices
from cpmm.math.pricing import (
    get_amount_in,
    get_amount_out,
    get_amounts_in,
    get_amounts_out,
    quote,
    sort_tokens,
)

__all__ = [
    "Q112",
    "encode",
    "uqdiv",
    "mul_decode",
    "to_decimal",
    "quote",
    "get_amount_out",
    "get_amount_in",
    "get_amounts_out",
    "get_amounts_in",
    "sort_tokens",
    "current_cumulative_prices",
    "average_price",
    "FixedWindowOracle",
]
