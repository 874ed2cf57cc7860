"""Constant-product pricing math.

Pure functions over reserves: x * y = k with the fee charged on the input side.

    amount_out = (in * fee * res_out) / (res_in * 10000 + in * fee)
    amount_in  = (res_in * out * 10000) / ((res_out - out) * fee) + 1

With the default fee multiplier of 9970 these are the 997/1000 formulas
scaled by ten, so truncation gives identical results.

Nothing here mutates state; the router and planning code call these to size
trades before touching a ledger.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from cpmm.constants import DEFAULT_FEE_MULTIPLIER, FEE_BASE, ZERO_ADDRESS
from cpmm.errors import (
    IdenticalAddresses,
    InsufficientLiquidity,
    InvalidPath,
    ZeroAddress,
    ZeroAmount,
)
from cpmm.models.types import normalize_address
from cpmm.safe_int import S


class ReserveSource(Protocol):
    """Anything that can report the reserves of the ledger for a pair."""

    def get_reserves(self, token_a: str, token_b: str) -> tuple[int, int]:
        """Return (reserve_a, reserve_b) ordered as the arguments."""
        ...


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    """Return the pair in canonical order (smaller address first).

    Raises:
        IdenticalAddresses: If both tokens are the same
        ZeroAddress: If the smaller token is the null address
    """
    token_a = normalize_address(token_a)
    token_b = normalize_address(token_b)
    if token_a == token_b:
        raise IdenticalAddresses(f"Identical tokens: {token_a}")
    token0, token1 = (token_a, token_b) if token_a < token_b else (token_b, token_a)
    if token0 == ZERO_ADDRESS:
        raise ZeroAddress("Zero address is not a token")
    return token0, token1


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Proportional amount of B equivalent to `amount_a` of A, no fee.

    Raises:
        ZeroAmount: If amount_a is zero
        InsufficientLiquidity: If either reserve is zero
    """
    if amount_a <= 0:
        raise ZeroAmount("quote: amount is zero")
    if reserve_a <= 0 or reserve_b <= 0:
        raise InsufficientLiquidity("quote: empty reserves")
    return (S(amount_a) * S(reserve_b) // S(reserve_a)).value


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_multiplier: int = DEFAULT_FEE_MULTIPLIER,
) -> int:
    """Calculate output amount using constant product formula.

    Args:
        amount_in: Input token amount
        reserve_in: Reserve of input token in pool
        reserve_out: Reserve of output token in pool
        fee_multiplier: Fee multiplier (default 9970 for 0.3% fee)

    Returns:
        Output token amount, rounded down

    Raises:
        ZeroAmount: If amount_in is zero
        InsufficientLiquidity: If either reserve is zero
    """
    if amount_in <= 0:
        raise ZeroAmount("get_amount_out: input is zero")
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidity("get_amount_out: empty reserves")

    amount_in_with_fee = S(amount_in) * S(fee_multiplier)
    numerator = amount_in_with_fee * S(reserve_out)
    denominator = S(reserve_in) * S(FEE_BASE) + amount_in_with_fee

    return (numerator // denominator).value


def get_amount_in(
    amount_out: int,
    reserve_in: int,
    reserve_out: int,
    fee_multiplier: int = DEFAULT_FEE_MULTIPLIER,
) -> int:
    """Calculate required input for desired output.

    The result is rounded up so the pool never loses value to rounding.

    Args:
        amount_out: Desired output token amount
        reserve_in: Reserve of input token in pool
        reserve_out: Reserve of output token in pool
        fee_multiplier: Fee multiplier (default 9970 for 0.3% fee)

    Returns:
        Required input token amount

    Raises:
        ZeroAmount: If amount_out is zero
        InsufficientLiquidity: If either reserve is zero or amount_out >= reserve_out
    """
    if amount_out <= 0:
        raise ZeroAmount("get_amount_in: output is zero")
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidity("get_amount_in: empty reserves")
    if amount_out >= reserve_out:
        raise InsufficientLiquidity(
            f"get_amount_in: output {amount_out} >= reserve {reserve_out}"
        )

    numerator = S(reserve_in) * S(amount_out) * S(FEE_BASE)
    denominator = (S(reserve_out) - S(amount_out)) * S(fee_multiplier)

    return ((numerator // denominator) + S(1)).value


def get_amounts_out(
    reserves: ReserveSource,
    amount_in: int,
    path: Sequence[str],
    fee_multiplier: int = DEFAULT_FEE_MULTIPLIER,
) -> list[int]:
    """Chain get_amount_out across every hop of `path`.

    Returns:
        amounts[0] == amount_in, amounts[i + 1] is the output of hop i

    Raises:
        InvalidPath: If path has fewer than two elements
    """
    if len(path) < 2:
        raise InvalidPath(f"Path needs at least two tokens, got {len(path)}")
    amounts = [amount_in]
    for i in range(len(path) - 1):
        reserve_in, reserve_out = reserves.get_reserves(path[i], path[i + 1])
        amounts.append(get_amount_out(amounts[i], reserve_in, reserve_out, fee_multiplier))
    return amounts


def get_amounts_in(
    reserves: ReserveSource,
    amount_out: int,
    path: Sequence[str],
    fee_multiplier: int = DEFAULT_FEE_MULTIPLIER,
) -> list[int]:
    """Chain get_amount_in backwards from the last hop of `path`.

    Returns:
        amounts[-1] == amount_out, amounts[0] is the input the first hop needs

    Raises:
        InvalidPath: If path has fewer than two elements
    """
    if len(path) < 2:
        raise InvalidPath(f"Path needs at least two tokens, got {len(path)}")
    amounts = [0] * len(path)
    amounts[-1] = amount_out
    for i in range(len(path) - 1, 0, -1):
        reserve_in, reserve_out = reserves.get_reserves(path[i - 1], path[i])
        amounts[i - 1] = get_amount_in(amounts[i], reserve_in, reserve_out, fee_multiplier)
    return amounts


__all__ = [
    "ReserveSource",
    "sort_tokens",
    "quote",
    "get_amount_out",
    "get_amount_in",
    "get_amounts_out",
    "get_amounts_in",
]
