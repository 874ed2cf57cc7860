"""Type definitions for routing module."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class HopResult:
    """Result of a single hop in a multi-hop route."""

    ledger: str
    input_token: str
    output_token: str
    amount_in: int
    amount_out: int


@dataclass
class SwapResult:
    """Result of routing a swap through one or more ledgers."""

    path: list[str]
    amounts: list[int]
    hops: list[HopResult]
    recipient: str

    @property
    def amount_in(self) -> int:
        return self.amounts[0]

    @property
    def amount_out(self) -> int:
        return self.amounts[-1]

    @property
    def is_multihop(self) -> bool:
        """Check if this is a multi-hop route."""
        return len(self.path) > 2


@dataclass
class LiquidityResult:
    """Amounts moved by an add or remove liquidity call."""

    amount_a: int
    amount_b: int
    liquidity: int


__all__ = ["HopResult", "SwapResult", "LiquidityResult"]
