"""Routing across ledgers: liquidity management and multi-hop swaps."""

from cpmm.routing.router import Router
from cpmm.routing.types import HopResult, LiquidityResult, SwapResult

__all__ = ["Router", "HopResult", "SwapResult", "LiquidityResult"]
