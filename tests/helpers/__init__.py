"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token addresses and common amounts
- factories: Liquidity and trade shortcuts
- tokens: Non-standard assets
- callees: Flash settlement counterparties
"""

from tests.helpers.constants import (
    DEADLINE,
    GENESIS_TIMESTAMP,
    ONE,
    Q112,
    REGISTRY,
    TOKEN_0,
    TOKEN_1,
    TOKEN_2,
    expand_to_18_decimals,
)
from tests.helpers.factories import add_liquidity, remove_liquidity, sell_token0

__all__ = [
    # Constants
    "ONE",
    "Q112",
    "TOKEN_0",
    "TOKEN_1",
    "TOKEN_2",
    "REGISTRY",
    "GENESIS_TIMESTAMP",
    "DEADLINE",
    "expand_to_18_decimals",
    # Factories
    "add_liquidity",
    "remove_liquidity",
    "sell_token0",
]
