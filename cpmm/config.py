"""Ledger configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from cpmm.constants import FEE_BASE, FEE_BPS, MINIMUM_LIQUIDITY, RESERVE_BITS


@dataclass(frozen=True)
class LedgerConfig:
    """Centralized configuration for a ledger and the math that plans against it.

    Attributes:
        fee_bps: Trade fee charged on the input side, in basis points (default: 30)
        minimum_liquidity: Claim units locked forever on the first deposit (default: 1000)
        reserve_bits: Bit width bounding each recorded reserve (default: 112)
    """

    fee_bps: int = FEE_BPS
    minimum_liquidity: int = MINIMUM_LIQUIDITY
    reserve_bits: int = RESERVE_BITS

    def __post_init__(self) -> None:
        if not 0 <= self.fee_bps < FEE_BASE:
            raise ValueError(f"fee_bps must be in [0, {FEE_BASE}), got {self.fee_bps}")
        if self.minimum_liquidity <= 0:
            raise ValueError(f"minimum_liquidity must be positive, got {self.minimum_liquidity}")
        if not 0 < self.reserve_bits <= RESERVE_BITS:
            raise ValueError(
                f"reserve_bits must be in (0, {RESERVE_BITS}], got {self.reserve_bits}"
            )

    @property
    def fee_multiplier(self) -> int:
        """Fee multiplier for AMM math (10000 - fee_bps).

        For 30 bps (0.3%), this returns 9970.
        """
        return FEE_BASE - self.fee_bps

    @property
    def max_reserve(self) -> int:
        """Largest balance a reserve slot can record."""
        return 2**self.reserve_bits - 1

    @classmethod
    def from_env(cls) -> LedgerConfig:
        """Build a config from environment variables, falling back to defaults.

        - CPMM_FEE_BPS: trade fee in basis points
        - CPMM_MINIMUM_LIQUIDITY: first-deposit lock
        - CPMM_RESERVE_BITS: reserve bit width
        """
        return cls(
            fee_bps=int(os.environ.get("CPMM_FEE_BPS", str(FEE_BPS))),
            minimum_liquidity=int(
                os.environ.get("CPMM_MINIMUM_LIQUIDITY", str(MINIMUM_LIQUIDITY))
            ),
            reserve_bits=int(os.environ.get("CPMM_RESERVE_BITS", str(RESERVE_BITS))),
        )


# Default configuration instance (the reference system)
DEFAULT_LEDGER_CONFIG = LedgerConfig()
