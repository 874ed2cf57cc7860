"""Time-weighted average prices from a ledger's cumulative accumulators.

The ledger only advances its accumulators when it is touched. These helpers
compute what the accumulators would read right now, and average them over a
fixed window:

    oracle = FixedWindowOracle(chain, ledger, period=3600)
    chain.advance_time(3600)
    oracle.update()
    oracle.consult(token0, 10**18)   # token1 per 1e18 token0, averaged over the hour
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from cpmm.constants import UINT32_MODULUS, UINT224_MAX, UINT256_MODULUS
from cpmm.errors import InsufficientLiquidity, PeriodNotElapsed, UnknownAsset
from cpmm.math.fixed_point import encode, mul_decode, uqdiv
from cpmm.models.types import normalize_address

if TYPE_CHECKING:
    from cpmm.chain import Chain
    from cpmm.pools.ledger import PoolLedger

logger = structlog.get_logger()


def current_cumulative_prices(chain: Chain, ledger: PoolLedger) -> tuple[int, int, int]:
    """Accumulators as of the current block, without writing to the ledger.

    Returns:
        (price0_cumulative, price1_cumulative, block_timestamp)
    """
    block_timestamp = chain.block_timestamp
    price0_cumulative = ledger.price0_cumulative_last
    price1_cumulative = ledger.price1_cumulative_last

    reserve0, reserve1, block_timestamp_last = ledger.get_reserves()
    if block_timestamp_last != block_timestamp and reserve0 != 0 and reserve1 != 0:
        time_elapsed = (block_timestamp - block_timestamp_last) % UINT32_MODULUS
        price0_cumulative = (
            price0_cumulative + uqdiv(encode(reserve1), reserve0) * time_elapsed
        ) % UINT256_MODULUS
        price1_cumulative = (
            price1_cumulative + uqdiv(encode(reserve0), reserve1) * time_elapsed
        ) % UINT256_MODULUS

    return price0_cumulative, price1_cumulative, block_timestamp


def average_price(cumulative_start: int, cumulative_end: int, time_elapsed: int) -> int:
    """UQ112x112 average price between two accumulator readings.

    Differences are taken modulo 2**256 so a wrapped accumulator still averages correctly.
    """
    if time_elapsed <= 0:
        raise PeriodNotElapsed("No time elapsed between observations")
    return (((cumulative_end - cumulative_start) % UINT256_MODULUS) // time_elapsed) & UINT224_MAX


class FixedWindowOracle:
    """Average price of one ledger, recomputed once per fixed period."""

    def __init__(self, chain: Chain, ledger: PoolLedger, period: int = 24 * 60 * 60) -> None:
        reserve0, reserve1, block_timestamp_last = ledger.get_reserves()
        if reserve0 == 0 or reserve1 == 0:
            raise InsufficientLiquidity(f"{ledger.address} has no reserves to observe")
        self._chain = chain
        self.ledger = ledger
        self.period = period
        self.price0_cumulative_last = ledger.price0_cumulative_last
        self.price1_cumulative_last = ledger.price1_cumulative_last
        self.block_timestamp_last = block_timestamp_last
        self.price0_average = 0
        self.price1_average = 0

    def update(self) -> None:
        """Recompute both averages over the window since the last update.

        Raises:
            PeriodNotElapsed: If less than one period has passed
        """
        price0_cumulative, price1_cumulative, block_timestamp = current_cumulative_prices(
            self._chain, self.ledger
        )
        time_elapsed = (block_timestamp - self.block_timestamp_last) % UINT32_MODULUS
        if time_elapsed < self.period:
            raise PeriodNotElapsed(f"{time_elapsed}s elapsed, period is {self.period}s")

        self.price0_average = average_price(
            self.price0_cumulative_last, price0_cumulative, time_elapsed
        )
        self.price1_average = average_price(
            self.price1_cumulative_last, price1_cumulative, time_elapsed
        )
        self.price0_cumulative_last = price0_cumulative
        self.price1_cumulative_last = price1_cumulative
        self.block_timestamp_last = block_timestamp

        logger.debug(
            "oracle_updated",
            ledger=self.ledger.address[-8:],
            window=time_elapsed,
            price0_average=self.price0_average,
            price1_average=self.price1_average,
        )

    def consult(self, token: str, amount_in: int) -> int:
        """Amount of the other asset worth `amount_in` of `token` at the average price.

        Returns 0 until the first update.

        Raises:
            UnknownAsset: If token is not one of the ledger's assets
        """
        token = normalize_address(token)
        if token == self.ledger.token0:
            return mul_decode(self.price0_average, amount_in)
        if token == self.ledger.token1:
            return mul_decode(self.price1_average, amount_in)
        raise UnknownAsset(f"{token} is not traded by {self.ledger.address}")
