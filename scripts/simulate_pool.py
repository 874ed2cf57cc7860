#!/usr/bin/env python3
"""Simulate a pool: seed liquidity, trade for a while, read the TWAP.

Usage:
    python scripts/simulate_pool.py
    python scripts/simulate_pool.py --trades 50 --interval 120 --verbose
"""

from __future__ import annotations

import argparse
import random
import sys

import structlog

from cpmm import Chain, MintableToken, PoolRegistry, Router
from cpmm.constants import UINT256_MAX
from cpmm.log import configure_logging
from cpmm.math.fixed_point import to_decimal
from cpmm.math.oracle import FixedWindowOracle

logger = structlog.get_logger()

ONE = 10**18


def main() -> int:
    parser = argparse.ArgumentParser(description="Simulate trades against one ledger")
    parser.add_argument("--trades", type=int, default=20, help="Number of trades (default: 20)")
    parser.add_argument(
        "--interval", type=int, default=60, help="Seconds between trades (default: 60)"
    )
    parser.add_argument("--seed", type=int, default=7, help="Random seed (default: 7)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--json", action="store_true", help="Log as JSON lines")
    args = parser.parse_args()

    configure_logging(verbose=args.verbose, json=args.json)
    rng = random.Random(args.seed)

    chain = Chain(timestamp=1_700_000_000)
    registry = PoolRegistry(chain)
    router = Router(chain, registry)
    token_a = MintableToken(chain, chain.account("token-a"), "Token A", "TKA")
    token_b = MintableToken(chain, chain.account("token-b"), "Token B", "TKB")

    provider = chain.account("provider")
    trader = chain.account("trader")
    for account in (provider, trader):
        for token in (token_a, token_b):
            token.mint(account, 1_000_000 * ONE)
            token.approve(account, router.address, UINT256_MAX)

    deadline = chain.timestamp + 365 * 24 * 3600
    added = router.add_liquidity(
        token_a.address, token_b.address, 1_000 * ONE, 4_000 * ONE, 0, 0,
        provider, deadline, sender=provider,
    )
    ledger = registry.get_ledger(token_a.address, token_b.address)
    assert ledger is not None
    oracle = FixedWindowOracle(chain, ledger, period=args.interval * args.trades)

    for _ in range(args.trades):
        chain.advance_time(args.interval)
        path = [token_a.address, token_b.address]
        if rng.random() < 0.5:
            path.reverse()
        router.swap_exact_tokens_for_tokens(
            rng.randint(1, 20) * ONE, 0, path, trader, deadline, sender=trader
        )

    chain.advance_time(args.interval)
    oracle.update()
    logger.info("simulation_finished", trades=args.trades, ledger=ledger.address[-8:])

    reserve0, reserve1, _ = ledger.get_reserves()
    print("=" * 60)
    print(f"Ledger:            {ledger.address}")
    print(f"Claims minted:     {added.liquidity}")
    print(f"Reserves:          {reserve0} / {reserve1}")
    print(f"TWAP token0:       {to_decimal(oracle.price0_average):.6f}")
    print(f"TWAP token1:       {to_decimal(oracle.price1_average):.6f}")
    print(f"Events committed:  {len(chain.events)}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
