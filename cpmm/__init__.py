"""Constant-product market maker ledger."""

from cpmm.chain import Chain
from cpmm.config import DEFAULT_LEDGER_CONFIG, LedgerConfig
from cpmm.pools import PoolLedger, PoolRegistry
from cpmm.routing import Router
from cpmm.tokens import FungibleToken, MintableToken

__version__ = "0.1.0"
__all__ = [
    "Chain",
    "LedgerConfig",
    "DEFAULT_LEDGER_CONFIG",
    "PoolLedger",
    "PoolRegistry",
    "Router",
    "FungibleToken",
    "MintableToken",
    "__version__",
]
