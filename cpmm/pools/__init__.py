"""Pool ledgers and the registry that creates them."""

from .address import LEDGER_CODE_HASH, compute_ledger_address
from .callee import FlashSwapCallee
from .ledger import PoolLedger
from .registry import PoolRegistry

__all__ = [
    "PoolLedger",
    "PoolRegistry",
    "FlashSwapCallee",
    "compute_ledger_address",
    "LEDGER_CODE_HASH",
]
