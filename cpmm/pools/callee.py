"""Callback interface for flash settlement counterparties."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class FlashSwapCallee(Protocol):
    """Receiver of an optimistic trade.

    Called synchronously from PoolLedger.exchange after the outputs have been
    sent and before the invariant is checked. The implementation must move
    enough input into the ledger's custody before it returns.
    """

    address: str

    def on_flash_swap(
        self, initiator: str, amount0_out: int, amount1_out: int, data: bytes
    ) -> None:
        """Settle the trade that was just paid out."""
        ...
