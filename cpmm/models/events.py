"""Pydantic models for ledger notifications.

Notifications are append-only records for external indexers. Nothing inside
the ledger reads them back.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from cpmm.models.types import Address, Amount


class Event(BaseModel):
    """Base notification. `emitter` is the address of the contract that emitted it."""

    model_config = ConfigDict(frozen=True)

    name: ClassVar[str] = "Event"

    emitter: Address


class Transfer(Event):
    """Fungible token movement (mint: sender is zero; burn: recipient is zero)."""

    name: ClassVar[str] = "Transfer"

    sender: Address
    recipient: Address
    value: Amount


class Approval(Event):
    """Allowance change."""

    name: ClassVar[str] = "Approval"

    owner: Address
    spender: Address
    value: Amount


class Deposit(Event):
    """Liquidity was added and claim units minted."""

    name: ClassVar[str] = "Deposit"

    sender: Address
    amount0: Amount
    amount1: Amount


class Withdraw(Event):
    """Claim units were burned and both assets paid out."""

    name: ClassVar[str] = "Withdraw"

    sender: Address
    amount0: Amount
    amount1: Amount
    recipient: Address


class Trade(Event):
    """An exchange settled. Inputs are implied from custody after the outputs left."""

    name: ClassVar[str] = "Trade"

    sender: Address
    amount0_in: Amount
    amount1_in: Amount
    amount0_out: Amount
    amount1_out: Amount
    recipient: Address


class Sync(Event):
    """Reserves were overwritten from custody."""

    name: ClassVar[str] = "Sync"

    reserve0: Amount
    reserve1: Amount


class LedgerCreated(Event):
    """The registry deployed a ledger for a new pair."""

    name: ClassVar[str] = "LedgerCreated"

    token0: Address
    token1: Address
    ledger: Address
    index: int


__all__ = [
    "Event",
    "Transfer",
    "Approval",
    "Deposit",
    "Withdraw",
    "Trade",
    "Sync",
    "LedgerCreated",
]
