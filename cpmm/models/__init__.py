"""Pydantic models for ledger notifications and shared types."""

from cpmm.models.events import (
    Approval,
    Deposit,
    Event,
    LedgerCreated,
    Sync,
    Trade,
    Transfer,
    Withdraw,
)
from cpmm.models.types import Address, Amount, is_valid_address, normalize_address

__all__ = [
    # Types
    "Address",
    "Amount",
    "normalize_address",
    "is_valid_address",
    # Notifications
    "Event",
    "Transfer",
    "Approval",
    "Deposit",
    "Withdraw",
    "Trade",
    "Sync",
    "LedgerCreated",
]
