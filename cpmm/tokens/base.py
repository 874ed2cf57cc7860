"""Custody interface consumed by ledgers and the router."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Asset(Protocol):
    """Protocol for fungible assets held in custody.

    Callers pass the acting identity explicitly. `transfer` and
    `transfer_from` may return True, None, an ABI-encoded bool, or empty
    bytes; see cpmm.tokens.transfer for how results are judged.
    """

    address: str

    def balance_of(self, holder: str) -> int:
        """Return the amount held by `holder`."""
        ...

    def transfer(self, sender: str, to: str, value: int) -> Any:
        """Move `value` from `sender` to `to`."""
        ...

    def transfer_from(self, spender: str, owner: str, to: str, value: int) -> Any:
        """Move `value` from `owner` to `to` using `spender`'s allowance."""
        ...
