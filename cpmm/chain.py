"""Execution environment shared by tokens, ledgers, the registry and the router.

The chain owns the clock, the address space, the append-only notification
log and the journal that makes every mutating operation all-or-nothing:

    with chain.atomic():
        token.transfer(alice, ledger.address, 10)
        ledger.deposit(alice)   # if this raises, the transfer is undone too

Execution is single-threaded and run-to-completion. `atomic()` is not a lock;
it only guarantees that a failed operation leaves nothing behind.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog
from eth_utils import keccak

from cpmm.constants import UINT32_MODULUS
from cpmm.errors import ContractNotFound
from cpmm.models.events import Event
from cpmm.models.types import normalize_address

logger = structlog.get_logger()

Subscriber = Callable[[Event], None]


class Journaled(Protocol):
    """State holder whose contents can be captured and put back."""

    def snapshot(self) -> Any:
        """Return an opaque copy of the current state."""
        ...

    def restore(self, state: Any) -> None:
        """Replace the current state with a value returned by snapshot()."""
        ...


@dataclass
class _Scope:
    """Undo record for one atomic() block."""

    pending_mark: int
    saved: dict[int, tuple[Journaled, Any]] = field(default_factory=dict)
    deployed: list[str] = field(default_factory=list)


class Chain:
    """Clock, address space, journal and notification log."""

    def __init__(self, timestamp: int | None = None) -> None:
        self.timestamp = int(time.time()) if timestamp is None else timestamp
        self.events: list[Event] = []
        self._contracts: dict[str, Any] = {}
        self._pending: list[Event] = []
        self._subscribers: list[Subscriber] = []
        self._scopes: list[_Scope] = []

    # --- Clock ---

    @property
    def block_timestamp(self) -> int:
        """Current timestamp truncated to 32 bits (wraps)."""
        return self.timestamp % UINT32_MODULUS

    def advance_time(self, seconds: int) -> int:
        """Move the clock forward and return the new timestamp."""
        if seconds < 0:
            raise ValueError(f"Cannot move the clock backwards: {seconds}")
        self.timestamp += seconds
        return self.timestamp

    # --- Address space ---

    @staticmethod
    def account(label: str) -> str:
        """Derive a stable account address from a label."""
        return "0x" + keccak(text=label)[-20:].hex()

    def deploy(self, contract: Any) -> Any:
        """Bind `contract.address` to the contract.

        Raises:
            ValueError: If the address is already in use
        """
        address = normalize_address(contract.address)
        if address in self._contracts:
            raise ValueError(f"Address already in use: {address}")
        self._contracts[address] = contract
        if self._scopes:
            self._scopes[-1].deployed.append(address)
        return contract

    def contract_at(self, address: str) -> Any | None:
        """Return the contract deployed at an address, or None."""
        return self._contracts.get(normalize_address(address))

    def require_contract(self, address: str) -> Any:
        """Return the contract deployed at an address.

        Raises:
            ContractNotFound: If nothing is deployed there
        """
        contract = self.contract_at(address)
        if contract is None:
            raise ContractNotFound(f"No contract at {address}")
        return contract

    # --- Journal ---

    def touch(self, obj: Journaled) -> None:
        """Capture an object's state before its first write in the current scope.

        Outside any atomic() scope this does nothing.
        """
        if not self._scopes:
            return
        saved = self._scopes[-1].saved
        if id(obj) not in saved:
            saved[id(obj)] = (obj, obj.snapshot())

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run a block all-or-nothing.

        Objects touched inside the block, the address space and the pending
        notifications are restored if the block raises. Notifications are
        published only when the outermost scope exits cleanly.
        """
        scope = _Scope(pending_mark=len(self._pending))
        self._scopes.append(scope)
        try:
            yield
        except BaseException as err:
            self._scopes.pop()
            for obj, state in scope.saved.values():
                obj.restore(state)
            for address in scope.deployed:
                del self._contracts[address]
            del self._pending[scope.pending_mark :]
            if not self._scopes:
                logger.debug("operation_reverted", error=type(err).__name__, reason=str(err))
            raise

        self._scopes.pop()
        if self._scopes:
            # The enclosing scope keeps its own earlier capture of an object
            parent = self._scopes[-1]
            for key, entry in scope.saved.items():
                parent.saved.setdefault(key, entry)
            parent.deployed.extend(scope.deployed)
        else:
            pending, self._pending = self._pending, []
            self._publish(pending)

    # --- Notifications ---

    def emit(self, event: Event) -> None:
        """Record a notification, deferred until the enclosing operation commits."""
        if self._scopes:
            self._pending.append(event)
        else:
            self._publish([event])

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for committed notifications.

        Returns:
            A callable that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def events_of(self, event_type: type[Event]) -> list[Event]:
        """Committed notifications of one type, oldest first."""
        return [e for e in self.events if isinstance(e, event_type)]

    def _publish(self, events: list[Event]) -> None:
        self.events.extend(events)
        for event in events:
            for callback in list(self._subscribers):
                try:
                    callback(event)
                except Exception:
                    # Committed state is final; subscriber failures are only logged
                    logger.exception("event_subscriber_failed", event_name=event.name)
