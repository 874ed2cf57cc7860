"""Pool registry: exactly one ledger per unordered asset pair.

Ledgers are deployed at addresses derived from the registry's own address
and the canonical pair (see cpmm.pools.address), so the mapping kept here is
an index, not the source of truth for where a ledger lives.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from cpmm.chain import Chain
from cpmm.config import DEFAULT_LEDGER_CONFIG, LedgerConfig
from cpmm.errors import PairExists, PairNotFound
from cpmm.math.pricing import sort_tokens
from cpmm.models.events import LedgerCreated
from cpmm.models.types import normalize_address
from cpmm.pools.address import compute_ledger_address
from cpmm.pools.ledger import PoolLedger

logger = structlog.get_logger()


@dataclass
class _RegistryState:
    ledgers: dict[tuple[str, str], str] = field(default_factory=dict)
    all_ledgers: list[str] = field(default_factory=list)

    def copy(self) -> _RegistryState:
        return _RegistryState(dict(self.ledgers), list(self.all_ledgers))


class PoolRegistry:
    """Registry of ledgers keyed by canonical (token0, token1) pair.

    Also serves as the ReserveSource the pricing math plans multi-hop
    amounts against.
    """

    def __init__(
        self,
        chain: Chain,
        address: str | None = None,
        config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
    ) -> None:
        self._chain = chain
        self.address = normalize_address(address or chain.account("cpmm.registry"))
        self.config = config
        self._state = _RegistryState()
        chain.deploy(self)

    # --- Journal ---

    def snapshot(self) -> _RegistryState:
        return self._state.copy()

    def restore(self, state: _RegistryState) -> None:
        self._state = state.copy()

    # --- Lookup ---

    def lookup(self, token_a: str, token_b: str) -> str | None:
        """Get the ledger address for a token pair (order independent).

        Returns:
            Ledger address if created, None otherwise
        """
        return self._state.ledgers.get(sort_tokens(token_a, token_b))

    def get_ledger(self, token_a: str, token_b: str) -> PoolLedger | None:
        """Get the ledger for a token pair (order independent)."""
        address = self.lookup(token_a, token_b)
        if address is None:
            return None
        ledger: PoolLedger = self._chain.require_contract(address)
        return ledger

    def get_reserves(self, token_a: str, token_b: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_a, reserve_b).

        Raises:
            PairNotFound: If no ledger exists for the pair
        """
        ledger = self.get_ledger(token_a, token_b)
        if ledger is None:
            raise PairNotFound(f"No ledger for {token_a}/{token_b}")
        return ledger.get_reserves_for(token_a)

    def ledger_address(self, token_a: str, token_b: str) -> str:
        """Address the ledger for a pair has, or will have once created."""
        return compute_ledger_address(self.address, token_a, token_b)

    @property
    def all_ledgers(self) -> list[str]:
        """Ledger addresses in creation order."""
        return list(self._state.all_ledgers)

    @property
    def ledger_count(self) -> int:
        """Return the number of ledgers in the registry."""
        return len(self._state.all_ledgers)

    # --- Creation ---

    def create(self, token_a: str, token_b: str) -> str:
        """Deploy and initialize the ledger for a new pair.

        Returns:
            Address of the new ledger

        Raises:
            IdenticalAddresses: If both tokens are the same
            ZeroAddress: If either token is the null address
            PairExists: If a ledger already exists for the pair
        """
        token0, token1 = sort_tokens(token_a, token_b)
        with self._chain.atomic():
            if (token0, token1) in self._state.ledgers:
                raise PairExists(f"Ledger exists for {token0}/{token1}")

            self._chain.touch(self)
            address = compute_ledger_address(self.address, token0, token1)
            ledger = PoolLedger(self._chain, address, registry=self.address, config=self.config)
            ledger.initialize(token0, token1, caller=self.address)

            self._state.ledgers[(token0, token1)] = address
            self._state.all_ledgers.append(address)
            self._chain.emit(
                LedgerCreated(
                    emitter=self.address,
                    token0=token0,
                    token1=token1,
                    ledger=address,
                    index=len(self._state.all_ledgers),
                )
            )

        logger.info(
            "ledger_created",
            ledger=address[-8:],
            token0=token0[-8:],
            token1=token1[-8:],
            count=self.ledger_count,
        )
        return address
