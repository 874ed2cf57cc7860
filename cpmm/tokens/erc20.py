"""In-memory fungible token.

Used for the pool's assets in tests and scripts, and as the claim-token
ledger each PoolLedger owns.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from cpmm.chain import Chain
from cpmm.constants import UINT256_MAX, ZERO_ADDRESS
from cpmm.errors import InsufficientAllowance, InsufficientBalance
from cpmm.models.events import Approval, Transfer
from cpmm.models.types import normalize_address
from cpmm.safe_int import S

logger = structlog.get_logger()


@dataclass
class _TokenState:
    total_supply: int = 0
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[tuple[str, str], int] = field(default_factory=dict)

    def copy(self) -> _TokenState:
        return _TokenState(self.total_supply, dict(self.balances), dict(self.allowances))


class FungibleToken:
    """Balances, allowances and supply for one fungible asset.

    Invariant: the sum of all balances equals total_supply.
    """

    def __init__(
        self,
        chain: Chain,
        address: str,
        name: str = "Token",
        symbol: str = "TKN",
        decimals: int = 18,
    ) -> None:
        self._chain = chain
        self.address = normalize_address(address)
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._state = _TokenState()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol}, {self.address})"

    # --- Journal ---

    def snapshot(self) -> _TokenState:
        return self._state.copy()

    def restore(self, state: _TokenState) -> None:
        self._state = state.copy()

    # --- Views ---

    @property
    def total_supply(self) -> int:
        return self._state.total_supply

    def balance_of(self, holder: str) -> int:
        return self._state.balances.get(normalize_address(holder), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._state.allowances.get(
            (normalize_address(owner), normalize_address(spender)), 0
        )

    def holders(self) -> dict[str, int]:
        """Non-zero balances keyed by holder."""
        return {h: b for h, b in self._state.balances.items() if b}

    # --- Mutations ---

    def approve(self, owner: str, spender: str, value: int) -> bool:
        owner, spender = normalize_address(owner), normalize_address(spender)
        self._chain.touch(self)
        self._state.allowances[(owner, spender)] = S(value).to_uint(256)
        self._chain.emit(Approval(emitter=self.address, owner=owner, spender=spender, value=value))
        return True

    def transfer(self, sender: str, to: str, value: int) -> bool:
        with self._chain.atomic():
            self._move(sender, to, value)
        return True

    def transfer_from(self, spender: str, owner: str, to: str, value: int) -> bool:
        """Transfer on behalf of `owner`. An allowance of 2**256-1 is never decremented.

        Raises:
            InsufficientAllowance: If spender's allowance is below value
            InsufficientBalance: If owner's balance is below value
        """
        with self._chain.atomic():
            key = (normalize_address(owner), normalize_address(spender))
            allowed = self._state.allowances.get(key, 0)
            if allowed != UINT256_MAX:
                if allowed < value:
                    raise InsufficientAllowance(
                        f"{self.symbol}: allowance {allowed} < {value} for {spender}"
                    )
                self._chain.touch(self)
                self._state.allowances[key] = allowed - value
            self._move(owner, to, value)
        return True

    def _move(self, sender: str, to: str, value: int) -> None:
        sender, to = normalize_address(sender), normalize_address(to)
        value = S(value).to_uint(256)
        balance = self._state.balances.get(sender, 0)
        if balance < value:
            raise InsufficientBalance(f"{self.symbol}: balance {balance} < {value} for {sender}")
        self._chain.touch(self)
        self._state.balances[sender] = balance - value
        self._state.balances[to] = self._state.balances.get(to, 0) + value
        self._chain.emit(Transfer(emitter=self.address, sender=sender, recipient=to, value=value))

    def _mint(self, to: str, value: int) -> None:
        to = normalize_address(to)
        self._chain.touch(self)
        self._state.total_supply = S(self._state.total_supply + value).to_uint(256)
        self._state.balances[to] = self._state.balances.get(to, 0) + value
        self._chain.emit(
            Transfer(emitter=self.address, sender=ZERO_ADDRESS, recipient=to, value=value)
        )

    def _burn(self, holder: str, value: int) -> None:
        holder = normalize_address(holder)
        balance = self._state.balances.get(holder, 0)
        if balance < value:
            raise InsufficientBalance(f"{self.symbol}: burn {value} exceeds balance {balance}")
        self._chain.touch(self)
        self._state.balances[holder] = balance - value
        self._state.total_supply -= value
        self._chain.emit(
            Transfer(emitter=self.address, sender=holder, recipient=ZERO_ADDRESS, value=value)
        )


class MintableToken(FungibleToken):
    """Token with an open faucet, deployed at its own address."""

    def __init__(
        self,
        chain: Chain,
        address: str,
        name: str = "Token",
        symbol: str = "TKN",
        decimals: int = 18,
    ) -> None:
        super().__init__(chain, address, name, symbol, decimals)
        chain.deploy(self)

    def mint(self, to: str, value: int) -> None:
        with self._chain.atomic():
            self._mint(to, value)
        logger.debug("token_minted", token=self.symbol, to=to[-8:], value=value)
