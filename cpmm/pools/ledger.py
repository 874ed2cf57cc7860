"""Constant-product pool ledger.

One ledger per unordered asset pair. It tracks the reserves it believes it
holds, the claim-token supply, and two time-weighted price accumulators.

Callers move assets into the ledger's custody first and then call an
operation; the ledger measures what arrived by comparing custody with its
recorded reserves:

    token0.transfer(alice, ledger.address, 10**18)
    token1.transfer(alice, ledger.address, 10**18)
    ledger.deposit(alice)

Every mutating operation is latched (one at a time per ledger) and runs
all-or-nothing inside Chain.atomic().
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace

import structlog

from cpmm.chain import Chain
from cpmm.config import DEFAULT_LEDGER_CONFIG, LedgerConfig
from cpmm.constants import FEE_BASE, UINT32_MODULUS, UINT256_MODULUS, ZERO_ADDRESS
from cpmm.errors import (
    AlreadyInitialized,
    BalanceOverflow,
    Forbidden,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientLiquidityBurned,
    InsufficientLiquidityMinted,
    InsufficientOutputAmount,
    InvalidCallee,
    InvalidK,
    InvalidRecipient,
    Locked,
)
from cpmm.math.fixed_point import encode, uqdiv
from cpmm.models.events import Deposit, Sync, Trade, Withdraw
from cpmm.models.types import normalize_address
from cpmm.pools.callee import FlashSwapCallee
from cpmm.safe_int import S
from cpmm.tokens.base import Asset
from cpmm.tokens.erc20 import FungibleToken
from cpmm.tokens.transfer import safe_transfer

logger = structlog.get_logger()


@dataclass(frozen=True)
class _LedgerState:
    token0: str | None = None
    token1: str | None = None
    reserve0: int = 0
    reserve1: int = 0
    block_timestamp_last: int = 0
    price0_cumulative_last: int = 0
    price1_cumulative_last: int = 0


class PoolLedger:
    """Reserves, claim supply and price accumulators for one asset pair.

    token0 is always the smaller address of the pair. The claim token is a
    FungibleToken owned by the ledger and deployed under the ledger's own
    address, so claims are returned for redemption by transferring them to
    `ledger.address`.
    """

    def __init__(
        self,
        chain: Chain,
        address: str,
        registry: str,
        config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
    ) -> None:
        self._chain = chain
        self.address = normalize_address(address)
        self.registry = normalize_address(registry)
        self.config = config
        self.claims = FungibleToken(chain, self.address, name="CPMM Claim", symbol="CPMM-LP")
        self._state = _LedgerState()
        self._entered = False
        chain.deploy(self)

    def __repr__(self) -> str:
        return f"PoolLedger({self.address}, {self.token0}/{self.token1})"

    # --- Journal ---

    def snapshot(self) -> _LedgerState:
        return self._state

    def restore(self, state: _LedgerState) -> None:
        self._state = state

    # --- Views ---

    @property
    def token0(self) -> str | None:
        return self._state.token0

    @property
    def token1(self) -> str | None:
        return self._state.token1

    @property
    def reserve0(self) -> int:
        return self._state.reserve0

    @property
    def reserve1(self) -> int:
        return self._state.reserve1

    @property
    def price0_cumulative_last(self) -> int:
        """Sum of (reserve1 / reserve0) * seconds, UQ112x112."""
        return self._state.price0_cumulative_last

    @property
    def price1_cumulative_last(self) -> int:
        """Sum of (reserve0 / reserve1) * seconds, UQ112x112."""
        return self._state.price1_cumulative_last

    def get_reserves(self) -> tuple[int, int, int]:
        """Return (reserve0, reserve1, block_timestamp_last)."""
        return self._state.reserve0, self._state.reserve1, self._state.block_timestamp_last

    def get_reserves_for(self, token_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        token_in = normalize_address(token_in)
        if token_in == self.token0:
            return self.reserve0, self.reserve1
        elif token_in == self.token1:
            return self.reserve1, self.reserve0
        else:
            raise ValueError(f"Token {token_in} not in pool")

    # --- Setup ---

    def initialize(self, token0: str, token1: str, *, caller: str) -> None:
        """Bind the ledger to its asset pair. Called once by the registry.

        Raises:
            Forbidden: If caller is not the registry that created the ledger
            AlreadyInitialized: If the pair is already set
        """
        if normalize_address(caller) != self.registry:
            raise Forbidden(f"Only {self.registry} may initialize {self.address}")
        if self._state.token0 is not None or self._state.token1 is not None:
            raise AlreadyInitialized(f"{self.address} already holds {self.token0}/{self.token1}")
        self._chain.touch(self)
        self._state = replace(
            self._state, token0=normalize_address(token0), token1=normalize_address(token1)
        )

    # --- Operations ---

    def deposit(self, recipient: str, *, sender: str | None = None) -> int:
        """Mint claim units for the assets that arrived since the last update.

        The first deposit mints sqrt(amount0 * amount1) minus the minimum
        lock, and the lock itself to ZERO_ADDRESS. Later deposits mint the
        smaller of the two proportional shares, so any imbalance is donated
        to existing holders.

        Returns:
            Claim units credited to recipient

        Raises:
            Underflow: If the first deposit's geometric mean is below the lock
            InsufficientLiquidityMinted: If nothing would be minted
        """
        sender = normalize_address(sender or recipient)
        with self._lock(), self._chain.atomic():
            reserve0, reserve1, _ = self.get_reserves()
            balance0, balance1 = self._balances()
            amount0 = (S(balance0) - S(reserve0)).value
            amount1 = (S(balance1) - S(reserve1)).value

            total_supply = self.claims.total_supply
            if total_supply == 0:
                minimum = self.config.minimum_liquidity
                liquidity = ((S(amount0) * S(amount1)).sqrt() - S(minimum)).value
                self.claims._mint(ZERO_ADDRESS, minimum)
            else:
                liquidity = (
                    (S(amount0) * S(total_supply) // S(reserve0))
                    .min(S(amount1) * S(total_supply) // S(reserve1))
                    .value
                )
            if liquidity <= 0:
                raise InsufficientLiquidityMinted(
                    f"Deposit of ({amount0}, {amount1}) mints no claims"
                )
            self.claims._mint(recipient, liquidity)

            self._update(balance0, balance1, reserve0, reserve1)
            self._chain.emit(
                Deposit(emitter=self.address, sender=sender, amount0=amount0, amount1=amount1)
            )

        logger.debug(
            "ledger_deposit",
            ledger=self.address[-8:],
            amount0=amount0,
            amount1=amount1,
            liquidity=liquidity,
        )
        return liquidity

    def withdraw(self, recipient: str, *, sender: str | None = None) -> tuple[int, int]:
        """Burn the claim units held by the ledger and pay out both assets pro rata.

        Amounts are computed against actual custody, not recorded reserves.

        Returns:
            (amount0, amount1) sent to recipient

        Raises:
            InsufficientLiquidityBurned: If either payout would be zero
        """
        sender = normalize_address(sender or recipient)
        with self._lock(), self._chain.atomic():
            token0, token1 = self._assets()
            balance0, balance1 = self._balances()
            liquidity = self.claims.balance_of(self.address)
            total_supply = self.claims.total_supply

            if total_supply == 0:
                raise InsufficientLiquidityBurned("No claims outstanding")
            amount0 = (S(liquidity) * S(balance0) // S(total_supply)).value
            amount1 = (S(liquidity) * S(balance1) // S(total_supply)).value
            if amount0 <= 0 or amount1 <= 0:
                raise InsufficientLiquidityBurned(
                    f"Burning {liquidity} claims pays ({amount0}, {amount1})"
                )

            self.claims._burn(self.address, liquidity)
            safe_transfer(token0, self.address, recipient, amount0)
            safe_transfer(token1, self.address, recipient, amount1)

            balance0, balance1 = self._balances()
            self._update(balance0, balance1, self.reserve0, self.reserve1)
            self._chain.emit(
                Withdraw(
                    emitter=self.address,
                    sender=sender,
                    amount0=amount0,
                    amount1=amount1,
                    recipient=recipient,
                )
            )

        logger.debug(
            "ledger_withdraw",
            ledger=self.address[-8:],
            liquidity=liquidity,
            amount0=amount0,
            amount1=amount1,
        )
        return amount0, amount1

    def exchange(
        self,
        amount0_out: int,
        amount1_out: int,
        recipient: str,
        data: bytes = b"",
        *,
        sender: str | None = None,
    ) -> None:
        """Send outputs first, then require enough input to keep the invariant.

        When `data` is non-empty the recipient's on_flash_swap is called after
        the outputs leave and before balances are re-read, so the recipient
        can pay for the trade with what it just received.

        Raises:
            InsufficientOutputAmount: If both outputs are zero
            InsufficientLiquidity: If an output is not strictly below its reserve
            InvalidRecipient: If recipient is one of the pool's assets
            InvalidCallee: If data is given but recipient has no callback
            InsufficientInputAmount: If nothing was paid in
            InvalidK: If the fee-adjusted product decreased
        """
        recipient = normalize_address(recipient)
        sender = normalize_address(sender or recipient)
        with self._lock(), self._chain.atomic():
            if amount0_out < 0 or amount1_out < 0:
                raise InsufficientOutputAmount(f"Negative output ({amount0_out}, {amount1_out})")
            if amount0_out == 0 and amount1_out == 0:
                raise InsufficientOutputAmount("Both outputs are zero")
            reserve0, reserve1, _ = self.get_reserves()
            if amount0_out >= reserve0 or amount1_out >= reserve1:
                raise InsufficientLiquidity(
                    f"Outputs ({amount0_out}, {amount1_out}) exceed "
                    f"reserves ({reserve0}, {reserve1})"
                )

            token0, token1 = self._assets()
            if recipient in (token0.address, token1.address):
                raise InvalidRecipient(f"Cannot send output to asset {recipient}")
            if amount0_out > 0:
                safe_transfer(token0, self.address, recipient, amount0_out)
            if amount1_out > 0:
                safe_transfer(token1, self.address, recipient, amount1_out)
            if data:
                callee = self._chain.contract_at(recipient)
                if not isinstance(callee, FlashSwapCallee):
                    raise InvalidCallee(f"{recipient} cannot receive flash settlement")
                callee.on_flash_swap(sender, amount0_out, amount1_out, data)
            balance0, balance1 = self._balances()

            amount0_in = max(0, balance0 - (reserve0 - amount0_out))
            amount1_in = max(0, balance1 - (reserve1 - amount1_out))
            if amount0_in <= 0 and amount1_in <= 0:
                raise InsufficientInputAmount("No input received")

            fee_bps = self.config.fee_bps
            balance0_adjusted = balance0 * FEE_BASE - amount0_in * fee_bps
            balance1_adjusted = balance1 * FEE_BASE - amount1_in * fee_bps
            if balance0_adjusted * balance1_adjusted < reserve0 * reserve1 * FEE_BASE**2:
                raise InvalidK(
                    f"Invariant decreased: ({balance0}, {balance1}) after "
                    f"({amount0_in}, {amount1_in}) in"
                )

            self._update(balance0, balance1, reserve0, reserve1)
            self._chain.emit(
                Trade(
                    emitter=self.address,
                    sender=sender,
                    amount0_in=amount0_in,
                    amount1_in=amount1_in,
                    amount0_out=amount0_out,
                    amount1_out=amount1_out,
                    recipient=recipient,
                )
            )

        logger.debug(
            "ledger_exchange",
            ledger=self.address[-8:],
            amount0_in=amount0_in,
            amount1_in=amount1_in,
            amount0_out=amount0_out,
            amount1_out=amount1_out,
            flash=bool(data),
        )

    def skim(self, recipient: str) -> tuple[int, int]:
        """Send custody in excess of the recorded reserves to recipient.

        Returns:
            (excess0, excess1) that were sent
        """
        with self._lock(), self._chain.atomic():
            token0, token1 = self._assets()
            balance0, balance1 = self._balances()
            excess0 = (S(balance0) - S(self.reserve0)).value
            excess1 = (S(balance1) - S(self.reserve1)).value
            safe_transfer(token0, self.address, recipient, excess0)
            safe_transfer(token1, self.address, recipient, excess1)
        return excess0, excess1

    def resync(self) -> None:
        """Overwrite reserves with actual custody without minting or burning."""
        with self._lock(), self._chain.atomic():
            balance0, balance1 = self._balances()
            self._update(balance0, balance1, self.reserve0, self.reserve1)

    # --- Internals ---

    @contextmanager
    def _lock(self) -> Iterator[None]:
        if self._entered:
            raise Locked(f"{self.address} is locked")
        self._entered = True
        try:
            yield
        finally:
            self._entered = False

    def _assets(self) -> tuple[Asset, Asset]:
        if self.token0 is None or self.token1 is None:
            raise InsufficientLiquidity(f"{self.address} is not initialized")
        return self._chain.require_contract(self.token0), self._chain.require_contract(self.token1)

    def _balances(self) -> tuple[int, int]:
        token0, token1 = self._assets()
        return token0.balance_of(self.address), token1.balance_of(self.address)

    def _update(self, balance0: int, balance1: int, reserve0: int, reserve1: int) -> None:
        """Advance the accumulators with the prior reserves, then record the new ones."""
        max_reserve = self.config.max_reserve
        if balance0 > max_reserve or balance1 > max_reserve:
            raise BalanceOverflow(
                f"Balances ({balance0}, {balance1}) exceed uint{self.config.reserve_bits}"
            )

        state = self._state
        block_timestamp = self._chain.block_timestamp
        time_elapsed = (block_timestamp - state.block_timestamp_last) % UINT32_MODULUS
        price0_cumulative = state.price0_cumulative_last
        price1_cumulative = state.price1_cumulative_last
        if time_elapsed > 0 and reserve0 != 0 and reserve1 != 0:
            # Accumulators wrap at 2**256; consumers difference them modulo 2**256
            price0_cumulative = (
                price0_cumulative + uqdiv(encode(reserve1), reserve0) * time_elapsed
            ) % UINT256_MODULUS
            price1_cumulative = (
                price1_cumulative + uqdiv(encode(reserve0), reserve1) * time_elapsed
            ) % UINT256_MODULUS

        self._chain.touch(self)
        self._state = replace(
            state,
            reserve0=balance0,
            reserve1=balance1,
            block_timestamp_last=block_timestamp,
            price0_cumulative_last=price0_cumulative,
            price1_cumulative_last=price1_cumulative,
        )
        self._chain.emit(Sync(emitter=self.address, reserve0=balance0, reserve1=balance1))
