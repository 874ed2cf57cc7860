"""Router: liquidity management and multi-hop swaps across ledgers.

The router never holds funds between calls. It plans amounts with the
pricing math, pulls the caller's input straight into the first ledger, and
has every hop pay its output directly into the next ledger. Each public call
is one atomic scope, so a failing hop reverts the whole route.

Callers approve the router on each input asset first:

    token.approve(alice, router.address, amount)
    router.swap_exact_tokens_for_tokens(amount, min_out, [a, b, c], alice, deadline, sender=alice)
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from cpmm.chain import Chain
from cpmm.errors import (
    ExcessiveInputAmount,
    Expired,
    InsufficientAAmount,
    InsufficientBAmount,
    InsufficientOutputAmount,
    InvalidPath,
    PairNotFound,
)
from cpmm.math import pricing
from cpmm.math.pricing import sort_tokens
from cpmm.models.types import normalize_address
from cpmm.pools.address import compute_ledger_address
from cpmm.pools.ledger import PoolLedger
from cpmm.pools.registry import PoolRegistry
from cpmm.routing.types import HopResult, LiquidityResult, SwapResult
from cpmm.tokens.base import Asset
from cpmm.tokens.transfer import safe_transfer_from

logger = structlog.get_logger()


class Router:
    """Stateless periphery over a PoolRegistry's ledgers."""

    def __init__(self, chain: Chain, registry: PoolRegistry, address: str | None = None) -> None:
        self._chain = chain
        self.registry = registry
        self.address = normalize_address(address or chain.account("cpmm.router"))
        self.fee_multiplier = registry.config.fee_multiplier
        chain.deploy(self)

    # --- Quotes ---

    def get_amounts_out(self, amount_in: int, path: Sequence[str]) -> list[int]:
        """Outputs of every hop for an exact input."""
        return pricing.get_amounts_out(self.registry, amount_in, path, self.fee_multiplier)

    def get_amounts_in(self, amount_out: int, path: Sequence[str]) -> list[int]:
        """Inputs every hop needs for an exact final output."""
        return pricing.get_amounts_in(self.registry, amount_out, path, self.fee_multiplier)

    # --- Liquidity ---

    def add_liquidity(
        self,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
        *,
        sender: str,
    ) -> LiquidityResult:
        """Deposit at the current ratio, creating the ledger if the pair is new.

        Raises:
            Expired: If deadline has passed
            InsufficientAAmount: If the optimal amount of A is below amount_a_min
            InsufficientBAmount: If the optimal amount of B is below amount_b_min
        """
        with self._chain.atomic():
            self._ensure(deadline)
            if self.registry.lookup(token_a, token_b) is None:
                self.registry.create(token_a, token_b)
            amount_a, amount_b = self._optimal_amounts(
                token_a, token_b, amount_a_desired, amount_b_desired, amount_a_min, amount_b_min
            )
            ledger = self._ledger_for(token_a, token_b)
            safe_transfer_from(self._asset(token_a), self.address, sender, ledger.address, amount_a)
            safe_transfer_from(self._asset(token_b), self.address, sender, ledger.address, amount_b)
            liquidity = ledger.deposit(to, sender=self.address)

        logger.debug(
            "liquidity_added",
            ledger=ledger.address[-8:],
            amount_a=amount_a,
            amount_b=amount_b,
            liquidity=liquidity,
        )
        return LiquidityResult(amount_a=amount_a, amount_b=amount_b, liquidity=liquidity)

    def remove_liquidity(
        self,
        token_a: str,
        token_b: str,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
        *,
        sender: str,
    ) -> LiquidityResult:
        """Return `liquidity` claim units to the ledger and redeem them.

        Each minimum is checked against its own asset's payout.

        Raises:
            Expired: If deadline has passed
            InsufficientAAmount: If the payout of A is below amount_a_min
            InsufficientBAmount: If the payout of B is below amount_b_min
        """
        with self._chain.atomic():
            self._ensure(deadline)
            ledger = self._ledger_for(token_a, token_b)
            safe_transfer_from(ledger.claims, self.address, sender, ledger.address, liquidity)
            amount0, amount1 = ledger.withdraw(to, sender=self.address)

            token0, _ = sort_tokens(token_a, token_b)
            if normalize_address(token_a) == token0:
                amount_a, amount_b = amount0, amount1
            else:
                amount_a, amount_b = amount1, amount0
            if amount_a < amount_a_min:
                raise InsufficientAAmount(f"Received {amount_a} A, minimum {amount_a_min}")
            if amount_b < amount_b_min:
                raise InsufficientBAmount(f"Received {amount_b} B, minimum {amount_b_min}")

        logger.debug(
            "liquidity_removed",
            ledger=ledger.address[-8:],
            amount_a=amount_a,
            amount_b=amount_b,
            liquidity=liquidity,
        )
        return LiquidityResult(amount_a=amount_a, amount_b=amount_b, liquidity=liquidity)

    # --- Swaps ---

    def swap_exact_tokens_for_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
        *,
        sender: str,
    ) -> SwapResult:
        """Sell exactly `amount_in` of path[0] for at least `amount_out_min` of path[-1].

        Raises:
            Expired: If deadline has passed
            InsufficientOutputAmount: If the planned output is below amount_out_min
        """
        path = [normalize_address(t) for t in path]
        with self._chain.atomic():
            self._ensure(deadline)
            amounts = self.get_amounts_out(amount_in, path)
            if amounts[-1] < amount_out_min:
                raise InsufficientOutputAmount(
                    f"Output {amounts[-1]} below minimum {amount_out_min}"
                )
            first = self._ledger_for(path[0], path[1])
            safe_transfer_from(
                self._asset(path[0]), self.address, sender, first.address, amounts[0]
            )
            hops = self._swap(amounts, path, to)

        return self._result(path, amounts, hops, to)

    def swap_tokens_for_exact_tokens(
        self,
        amount_out: int,
        amount_in_max: int,
        path: Sequence[str],
        to: str,
        deadline: int,
        *,
        sender: str,
    ) -> SwapResult:
        """Buy exactly `amount_out` of path[-1] for at most `amount_in_max` of path[0].

        Raises:
            Expired: If deadline has passed
            ExcessiveInputAmount: If the required input exceeds amount_in_max
        """
        path = [normalize_address(t) for t in path]
        with self._chain.atomic():
            self._ensure(deadline)
            amounts = self.get_amounts_in(amount_out, path)
            if amounts[0] > amount_in_max:
                raise ExcessiveInputAmount(f"Input {amounts[0]} above maximum {amount_in_max}")
            first = self._ledger_for(path[0], path[1])
            safe_transfer_from(
                self._asset(path[0]), self.address, sender, first.address, amounts[0]
            )
            hops = self._swap(amounts, path, to)

        return self._result(path, amounts, hops, to)

    def swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
        *,
        sender: str,
    ) -> SwapResult:
        """Exact-input swap for assets that deliver less than the amount sent.

        Each hop sizes its output from what actually arrived in the ledger, and
        the minimum is checked against the recipient's balance change.

        Raises:
            Expired: If deadline has passed
            InsufficientOutputAmount: If the recipient received less than amount_out_min
        """
        path = [normalize_address(t) for t in path]
        if len(path) < 2:
            raise InvalidPath(f"Path needs at least two tokens, got {len(path)}")
        with self._chain.atomic():
            self._ensure(deadline)
            first = self._ledger_for(path[0], path[1])
            safe_transfer_from(self._asset(path[0]), self.address, sender, first.address, amount_in)
            token_out = self._asset(path[-1])
            balance_before = token_out.balance_of(to)

            hops: list[HopResult] = []
            for i in range(len(path) - 1):
                input_token, output_token = path[i], path[i + 1]
                ledger = self._ledger_for(input_token, output_token)
                reserve_in, reserve_out = ledger.get_reserves_for(input_token)
                amount_input = self._asset(input_token).balance_of(ledger.address) - reserve_in
                amount_output = pricing.get_amount_out(
                    amount_input, reserve_in, reserve_out, self.fee_multiplier
                )
                hops.append(
                    self._hop(
                        ledger, input_token, output_token, amount_input, amount_output, path, i, to
                    )
                )

            received = token_out.balance_of(to) - balance_before
            if received < amount_out_min:
                raise InsufficientOutputAmount(f"Received {received}, minimum {amount_out_min}")

        amounts = [amount_in] + [hop.amount_out for hop in hops[:-1]] + [received]
        return self._result(path, amounts, hops, to)

    # --- Internals ---

    def _ensure(self, deadline: int) -> None:
        if deadline < self._chain.timestamp:
            raise Expired(f"Deadline {deadline} before {self._chain.timestamp}")

    def _asset(self, token: str) -> Asset:
        asset: Asset = self._chain.require_contract(token)
        return asset

    def _ledger_for(self, token_a: str, token_b: str) -> PoolLedger:
        """Resolve a ledger through its derived address, without asking the registry."""
        address = compute_ledger_address(self.registry.address, token_a, token_b)
        ledger = self._chain.contract_at(address)
        if not isinstance(ledger, PoolLedger):
            raise PairNotFound(f"No ledger for {token_a}/{token_b}")
        return ledger

    def _optimal_amounts(
        self,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
    ) -> tuple[int, int]:
        reserve_a, reserve_b = self.registry.get_reserves(token_a, token_b)
        if reserve_a == 0 and reserve_b == 0:
            return amount_a_desired, amount_b_desired

        amount_b_optimal = pricing.quote(amount_a_desired, reserve_a, reserve_b)
        if amount_b_optimal <= amount_b_desired:
            if amount_b_optimal < amount_b_min:
                raise InsufficientBAmount(f"Optimal B {amount_b_optimal} below {amount_b_min}")
            return amount_a_desired, amount_b_optimal

        amount_a_optimal = pricing.quote(amount_b_desired, reserve_b, reserve_a)
        if amount_a_optimal > amount_a_desired:
            raise ExcessiveInputAmount(f"Optimal A {amount_a_optimal} above {amount_a_desired}")
        if amount_a_optimal < amount_a_min:
            raise InsufficientAAmount(f"Optimal A {amount_a_optimal} below {amount_a_min}")
        return amount_a_optimal, amount_b_desired

    def _swap(self, amounts: list[int], path: list[str], to: str) -> list[HopResult]:
        """Execute planned hops; the first ledger must already hold amounts[0]."""
        hops = []
        for i in range(len(path) - 1):
            ledger = self._ledger_for(path[i], path[i + 1])
            hops.append(
                self._hop(ledger, path[i], path[i + 1], amounts[i], amounts[i + 1], path, i, to)
            )
        return hops

    def _hop(
        self,
        ledger: PoolLedger,
        input_token: str,
        output_token: str,
        amount_in: int,
        amount_out: int,
        path: list[str],
        index: int,
        to: str,
    ) -> HopResult:
        token0, _ = sort_tokens(input_token, output_token)
        amount0_out, amount1_out = (0, amount_out) if input_token == token0 else (amount_out, 0)
        if index < len(path) - 2:
            recipient = compute_ledger_address(self.registry.address, output_token, path[index + 2])
        else:
            recipient = to
        ledger.exchange(amount0_out, amount1_out, recipient, sender=self.address)
        return HopResult(
            ledger=ledger.address,
            input_token=input_token,
            output_token=output_token,
            amount_in=amount_in,
            amount_out=amount_out,
        )

    def _result(
        self, path: list[str], amounts: list[int], hops: list[HopResult], to: str
    ) -> SwapResult:
        result = SwapResult(path=path, amounts=amounts, hops=hops, recipient=normalize_address(to))
        logger.debug(
            "swap_routed",
            hops=len(hops),
            token_in=path[0][-8:],
            token_out=path[-1][-8:],
            amount_in=result.amount_in,
            amount_out=result.amount_out,
        )
        return result
