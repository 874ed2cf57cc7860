"""Pytest configuration and shared fixtures.

Every test gets a fresh Chain, so no state leaks between tests.
"""

import pytest

from cpmm.chain import Chain
from cpmm.constants import UINT256_MAX
from cpmm.pools.ledger import PoolLedger
from cpmm.pools.registry import PoolRegistry
from cpmm.routing.router import Router
from cpmm.tokens.erc20 import MintableToken
from tests.helpers.constants import GENESIS_TIMESTAMP, ONE, TOKEN_0, TOKEN_1, TOKEN_2

# Balance every named account starts with, per asset
STARTING_BALANCE = 10_000 * ONE


@pytest.fixture
def chain() -> Chain:
    """Fresh chain with a fixed clock."""
    return Chain(timestamp=GENESIS_TIMESTAMP)


@pytest.fixture
def alice(chain: Chain) -> str:
    return chain.account("alice")


@pytest.fixture
def bob(chain: Chain) -> str:
    return chain.account("bob")


@pytest.fixture
def token0(chain: Chain, alice: str, bob: str) -> MintableToken:
    token = MintableToken(chain, TOKEN_0, name="Token Zero", symbol="TK0")
    token.mint(alice, STARTING_BALANCE)
    token.mint(bob, STARTING_BALANCE)
    return token


@pytest.fixture
def token1(chain: Chain, alice: str, bob: str) -> MintableToken:
    token = MintableToken(chain, TOKEN_1, name="Token One", symbol="TK1")
    token.mint(alice, STARTING_BALANCE)
    token.mint(bob, STARTING_BALANCE)
    return token


@pytest.fixture
def token2(chain: Chain, alice: str, bob: str) -> MintableToken:
    token = MintableToken(chain, TOKEN_2, name="Token Two", symbol="TK2")
    token.mint(alice, STARTING_BALANCE)
    token.mint(bob, STARTING_BALANCE)
    return token


@pytest.fixture
def registry(chain: Chain) -> PoolRegistry:
    return PoolRegistry(chain)


@pytest.fixture
def ledger(
    chain: Chain, registry: PoolRegistry, token0: MintableToken, token1: MintableToken
) -> PoolLedger:
    """Empty ledger for (token0, token1)."""
    address = registry.create(token0.address, token1.address)
    ledger: PoolLedger = chain.require_contract(address)
    return ledger


@pytest.fixture
def router(
    chain: Chain,
    registry: PoolRegistry,
    alice: str,
    bob: str,
    token0: MintableToken,
    token1: MintableToken,
    token2: MintableToken,
) -> Router:
    """Router with unlimited approvals from alice and bob on every asset."""
    router = Router(chain, registry)
    for account in (alice, bob):
        for token in (token0, token1, token2):
            token.approve(account, router.address, UINT256_MAX)
    return router
