"""Tests for the Chain clock, address space, journal and notifications."""

import pytest
from structlog.testing import capture_logs

from cpmm.chain import Chain
from cpmm.constants import UINT32_MODULUS
from cpmm.errors import ContractNotFound
from cpmm.models.events import Deposit, Sync, Transfer
from cpmm.tokens.erc20 import MintableToken
from tests.helpers import GENESIS_TIMESTAMP, ONE, TOKEN_0, add_liquidity


class CountingToken(MintableToken):
    """Token that counts how often its state is captured."""

    def __init__(self, *args, **kwargs):
        self.snapshots = 0
        super().__init__(*args, **kwargs)

    def snapshot(self):
        self.snapshots += 1
        return super().snapshot()


@pytest.fixture
def token(chain, alice):
    token = MintableToken(chain, TOKEN_0)
    token.mint(alice, 10 * ONE)
    return token


class TestClock:
    def test_initial_timestamp(self, chain):
        assert chain.timestamp == GENESIS_TIMESTAMP
        assert chain.block_timestamp == GENESIS_TIMESTAMP

    def test_advance(self, chain):
        assert chain.advance_time(60) == GENESIS_TIMESTAMP + 60

    def test_cannot_go_backwards(self, chain):
        with pytest.raises(ValueError):
            chain.advance_time(-1)

    def test_block_timestamp_wraps(self):
        chain = Chain(timestamp=UINT32_MODULUS + 7)
        assert chain.block_timestamp == 7

    def test_defaults_to_wall_clock(self):
        assert Chain().timestamp > GENESIS_TIMESTAMP


class TestAddressSpace:
    def test_account_is_stable(self):
        assert Chain.account("alice") == Chain.account("alice")
        assert Chain.account("alice") != Chain.account("bob")
        assert len(Chain.account("alice")) == 42

    def test_deploy_and_lookup(self, chain, token):
        assert chain.contract_at(TOKEN_0) is token
        assert chain.contract_at(TOKEN_0.upper().replace("0X", "0x")) is token
        assert chain.require_contract(TOKEN_0) is token

    def test_duplicate_address(self, chain, token):
        with pytest.raises(ValueError):
            MintableToken(chain, TOKEN_0)

    def test_missing_contract(self, chain):
        assert chain.contract_at(TOKEN_0) is None
        with pytest.raises(ContractNotFound):
            chain.require_contract(TOKEN_0)


class TestAtomic:
    def test_commit(self, chain, token, alice, bob):
        with chain.atomic():
            token.transfer(alice, bob, ONE)
        assert token.balance_of(bob) == ONE

    def test_rollback_restores_state(self, chain, token, alice, bob):
        with pytest.raises(RuntimeError):
            with chain.atomic():
                token.transfer(alice, bob, ONE)
                token.transfer(alice, bob, ONE)
                raise RuntimeError("boom")
        assert token.balance_of(alice) == 10 * ONE
        assert token.balance_of(bob) == 0

    def test_rollback_undoes_deployments(self, chain):
        with pytest.raises(RuntimeError):
            with chain.atomic():
                MintableToken(chain, TOKEN_0)
                raise RuntimeError("boom")
        assert chain.contract_at(TOKEN_0) is None
        # The address is free again
        MintableToken(chain, TOKEN_0)

    def test_inner_failure_caught_by_outer(self, chain, token, alice, bob):
        """A caught inner failure undoes only the inner scope."""
        with chain.atomic():
            token.transfer(alice, bob, ONE)
            try:
                with chain.atomic():
                    token.transfer(alice, bob, ONE)
                    raise RuntimeError("inner")
            except RuntimeError:
                pass
        assert token.balance_of(bob) == ONE

    def test_outer_failure_undoes_committed_inner(self, chain, token, alice, bob):
        with pytest.raises(RuntimeError):
            with chain.atomic():
                with chain.atomic():
                    token.transfer(alice, bob, ONE)
                raise RuntimeError("outer")
        assert token.balance_of(bob) == 0

    def test_outer_capture_survives_committed_inner(self, chain, token, alice, bob):
        """State written before a committed inner scope is restored by the outer one."""
        with pytest.raises(RuntimeError):
            with chain.atomic():
                token.transfer(alice, bob, ONE)
                with chain.atomic():
                    token.transfer(alice, bob, ONE)
                raise RuntimeError("outer")
        assert token.balance_of(alice) == 10 * ONE
        assert token.balance_of(bob) == 0


class TestJournalCost:
    """Only objects written inside a scope are captured."""

    def test_untouched_tokens_not_captured(self, chain, alice, bob):
        tokens = [CountingToken(chain, f"0x{i + 1:040x}") for i in range(300)]
        busy = tokens[0]

        busy.mint(alice, ONE)
        busy.transfer(alice, bob, ONE)

        assert busy.snapshots == 2
        assert sum(t.snapshots for t in tokens[1:]) == 0

    def test_one_capture_per_scope(self, chain, alice, bob):
        token = CountingToken(chain, TOKEN_0)
        token.mint(alice, 10 * ONE)
        token.snapshots = 0

        with chain.atomic():
            for _ in range(5):
                token.transfer(alice, bob, ONE)

        # Each transfer captures once; the outer scope keeps the first capture
        assert token.snapshots == 5

    def test_writes_outside_a_scope_are_not_captured(self, chain, alice, bob):
        token = CountingToken(chain, TOKEN_0)
        token.approve(alice, bob, ONE)
        assert token.snapshots == 0
        assert token.allowance(alice, bob) == ONE


class TestNotifications:
    def test_published_on_commit(self, chain, token, alice, bob):
        seen = []
        chain.subscribe(seen.append)
        with chain.atomic():
            token.transfer(alice, bob, ONE)
            assert seen == []
        assert [type(e) for e in seen] == [Transfer]
        assert chain.events[-1] is seen[0]

    def test_discarded_on_rollback(self, chain, token, alice, bob):
        count = len(chain.events)
        with pytest.raises(RuntimeError):
            with chain.atomic():
                token.transfer(alice, bob, ONE)
                raise RuntimeError("boom")
        assert len(chain.events) == count

    def test_emit_outside_atomic_publishes_immediately(self, chain):
        chain.emit(Sync(emitter=TOKEN_0, reserve0=1, reserve1=2))
        assert chain.events_of(Sync)[-1].reserve1 == 2

    def test_unsubscribe(self, chain, token, alice, bob):
        seen = []
        unsubscribe = chain.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        token.transfer(alice, bob, ONE)
        assert seen == []

    def test_failing_subscriber_does_not_revert(self, chain, token, alice, bob):
        def broken(event):
            raise RuntimeError("indexer down")

        seen = []
        chain.subscribe(broken)
        chain.subscribe(seen.append)

        with capture_logs() as logs:
            token.transfer(alice, bob, ONE)

        assert token.balance_of(bob) == ONE
        assert len(seen) == 1
        assert any(log["event"] == "event_subscriber_failed" for log in logs)

    def test_failing_subscriber_during_ledger_operation(
        self, chain, ledger, token0, token1, alice
    ):
        def broken(event):
            raise RuntimeError("indexer down")

        seen = []
        chain.subscribe(broken)
        chain.subscribe(seen.append)

        with capture_logs() as logs:
            minted = add_liquidity(ledger, token0, token1, alice, ONE, ONE)

        assert minted == ONE - 1000
        assert (ledger.reserve0, ledger.reserve1) == (ONE, ONE)
        assert len(chain.events_of(Deposit)) == 1
        assert len(chain.events_of(Sync)) == 1
        assert any(isinstance(e, Deposit) for e in seen)
        failures = [log for log in logs if log["event"] == "event_subscriber_failed"]
        assert "Deposit" in {log["event_name"] for log in failures}

    def test_batch_recorded_before_subscribers_run(self, chain, ledger, token0, token1, alice):
        token0.transfer(alice, ledger.address, ONE)
        token1.transfer(alice, ledger.address, ONE)
        recorded = []
        chain.subscribe(lambda event: recorded.append(len(chain.events)))
        count = len(chain.events)

        ledger.deposit(alice)

        # Lock mint, claim mint, Sync and Deposit all land before the first callback
        assert len(chain.events) == count + 4
        assert recorded == [count + 4] * 4

    def test_events_of_filters(self, chain, token, alice, bob):
        token.transfer(alice, bob, ONE)
        assert all(isinstance(e, Transfer) for e in chain.events_of(Transfer))
        assert chain.events_of(Sync) == []
