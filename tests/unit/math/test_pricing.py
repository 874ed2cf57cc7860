"""Tests for constant-product pricing math."""

import pytest

from cpmm.constants import ZERO_ADDRESS
from cpmm.errors import (
    IdenticalAddresses,
    InsufficientLiquidity,
    InvalidPath,
    ZeroAddress,
    ZeroAmount,
)
from cpmm.math.pricing import (
    get_amount_in,
    get_amount_out,
    get_amounts_in,
    get_amounts_out,
    quote,
    sort_tokens,
)
from tests.helpers.constants import ONE, TOKEN_0, TOKEN_1, TOKEN_2, expand_to_18_decimals


class StaticReserves:
    """ReserveSource backed by a dict of ordered pairs."""

    def __init__(self, reserves: dict[tuple[str, str], tuple[int, int]]):
        self.reserves = reserves

    def get_reserves(self, token_a: str, token_b: str) -> tuple[int, int]:
        if (token_a, token_b) in self.reserves:
            return self.reserves[(token_a, token_b)]
        reserve_b, reserve_a = self.reserves[(token_b, token_a)]
        return reserve_a, reserve_b


class TestSortTokens:
    """Tests for canonical pair ordering."""

    def test_orders_by_address(self):
        assert sort_tokens(TOKEN_1, TOKEN_0) == (TOKEN_0, TOKEN_1)
        assert sort_tokens(TOKEN_0, TOKEN_1) == (TOKEN_0, TOKEN_1)

    def test_case_insensitive(self):
        upper = "0x" + "AB" * 20
        lower = "0x" + "ab" * 20
        assert sort_tokens(upper, TOKEN_0) == (TOKEN_0, lower)

    def test_identical_rejected(self):
        with pytest.raises(IdenticalAddresses):
            sort_tokens(TOKEN_0, TOKEN_0.upper().replace("0X", "0x"))

    def test_zero_address_rejected(self):
        with pytest.raises(ZeroAddress):
            sort_tokens(ZERO_ADDRESS, TOKEN_0)


class TestQuote:
    """Tests for proportional quotes."""

    def test_proportional(self):
        assert quote(1, 100, 200) == 2
        assert quote(2, 200, 100) == 1

    def test_rounds_down(self):
        assert quote(1, 3, 2) == 0

    def test_zero_amount(self):
        with pytest.raises(ZeroAmount):
            quote(0, 100, 200)

    @pytest.mark.parametrize("reserve_a,reserve_b", [(0, 100), (100, 0)])
    def test_empty_reserves(self, reserve_a, reserve_b):
        with pytest.raises(InsufficientLiquidity):
            quote(1, reserve_a, reserve_b)


class TestGetAmountOut:
    """Tests for exact-input pricing."""

    @pytest.mark.parametrize(
        "swap_amount,reserve_in,reserve_out,expected",
        [
            (1, 5, 10, 1662497915624478906),
            (1, 10, 5, 453305446940074565),
            (2, 5, 10, 2851015155847869602),
            (2, 10, 5, 831248957812239453),
            (1, 10, 10, 906610893880149131),
            (1, 100, 100, 987158034397061298),
            (1, 1000, 1000, 996006981039903216),
        ],
    )
    def test_known_outputs(self, swap_amount, reserve_in, reserve_out, expected):
        """Outputs match the 997/1000 formula for 18-decimal amounts."""
        assert (
            get_amount_out(
                expand_to_18_decimals(swap_amount),
                expand_to_18_decimals(reserve_in),
                expand_to_18_decimals(reserve_out),
            )
            == expected
        )

    def test_small_values(self):
        assert get_amount_out(2, 100, 100) == 1

    def test_zero_fee(self):
        """With no fee the output is the plain constant-product amount."""
        assert get_amount_out(100, 1000, 1000, fee_multiplier=10_000) == 90

    def test_zero_input(self):
        with pytest.raises(ZeroAmount):
            get_amount_out(0, 100, 100)

    @pytest.mark.parametrize("reserve_in,reserve_out", [(0, 100), (100, 0)])
    def test_empty_reserves(self, reserve_in, reserve_out):
        with pytest.raises(InsufficientLiquidity):
            get_amount_out(1, reserve_in, reserve_out)

    def test_output_below_reserve(self):
        """Even a huge input cannot drain the output reserve."""
        assert get_amount_out(10**40, 100, 100) < 100


class TestGetAmountIn:
    """Tests for exact-output pricing."""

    def test_small_values(self):
        assert get_amount_in(1, 100, 100) == 2

    def test_rounds_up(self):
        """The +1 makes the required input strictly above the exact value."""
        # Exact value is 1000 * 10 * 10000 / (990 * 9970) = 10.13...
        assert get_amount_in(10, 1000, 1000) == 11

    def test_zero_output(self):
        with pytest.raises(ZeroAmount):
            get_amount_in(0, 100, 100)

    @pytest.mark.parametrize("reserve_in,reserve_out", [(0, 100), (100, 0)])
    def test_empty_reserves(self, reserve_in, reserve_out):
        with pytest.raises(InsufficientLiquidity):
            get_amount_in(1, reserve_in, reserve_out)

    @pytest.mark.parametrize("amount_out", [100, 101])
    def test_output_at_or_above_reserve(self, amount_out):
        with pytest.raises(InsufficientLiquidity):
            get_amount_in(amount_out, 100, 100)

    @pytest.mark.parametrize(
        "amount_out,reserve_in,reserve_out",
        [
            (1, 100, 100),
            (ONE, 5 * ONE, 10 * ONE),
            (123_456_789, 10**21, 3 * 10**20),
            (10**18 - 1, 7 * 10**18, 10**18),
        ],
    )
    def test_input_always_buys_requested_output(self, amount_out, reserve_in, reserve_out):
        """Paying get_amount_in yields at least the requested output."""
        amount_in = get_amount_in(amount_out, reserve_in, reserve_out)
        assert get_amount_out(amount_in, reserve_in, reserve_out) >= amount_out

    @pytest.mark.parametrize(
        "amount_in,reserve_in,reserve_out",
        [
            (ONE, 5 * ONE, 10 * ONE),
            (2 * ONE, 10 * ONE, 5 * ONE),
            (999, 10**6, 10**9),
        ],
    )
    def test_round_trip_never_asks_more_than_paid(self, amount_in, reserve_in, reserve_out):
        """The output an input buys never costs more than that input (plus rounding)."""
        amount_out = get_amount_out(amount_in, reserve_in, reserve_out)
        assert get_amount_in(amount_out, reserve_in, reserve_out) <= amount_in + 1


class TestMultiHop:
    """Tests for chained quotes over a path."""

    @pytest.fixture
    def reserves(self):
        return StaticReserves(
            {
                (TOKEN_0, TOKEN_1): (5 * ONE, 10 * ONE),
                (TOKEN_1, TOKEN_2): (10 * ONE, 20 * ONE),
            }
        )

    def test_amounts_out_single_hop(self, reserves):
        assert get_amounts_out(reserves, ONE, [TOKEN_0, TOKEN_1]) == [ONE, 1662497915624478906]

    def test_amounts_out_chains_hops(self, reserves):
        amounts = get_amounts_out(reserves, ONE, [TOKEN_0, TOKEN_1, TOKEN_2])
        assert amounts[0] == ONE
        assert amounts[1] == get_amount_out(ONE, 5 * ONE, 10 * ONE)
        assert amounts[2] == get_amount_out(amounts[1], 10 * ONE, 20 * ONE)

    def test_amounts_out_reverse_direction(self, reserves):
        amounts = get_amounts_out(reserves, ONE, [TOKEN_2, TOKEN_1])
        assert amounts[1] == get_amount_out(ONE, 20 * ONE, 10 * ONE)

    def test_amounts_in_chains_hops(self, reserves):
        amounts = get_amounts_in(reserves, ONE, [TOKEN_0, TOKEN_1, TOKEN_2])
        assert amounts[2] == ONE
        assert amounts[1] == get_amount_in(ONE, 10 * ONE, 20 * ONE)
        assert amounts[0] == get_amount_in(amounts[1], 5 * ONE, 10 * ONE)

    def test_amounts_in_cover_amounts_out(self, reserves):
        """Feeding the planned input forward yields at least the requested output."""
        path = [TOKEN_0, TOKEN_1, TOKEN_2]
        amounts_in = get_amounts_in(reserves, ONE, path)
        assert get_amounts_out(reserves, amounts_in[0], path)[-1] >= ONE

    @pytest.mark.parametrize("path", [[], [TOKEN_0]])
    def test_short_path_rejected(self, reserves, path):
        with pytest.raises(InvalidPath):
            get_amounts_out(reserves, ONE, path)
        with pytest.raises(InvalidPath):
            get_amounts_in(reserves, ONE, path)

    def test_custom_fee(self, reserves):
        no_fee = get_amounts_out(reserves, ONE, [TOKEN_0, TOKEN_1], fee_multiplier=10_000)
        assert no_fee[1] > get_amounts_out(reserves, ONE, [TOKEN_0, TOKEN_1])[1]
