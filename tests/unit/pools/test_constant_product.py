"""Tests for the constant-product (volatile) pool."""

import pytest

from ammcore.constants import DEAD_ADDRESS, FEE_DENOMINATOR, MAX_SWAP_FEE, MINIMUM_LIQUIDITY
from ammcore.errors import (
    FeeTooHigh,
    InsufficientAAmount,
    InsufficientBAmount,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientLiquidityMinted,
    InsufficientLpBalance,
    InsufficientOutputAmount,
    InvalidTokens,
    MinAmountsNotMet,
    MinLiquidityNotMet,
    ReentrancyError,
    ReserveOverflow,
    TokenNotInPool,
)
from ammcore.pools.constant_product import ConstantProductPool, admin_fee_amount, get_amount_out
from tests.helpers import ALICE, BOB, DAI, ONE_ETHER, ONE_USDC, USDC, WETH, make_volatile_pool

# Pool order is (USDC, WETH): USDC sorts first
SEED = (100 * ONE_USDC, 100 * ONE_ETHER)


class TestGetAmountOut:
    """Tests for the constant-product output formula."""

    def test_matches_formula(self):
        """Output is in * (D - fee) * r_out / (r_in * D + in * (D - fee))."""
        fee = 3 * 10**7
        amount_in, r_in, r_out = 10**18, 50 * 10**18, 100_000 * 10**6
        with_fee = amount_in * (FEE_DENOMINATOR - fee)
        expected = with_fee * r_out // (r_in * FEE_DENOMINATOR + with_fee)
        assert get_amount_out(amount_in, r_in, r_out, fee) == expected

    def test_zero_fee_is_plain_xyk(self):
        """With no fee the output is r_out * in / (r_in + in)."""
        assert get_amount_out(100, 1000, 1000, 0) == 1000 * 100 // 1100

    def test_zero_input_raises(self):
        """Zero input is rejected."""
        with pytest.raises(InsufficientInputAmount) as exc_info:
            get_amount_out(0, 1000, 1000, 0)
        assert exc_info.value.reason == "INSUFFICIENT_INPUT_AMOUNT"

    def test_empty_reserves_raise(self):
        """Pricing against an empty reserve is rejected."""
        with pytest.raises(InsufficientLiquidity):
            get_amount_out(100, 0, 1000, 0)


class TestConstruction:
    """Tests for pool construction."""

    def test_requires_two_tokens(self):
        """Constant-product pools hold exactly two tokens."""
        with pytest.raises(InvalidTokens) as exc_info:
            ConstantProductPool("0x" + "11" * 20, [USDC, WETH, DAI])
        assert "only two tokens" in exc_info.value.reason

    def test_rejects_identical_tokens(self):
        """Both tokens must differ."""
        with pytest.raises(InvalidTokens):
            ConstantProductPool("0x" + "11" * 20, [USDC, USDC])

    def test_rejects_fee_above_max(self):
        """Swap fee is capped at MAX_SWAP_FEE."""
        with pytest.raises(FeeTooHigh):
            make_volatile_pool(swap_fee_rate=MAX_SWAP_FEE + 1)


class TestMint:
    """Tests for deposits."""

    def test_first_deposit_scenario(self):
        """First deposit of (100e6, 100e18) mints sqrt(product) - MINIMUM_LIQUIDITY."""
        pool = make_volatile_pool()
        minted = pool.mint(list(SEED), to=ALICE)

        assert minted == 10**14 - MINIMUM_LIQUIDITY
        assert pool.reserves == [100 * ONE_USDC, 100 * ONE_ETHER]
        assert pool.lp_token.balance_of(ALICE) == minted
        assert pool.lp_token.balance_of(DEAD_ADDRESS) == MINIMUM_LIQUIDITY
        assert pool.total_supply == 10**14

    def test_first_deposit_too_small(self):
        """A first deposit whose sqrt does not exceed the lock mints nothing."""
        pool = make_volatile_pool()
        with pytest.raises(InsufficientLiquidityMinted):
            pool.mint([1000, 1000], to=ALICE)
        assert pool.total_supply == 0

    def test_proportional_deposit(self):
        """Later deposits mint shares in proportion to the reserves."""
        pool = make_volatile_pool(reserves=SEED)
        minted = pool.mint([50 * ONE_USDC, 50 * ONE_ETHER], to=BOB)

        assert minted == 5 * 10**13
        assert pool.reserves == [150 * ONE_USDC, 150 * ONE_ETHER]

    def test_excess_is_not_absorbed(self):
        """Only the amounts backing the minted shares are added to reserves."""
        pool = make_volatile_pool(reserves=SEED)
        quote = pool.quote_mint([50 * ONE_USDC, 60 * ONE_ETHER])
        minted = pool.mint([50 * ONE_USDC, 60 * ONE_ETHER], to=BOB)

        assert minted == quote.liquidity == 5 * 10**13
        assert quote.amounts == (50 * ONE_USDC, 50 * ONE_ETHER)
        assert pool.reserves == [150 * ONE_USDC, 150 * ONE_ETHER]

    def test_quote_equals_mint(self):
        """quote_mint predicts exactly what mint does."""
        pool = make_volatile_pool(reserves=SEED)
        amounts = [12_345_678, 9 * ONE_ETHER]
        quote = pool.quote_mint(amounts)
        assert pool.mint(amounts, to=BOB) == quote.liquidity

    def test_min_liquidity_not_met(self):
        """A minimum above the minted shares is rejected without state change."""
        pool = make_volatile_pool(reserves=SEED)
        before = pool.snapshot()
        with pytest.raises(MinLiquidityNotMet) as exc_info:
            pool.mint([ONE_USDC, ONE_ETHER], min_liquidity=10**15, to=BOB)
        assert exc_info.value.reason == "Couldn't mint min requested"
        assert pool.snapshot() == before

    def test_reserve_overflow(self):
        """Reserves are bounded to 112 bits."""
        pool = make_volatile_pool()
        with pytest.raises(ReserveOverflow):
            pool.mint([2**112, 1], to=ALICE)


class TestOptimalAmounts:
    """Tests for reserve-ratio deposit sizing."""

    def test_empty_pool_takes_desired(self):
        """An empty pool accepts any ratio."""
        pool = make_volatile_pool()
        assert pool.optimal_amounts([1, 2], [0, 0]) == [1, 2]

    def test_sizes_token1_to_token0(self):
        """token1 is matched to the full token0 amount when possible."""
        pool = make_volatile_pool(reserves=SEED)
        assert pool.optimal_amounts([50 * ONE_USDC, 60 * ONE_ETHER], [0, 0]) == [
            50 * ONE_USDC,
            50 * ONE_ETHER,
        ]

    def test_sizes_token0_to_token1(self):
        """token0 is matched to token1 when token1 is the limiting side."""
        pool = make_volatile_pool(reserves=SEED)
        assert pool.optimal_amounts([50 * ONE_USDC, 40 * ONE_ETHER], [0, 0]) == [
            40 * ONE_USDC,
            40 * ONE_ETHER,
        ]

    def test_insufficient_b_amount(self):
        """Matched token1 below its minimum is rejected."""
        pool = make_volatile_pool(reserves=SEED)
        with pytest.raises(InsufficientBAmount) as exc_info:
            pool.optimal_amounts([50 * ONE_USDC, 60 * ONE_ETHER], [0, 55 * ONE_ETHER])
        assert exc_info.value.reason == "INSUFFICIENT_B_AMOUNT"

    def test_insufficient_a_amount(self):
        """Matched token0 below its minimum is rejected."""
        pool = make_volatile_pool(reserves=SEED)
        with pytest.raises(InsufficientAAmount) as exc_info:
            pool.optimal_amounts([50 * ONE_USDC, 40 * ONE_ETHER], [45 * ONE_USDC, 0])
        assert exc_info.value.reason == "INSUFFICIENT_A_AMOUNT"


class TestSwap:
    """Tests for swaps."""

    def test_swap_updates_reserves(self):
        """Reserves move by the input and the output."""
        pool = make_volatile_pool(reserves=SEED)
        expected = pool.get_amount_out(USDC, WETH, ONE_USDC)
        out = pool.swap(ONE_USDC, USDC)

        assert out == expected
        assert pool.reserves == [101 * ONE_USDC, 100 * ONE_ETHER - out]

    def test_k_never_decreases(self):
        """k grows with every swap in either direction."""
        pool = make_volatile_pool(reserves=SEED)
        for amount_in, token in [
            (ONE_USDC, USDC),
            (3 * ONE_ETHER, WETH),
            (7 * ONE_USDC, USDC),
            (1, WETH),
            (25 * ONE_ETHER, WETH),
        ]:
            k_before = pool.k
            try:
                pool.swap(amount_in, token)
            except InsufficientOutputAmount:
                continue
            assert pool.k >= k_before

    def test_zero_output_raises(self):
        """A swap too small to produce output is rejected."""
        pool = make_volatile_pool(reserves=(10**6, 10**6 * 10**12))
        with pytest.raises(InsufficientOutputAmount) as exc_info:
            pool.swap(1, WETH)
        assert exc_info.value.reason == "INSUFFICIENT_OUTPUT_AMOUNT"

    def test_min_amount_out(self):
        """A minimum above the output is rejected and reserves are unchanged."""
        pool = make_volatile_pool(reserves=SEED)
        reserves = list(pool.reserves)
        out = pool.get_amount_out(USDC, WETH, ONE_USDC)
        with pytest.raises(InsufficientOutputAmount):
            pool.swap(ONE_USDC, USDC, min_amount_out=out + 1)
        assert pool.reserves == reserves

    def test_unknown_token(self):
        """Swapping a token the pool does not hold is rejected."""
        pool = make_volatile_pool(reserves=SEED)
        with pytest.raises(TokenNotInPool):
            pool.swap(ONE_ETHER, DAI)

    def test_admin_fee_excluded_from_reserves(self):
        """The protocol share of the fee is tracked apart from the reserves."""
        pool = make_volatile_pool(admin_fee_rate=5 * 10**9)
        pool.mint([1_000_000 * ONE_USDC, 1_000 * ONE_ETHER], to=ALICE)
        amount_in = 1_000 * ONE_USDC

        pool.swap(amount_in, USDC)

        admin_fee = admin_fee_amount(amount_in, pool.swap_fee_rate, pool.admin_fee_rate)
        assert admin_fee == 1_500_000
        assert pool.admin_fees == [admin_fee, 0]
        assert pool.reserves[0] == 1_000_000 * ONE_USDC + amount_in - admin_fee

    def test_claim_fees_resets(self):
        """Claiming returns the accrued fees and zeroes them."""
        pool = make_volatile_pool(admin_fee_rate=5 * 10**9)
        pool.mint([1_000_000 * ONE_USDC, 1_000 * ONE_ETHER], to=ALICE)
        pool.swap(1_000 * ONE_USDC, USDC)

        assert pool.claim_fees() == [1_500_000, 0]
        assert pool.admin_fees == [0, 0]

    def test_reentry_is_locked(self, monkeypatch):
        """A collaborator calling back into the pool fails with LOCKED and nothing changes."""
        pool = make_volatile_pool(reserves=SEED)
        before = pool.snapshot()

        def reenter(recipient, amount):
            pool.swap(ONE_USDC, USDC)

        monkeypatch.setattr(pool.lp_token, "mint", reenter)
        with pytest.raises(ReentrancyError) as exc_info:
            pool.mint([ONE_USDC, ONE_ETHER], to=BOB)
        assert exc_info.value.reason == "LOCKED"
        assert pool.snapshot() == before
        assert pool.swap(ONE_USDC, USDC) > 0


class TestBurn:
    """Tests for withdrawals."""

    def test_round_trip_never_returns_more(self):
        """Burning freshly minted shares returns at most the deposit."""
        pool = make_volatile_pool(reserves=SEED)
        deposit = [10 * ONE_USDC, 10 * ONE_ETHER]
        minted = pool.mint(deposit, to=BOB)

        amounts = pool.burn(minted, owner=BOB)

        assert all(a <= d for a, d in zip(amounts, deposit, strict=True))
        assert pool.lp_token.balance_of(BOB) == 0

    def test_full_exit_keeps_locked_liquidity(self):
        """The first provider cannot withdraw the locked shares."""
        pool = make_volatile_pool(reserves=SEED)
        amounts = pool.burn(pool.lp_token.balance_of(ALICE), owner=ALICE)

        assert amounts == [100 * ONE_USDC - 1, 100 * ONE_ETHER - 10**9]
        assert pool.total_supply == MINIMUM_LIQUIDITY
        assert pool.reserves == [1, 10**9]

    def test_burn_more_than_balance(self):
        """Burning more shares than owned is rejected."""
        pool = make_volatile_pool(reserves=SEED)
        with pytest.raises(InsufficientLpBalance) as exc_info:
            pool.burn(1, owner=BOB)
        assert exc_info.value.reason == ">LP.balanceOf"

    def test_min_amounts(self):
        """Payouts below the minimums are rejected without state change."""
        pool = make_volatile_pool(reserves=SEED)
        before = pool.snapshot()
        with pytest.raises(MinAmountsNotMet) as exc_info:
            pool.burn(10**13, [10 * ONE_USDC + 1, 0], owner=ALICE)
        assert exc_info.value.reason == "_amount < _amountsMin"
        assert pool.snapshot() == before
