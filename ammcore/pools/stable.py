"""StableSwap ("stable") pool.

N tokens (2 to 32) priced with the StableSwap invariant. Token balances
are normalized to 18 decimals with per-token precision multipliers before
any invariant math, so tokens with different decimals can share a pool.

Every public operation is split into a pure preview (quote_* / calculate_*)
and a mutating entry point that applies the same preview. A quote and the
operation it previews therefore always agree.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from ammcore.collaborators import Clock, system_clock
from ammcore.config import DEFAULT_ENGINE_CONFIG
from ammcore.constants import FEE_DENOMINATOR, MAX_POOLED_TOKENS, POOL_PRECISION_DECIMALS
from ammcore.errors import (
    AmountsLengthMismatch,
    BurntAmountZero,
    CannotMintZero,
    DShouldIncrease,
    InsufficientInputAmount,
    InsufficientLpBalance,
    InsufficientOutputAmount,
    InvalidTokenIndex,
    InvalidTokens,
    MaxBurnExceeded,
    MinAmountsNotMet,
    MinLiquidityNotMet,
    MustSupplyAllTokens,
    WithdrawExceedsAvailable,
)
from ammcore.math.fixed_point import ceil_div, mul_div_down
from ammcore.math.safe_int import S
from ammcore.models.route import PairType
from ammcore.pools.amplification import Amplification
from ammcore.pools.base import Pool, nonreentrant
from ammcore.pools.liquidity import fee_per_token, imbalance_fees, proportional_amounts
from ammcore.pools.stable_math import get_d, get_y, get_yd

logger = structlog.get_logger()

ONE_18 = 10**18


@dataclass(frozen=True)
class SwapQuote:
    """Preview of a stable swap."""

    amount_out: int
    admin_fee: int


@dataclass(frozen=True)
class LiquidityChange:
    """Preview of a liquidity operation.

    Attributes:
        lp_amount: LP shares minted (deposit) or burned (withdrawal)
        amounts: Token amounts moved in or out, in pool token order
        balances: Pool balances after the operation
        admin_fees: Protocol fees accrued by the operation, per token
    """

    lp_amount: int
    amounts: tuple[int, ...]
    balances: tuple[int, ...]
    admin_fees: tuple[int, ...]


class StableSwapPool(Pool):
    """N-token StableSwap pool with amplification ramping and admin fees."""

    pair_type = PairType.STABLE

    def __init__(
        self,
        address: str,
        tokens: Sequence[str],
        decimals: Sequence[int] | None = None,
        amplification: int = DEFAULT_ENGINE_CONFIG.default_amplification,
        swap_fee_rate: int = DEFAULT_ENGINE_CONFIG.default_swap_fee_rate,
        admin_fee_rate: int = DEFAULT_ENGINE_CONFIG.default_admin_fee_rate,
        *,
        clock: Clock = system_clock,
        max_iterations: int = DEFAULT_ENGINE_CONFIG.max_iterations,
    ) -> None:
        if len(tokens) <= 1:
            raise InvalidTokens("_pooledTokens.length <= 1")
        if len(tokens) > MAX_POOLED_TOKENS:
            raise InvalidTokens("_pooledTokens.length > 32")
        if decimals is None:
            decimals = [POOL_PRECISION_DECIMALS] * len(tokens)
        if len(decimals) != len(tokens):
            raise InvalidTokens("_pooledTokens decimals mismatch")
        for d in decimals:
            if d > POOL_PRECISION_DECIMALS:
                raise InvalidTokens("Token decimals exceeds max")

        super().__init__(address, tokens, swap_fee_rate, admin_fee_rate)
        if len(set(self.tokens)) != len(self.tokens):
            raise InvalidTokens("Duplicate tokens")

        self.decimals: tuple[int, ...] = tuple(decimals)
        self.precision_multipliers: tuple[int, ...] = tuple(
            10 ** (POOL_PRECISION_DECIMALS - d) for d in decimals
        )
        self.amplification = Amplification.constant(amplification)
        self.max_iterations = max_iterations
        self._clock = clock

    @property
    def balances(self) -> list[int]:
        return self.reserves

    # --- Amplification ---

    def get_a(self) -> int:
        return self.amplification.get_a(self._clock())

    def get_a_precise(self) -> int:
        return self.amplification.get_a_precise(self._clock())

    def ramp_a(self, future_a: int, future_time: int) -> None:
        self.amplification.ramp(future_a, future_time, self._clock())

    def stop_ramp_a(self) -> None:
        self.amplification.stop(self._clock())

    # --- Invariant ---

    def xp(self, balances: Sequence[int] | None = None) -> list[int]:
        """Balances normalized to 18 decimals."""
        if balances is None:
            balances = self.reserves
        return [b * m for b, m in zip(balances, self.precision_multipliers, strict=True)]

    def _d(self, balances: Sequence[int], amp: int) -> int:
        return get_d(self.xp(balances), amp, self.max_iterations)

    def get_d(self) -> int:
        """Invariant of the current balances."""
        return self._d(self.reserves, self.get_a_precise())

    def get_virtual_price(self) -> int:
        """Invariant per LP share, scaled by 1e18. Zero for an empty pool."""
        supply = self.total_supply
        if supply == 0:
            return 0
        return self.get_d() * ONE_18 // supply

    # --- Swaps ---

    def _check_indices(self, index_from: int, index_to: int) -> None:
        n = self.n_tokens
        if not (0 <= index_from < n and 0 <= index_to < n):
            raise InvalidTokenIndex()
        if index_from == index_to:
            raise InvalidTokenIndex("Can't compare token to itself")

    def quote_swap(self, index_from: int, index_to: int, dx: int) -> SwapQuote:
        """Preview selling dx of token index_from for token index_to.

        The swap fee is charged on the output side.

        Raises:
            InsufficientInputAmount: If dx is zero
        """
        self._check_indices(index_from, index_to)
        if dx <= 0:
            raise InsufficientInputAmount()

        multipliers = self.precision_multipliers
        xp = self.xp()
        x = xp[index_from] + dx * multipliers[index_from]
        y = get_y(self.get_a_precise(), index_from, index_to, x, xp, self.max_iterations)

        dy = S(xp[index_to]) - y - 1
        dy_fee = dy * self.swap_fee_rate // FEE_DENOMINATOR
        amount_out = ((dy - dy_fee) // multipliers[index_to]).value
        admin_fee = (dy_fee * self.admin_fee_rate // FEE_DENOMINATOR // multipliers[index_to]).value
        return SwapQuote(amount_out=amount_out, admin_fee=admin_fee)

    def calculate_swap(self, index_from: int, index_to: int, dx: int) -> int:
        """Output amount for selling dx of token index_from."""
        return self.quote_swap(index_from, index_to, dx).amount_out

    def get_amount_out(self, token_in: str, token_out: str, amount_in: int) -> int:
        return self.calculate_swap(self.token_index(token_in), self.token_index(token_out), amount_in)

    @nonreentrant
    def swap(self, index_from: int, index_to: int, dx: int, min_dy: int = 0) -> int:
        """Sell dx of token index_from for token index_to.

        Raises:
            InsufficientOutputAmount: If the output is below min_dy
        """
        quote = self.quote_swap(index_from, index_to, dx)
        if quote.amount_out < min_dy:
            raise InsufficientOutputAmount("dy < minAmount")

        balances = list(self.reserves)
        balances[index_from] += dx
        balances[index_to] = (S(balances[index_to]) - quote.amount_out - quote.admin_fee).value
        self.reserves = balances
        self.admin_fees[index_to] += quote.admin_fee

        logger.debug(
            "stable_swap",
            pool=self.address,
            index_from=index_from,
            index_to=index_to,
            dx=dx,
            dy=quote.amount_out,
            admin_fee=quote.admin_fee,
        )
        return quote.amount_out

    # --- Deposits ---

    def quote_add_liquidity(self, amounts: Sequence[int]) -> LiquidityChange:
        """Preview a deposit.

        Every token must be supplied. Once the pool has liquidity, a deposit
        that skews the balances pays an imbalance fee on each token's
        distance from its ideal balance; the protocol keeps admin_fee of it
        and the rest stays in the pool without minting shares.

        Raises:
            AmountsLengthMismatch: If amounts does not match the token count
            MustSupplyAllTokens: If any amount is zero
            DShouldIncrease: If the raw deposit does not increase D
            CannotMintZero: If the fee-adjusted D grows too little to mint a share
        """
        if len(amounts) != self.n_tokens:
            raise AmountsLengthMismatch()
        if any(a <= 0 for a in amounts):
            raise MustSupplyAllTokens()

        amp = self.get_a_precise()
        supply = self.total_supply
        old_balances = list(self.reserves)
        d0 = self._d(old_balances, amp) if supply != 0 else 0

        new_balances = [b + a for b, a in zip(old_balances, amounts, strict=True)]
        d1 = self._d(new_balances, amp)
        if d1 <= d0:
            raise DShouldIncrease()

        if supply == 0:
            return LiquidityChange(
                lp_amount=d1,
                amounts=tuple(amounts),
                balances=tuple(new_balances),
                admin_fees=(0,) * self.n_tokens,
            )

        fees = imbalance_fees(
            old_balances, new_balances, d0, d1, fee_per_token(self.swap_fee_rate, self.n_tokens)
        )
        admin_fees = [self.admin_fee.portion(f) for f in fees]
        balances_after = [(S(b) - a).value for b, a in zip(new_balances, admin_fees, strict=True)]
        fee_adjusted = [(S(b) - f).value for b, f in zip(new_balances, fees, strict=True)]
        d2 = self._d(fee_adjusted, amp)

        to_mint = mul_div_down((S(d2) - d0).value, supply, d0)
        if to_mint == 0:
            raise CannotMintZero()
        return LiquidityChange(
            lp_amount=to_mint,
            amounts=tuple(amounts),
            balances=tuple(balances_after),
            admin_fees=tuple(admin_fees),
        )

    @nonreentrant
    def add_liquidity(self, amounts: Sequence[int], min_to_mint: int = 0, *, to: str) -> int:
        """Deposit amounts and mint LP shares to `to`.

        Raises:
            MustSupplyAllTokens / DShouldIncrease / CannotMintZero: See quote_add_liquidity
            MinLiquidityNotMet: If fewer than min_to_mint shares would be minted
        """
        change = self.quote_add_liquidity(amounts)
        if change.lp_amount < min_to_mint:
            raise MinLiquidityNotMet()

        self._apply(change)
        self.lp_token.mint(to, change.lp_amount)

        logger.debug(
            "stable_add_liquidity",
            pool=self.address,
            to=to,
            amounts=list(amounts),
            minted=change.lp_amount,
        )
        return change.lp_amount

    # --- Withdrawals ---

    def _check_lp_balance(self, owner: str, amount: int) -> None:
        if amount > self.lp_token.balance_of(owner):
            raise InsufficientLpBalance()

    def quote_remove_liquidity(self, amount: int) -> list[int]:
        """Pro-rata token amounts for burning amount LP shares."""
        supply = self.total_supply
        if amount > supply:
            raise InsufficientLpBalance("Cannot exceed total supply")
        if supply == 0:
            return [0] * self.n_tokens
        return proportional_amounts(amount, self.reserves, supply)

    def calculate_remove_liquidity(self, amount: int) -> list[int]:
        return self.quote_remove_liquidity(amount)

    @nonreentrant
    def remove_liquidity(
        self,
        amount: int,
        min_amounts: Sequence[int] | None = None,
        *,
        owner: str,
    ) -> list[int]:
        """Burn owner's shares for a pro-rata share of every token.

        Raises:
            InsufficientLpBalance: If owner holds fewer than amount shares
            MinAmountsNotMet: If a payout is below min_amounts
        """
        self._check_lp_balance(owner, amount)
        if min_amounts is None:
            min_amounts = [0] * self.n_tokens
        if len(min_amounts) != self.n_tokens:
            raise AmountsLengthMismatch()

        amounts = self.quote_remove_liquidity(amount)
        for out, minimum in zip(amounts, min_amounts, strict=True):
            if out < minimum:
                raise MinAmountsNotMet()

        self.reserves = [b - a for b, a in zip(self.reserves, amounts, strict=True)]
        self.lp_token.burn_from(owner, amount)

        logger.debug("stable_remove_liquidity", pool=self.address, owner=owner, burned=amount)
        return amounts

    def quote_remove_liquidity_one_token(self, amount: int, index: int) -> LiquidityChange:
        """Preview burning amount shares for token index only.

        D is lowered in proportion to the burned shares and the withdrawn
        token's balance is solved for. The imbalance this creates is charged
        as a fee on the reduced balances.

        Raises:
            InvalidTokenIndex: If index is out of range
            WithdrawExceedsAvailable: If amount exceeds the token's normalized balance
                or would burn the whole supply while other tokens remain
        """
        if not 0 <= index < self.n_tokens:
            raise InvalidTokenIndex("Token not found")
        supply = self.total_supply
        if amount > supply or supply == 0:
            raise InsufficientLpBalance()

        amp = self.get_a_precise()
        xp = self.xp()
        if amount > xp[index]:
            raise WithdrawExceedsAvailable()
        if amount == supply and any(b for i, b in enumerate(self.reserves) if i != index):
            raise WithdrawExceedsAvailable()

        d0 = get_d(xp, amp, self.max_iterations)
        d1 = (S(d0) - mul_div_down(amount, d0, supply)).value
        new_y = get_yd(amp, index, xp, d1, self.max_iterations)

        fee_rate = fee_per_token(self.swap_fee_rate, self.n_tokens)
        xp_reduced = []
        for i, x in enumerate(xp):
            expected = mul_div_down(x, d1, d0)
            drift = (S(expected) - new_y).value if i == index else x - expected
            xp_reduced.append((S(x) - ceil_div(drift * fee_rate, FEE_DENOMINATOR)).value)

        multiplier = self.precision_multipliers[index]
        y_reduced = get_yd(amp, index, xp_reduced, d1, self.max_iterations)
        dy = ((S(xp_reduced[index]) - y_reduced - 1) // multiplier).value
        dy_fee = ((S(xp[index]) - new_y) // multiplier - dy).value
        admin_fee = self.admin_fee.portion(dy_fee)

        amounts = [0] * self.n_tokens
        amounts[index] = dy
        balances = list(self.reserves)
        balances[index] = (S(balances[index]) - dy - admin_fee).value
        fees = [0] * self.n_tokens
        fees[index] = admin_fee
        return LiquidityChange(
            lp_amount=amount,
            amounts=tuple(amounts),
            balances=tuple(balances),
            admin_fees=tuple(fees),
        )

    def calculate_remove_liquidity_one_token(self, amount: int, index: int) -> int:
        return self.quote_remove_liquidity_one_token(amount, index).amounts[index]

    @nonreentrant
    def remove_liquidity_one_token(
        self,
        amount: int,
        index: int,
        min_amount: int = 0,
        *,
        owner: str,
    ) -> int:
        """Burn owner's shares for a single token.

        Raises:
            InsufficientLpBalance: If owner holds fewer than amount shares
            WithdrawExceedsAvailable: If amount exceeds the token's balance
            InsufficientOutputAmount: If the payout is below min_amount
        """
        self._check_lp_balance(owner, amount)
        change = self.quote_remove_liquidity_one_token(amount, index)
        dy = change.amounts[index]
        if dy < min_amount:
            raise InsufficientOutputAmount("dy < minAmount")

        self._apply(change)
        self.lp_token.burn_from(owner, amount)

        logger.debug(
            "stable_remove_liquidity_one_token",
            pool=self.address,
            owner=owner,
            index=index,
            burned=amount,
            amount=dy,
        )
        return dy

    def quote_remove_liquidity_imbalance(self, amounts: Sequence[int]) -> LiquidityChange:
        """Preview withdrawing exact amounts of each token.

        The LP shares burned cover the drop in D after imbalance fees, plus
        one to round in the pool's favour.

        Raises:
            AmountsLengthMismatch: If amounts does not match the token count
            InsufficientLpBalance: If the pool has no liquidity
            BurntAmountZero: If no shares would be burned
        """
        if len(amounts) != self.n_tokens:
            raise AmountsLengthMismatch()
        supply = self.total_supply
        if supply == 0:
            raise InsufficientLpBalance()

        amp = self.get_a_precise()
        old_balances = list(self.reserves)
        d0 = self._d(old_balances, amp)

        new_balances = []
        for balance, amount in zip(old_balances, amounts, strict=True):
            if amount > balance:
                raise WithdrawExceedsAvailable("Cannot withdraw more than available")
            new_balances.append(balance - amount)
        d1 = self._d(new_balances, amp)

        fees = imbalance_fees(
            old_balances, new_balances, d0, d1, fee_per_token(self.swap_fee_rate, self.n_tokens)
        )
        admin_fees = [self.admin_fee.portion(f) for f in fees]
        balances_after = [(S(b) - a).value for b, a in zip(new_balances, admin_fees, strict=True)]
        fee_adjusted = [(S(b) - f).value for b, f in zip(new_balances, fees, strict=True)]
        d2 = self._d(fee_adjusted, amp)

        token_amount = mul_div_down((S(d0) - d2).value, supply, d0)
        if token_amount == 0:
            raise BurntAmountZero()
        return LiquidityChange(
            lp_amount=token_amount + 1,
            amounts=tuple(amounts),
            balances=tuple(balances_after),
            admin_fees=tuple(admin_fees),
        )

    def calculate_token_amount(self, amounts: Sequence[int], deposit: bool) -> int:
        """LP shares minted by depositing, or burned by withdrawing, amounts."""
        if deposit:
            return self.quote_add_liquidity(amounts).lp_amount
        return self.quote_remove_liquidity_imbalance(amounts).lp_amount

    @nonreentrant
    def remove_liquidity_imbalance(
        self,
        amounts: Sequence[int],
        max_burn_amount: int,
        *,
        owner: str,
    ) -> int:
        """Withdraw exact amounts, burning at most max_burn_amount of owner's shares.

        Raises:
            InsufficientLpBalance: If max_burn_amount is zero or above owner's balance
            MaxBurnExceeded: If more than max_burn_amount shares would be burned
        """
        if max_burn_amount == 0:
            raise InsufficientLpBalance()
        self._check_lp_balance(owner, max_burn_amount)

        change = self.quote_remove_liquidity_imbalance(amounts)
        if change.lp_amount > max_burn_amount:
            raise MaxBurnExceeded()

        self._apply(change)
        self.lp_token.burn_from(owner, change.lp_amount)

        logger.debug(
            "stable_remove_liquidity_imbalance",
            pool=self.address,
            owner=owner,
            amounts=list(amounts),
            burned=change.lp_amount,
        )
        return change.lp_amount

    # --- Admin ---

    def withdraw_admin_fees(self) -> list[int]:
        """Pay out the protocol's accrued fees."""
        return self.claim_admin_fees()

    def _apply(self, change: LiquidityChange) -> None:
        self.reserves = list(change.balances)
        self.admin_fees = [a + f for a, f in zip(self.admin_fees, change.admin_fees, strict=True)]


__all__ = ["LiquidityChange", "StableSwapPool", "SwapQuote"]
