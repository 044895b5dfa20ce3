"""Constant-product ("volatile") pool.

Two tokens, x * y = k, with the swap fee taken on the input amount. Part of
the fee (the admin fee) is set aside for the protocol and does not stay in
the reserves; the rest is left in the pool for liquidity providers.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from ammcore.config import DEFAULT_ENGINE_CONFIG
from ammcore.constants import DEAD_ADDRESS, FEE_DENOMINATOR, MINIMUM_LIQUIDITY, UINT112_MAX
from ammcore.errors import (
    InsufficientAAmount,
    InsufficientBAmount,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientLiquidityBurned,
    InsufficientLiquidityMinted,
    InsufficientLpBalance,
    InsufficientOutputAmount,
    InvalidTokens,
    InvariantViolation,
    MinAmountsNotMet,
    MinLiquidityNotMet,
    ReserveOverflow,
)
from ammcore.math.safe_int import S
from ammcore.models.route import PairType
from ammcore.pools.base import Pool, nonreentrant
from ammcore.pools.liquidity import (
    consumed_amounts,
    initial_liquidity,
    proportional_amounts,
    proportional_share,
    quote_counterpart,
)

logger = structlog.get_logger()


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int, swap_fee_rate: int) -> int:
    """Constant-product output for an exact input.

    amount_out = in * (D - fee) * r_out / (r_in * D + in * (D - fee)), D = 1e10

    Raises:
        InsufficientInputAmount: If amount_in is zero
        InsufficientLiquidity: If either reserve is zero
    """
    if amount_in <= 0:
        raise InsufficientInputAmount()
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidity()

    amount_in_with_fee = S(amount_in) * (FEE_DENOMINATOR - swap_fee_rate)
    numerator = amount_in_with_fee * reserve_out
    denominator = S(reserve_in) * FEE_DENOMINATOR + amount_in_with_fee
    return (numerator // denominator).value


def admin_fee_amount(amount_in: int, swap_fee_rate: int, admin_fee_rate: int) -> int:
    """Protocol share of the swap fee charged on amount_in."""
    return amount_in * swap_fee_rate * admin_fee_rate // FEE_DENOMINATOR // FEE_DENOMINATOR


@dataclass(frozen=True)
class MintQuote:
    """Outcome of a deposit: shares minted and the amounts actually taken."""

    liquidity: int
    amounts: tuple[int, ...]


class ConstantProductPool(Pool):
    """Two-token x * y = k pool with a minimum liquidity lock."""

    pair_type = PairType.VOLATILE

    def __init__(
        self,
        address: str,
        tokens: Sequence[str],
        swap_fee_rate: int = DEFAULT_ENGINE_CONFIG.default_swap_fee_rate,
        admin_fee_rate: int = DEFAULT_ENGINE_CONFIG.default_admin_fee_rate,
    ) -> None:
        if len(tokens) != 2:
            raise InvalidTokens("This type of pair must have only two tokens when created")
        super().__init__(address, tokens, swap_fee_rate, admin_fee_rate)
        if self.tokens[0] == self.tokens[1]:
            raise InvalidTokens("Token cannot be the same")

    @property
    def token0(self) -> str:
        return self.tokens[0]

    @property
    def token1(self) -> str:
        return self.tokens[1]

    @property
    def k(self) -> int:
        return self.reserves[0] * self.reserves[1]

    def _reserves_for(self, token_in: str) -> tuple[int, int, int]:
        """(index_in, reserve_in, reserve_out) for a swap selling token_in."""
        i = self.token_index(token_in)
        return i, self.reserves[i], self.reserves[1 - i]

    # --- Swaps ---

    def get_amount_out(self, token_in: str, token_out: str, amount_in: int) -> int:
        i, reserve_in, reserve_out = self._reserves_for(token_in)
        if self.token_index(token_out) == i:
            raise InvalidTokens()
        return get_amount_out(amount_in, reserve_in, reserve_out, self.swap_fee_rate)

    @nonreentrant
    def swap(self, amount_in: int, token_in: str, min_amount_out: int = 0) -> int:
        """Sell amount_in of token_in for the other token.

        Returns:
            The output amount

        Raises:
            InsufficientInputAmount: If amount_in is zero
            InsufficientOutputAmount: If the output is zero or below min_amount_out
            InvariantViolation: If k would decrease
            ReserveOverflow: If a reserve would exceed 112 bits
        """
        i, reserve_in, reserve_out = self._reserves_for(token_in)
        amount_out = get_amount_out(amount_in, reserve_in, reserve_out, self.swap_fee_rate)
        if amount_out == 0 or amount_out < min_amount_out:
            raise InsufficientOutputAmount()

        admin_fee = admin_fee_amount(amount_in, self.swap_fee_rate, self.admin_fee_rate)
        new_in = (S(reserve_in) + amount_in - admin_fee).value
        new_out = (S(reserve_out) - amount_out).value

        if new_in * new_out < reserve_in * reserve_out:
            raise InvariantViolation()
        if new_in > UINT112_MAX:
            raise ReserveOverflow()

        self.reserves[i] = new_in
        self.reserves[1 - i] = new_out
        self.admin_fees[i] += admin_fee

        logger.debug(
            "volatile_swap",
            pool=self.address,
            token_in=self.tokens[i],
            amount_in=amount_in,
            amount_out=amount_out,
            admin_fee=admin_fee,
        )
        return amount_out

    # --- Liquidity ---

    def optimal_amounts(self, desired: Sequence[int], minimums: Sequence[int]) -> list[int]:
        """Largest deposit within desired that matches the current reserve ratio.

        An empty pool takes desired as-is. Otherwise token1 is sized to match
        desired[0]; if that needs more token1 than desired, token0 is sized
        to match desired[1] instead.

        Raises:
            InsufficientBAmount: If the matched token1 amount is below minimums[1]
            InsufficientAAmount: If the matched token0 amount is below minimums[0]
        """
        self._check_amounts_length(desired)
        self._check_amounts_length(minimums)
        reserve0, reserve1 = self.reserves
        if reserve0 == 0 and reserve1 == 0:
            return list(desired)

        amount1_optimal = quote_counterpart(desired[0], reserve0, reserve1)
        if amount1_optimal <= desired[1]:
            if amount1_optimal < minimums[1]:
                raise InsufficientBAmount()
            return [desired[0], amount1_optimal]

        amount0_optimal = quote_counterpart(desired[1], reserve1, reserve0)
        if amount0_optimal < minimums[0]:
            raise InsufficientAAmount()
        return [amount0_optimal, desired[1]]

    def quote_mint(self, amounts: Sequence[int]) -> MintQuote:
        """Shares a deposit of amounts would mint, and the part of it consumed.

        Amounts above the current reserve ratio are not taken; the returned
        amounts are what the pool absorbs.

        Raises:
            InsufficientLiquidityMinted: If no shares would be minted
        """
        self._check_amounts_length(amounts)
        total_supply = self.total_supply
        if total_supply == 0:
            liquidity = initial_liquidity(amounts) - MINIMUM_LIQUIDITY
            consumed = tuple(amounts)
        else:
            if 0 in self.reserves:
                raise InsufficientLiquidity()
            liquidity = proportional_share(amounts, self.reserves, total_supply)
            consumed = tuple(consumed_amounts(liquidity, self.reserves, total_supply))
        if liquidity <= 0:
            raise InsufficientLiquidityMinted()
        return MintQuote(liquidity=liquidity, amounts=consumed)

    @nonreentrant
    def mint(self, amounts: Sequence[int], min_liquidity: int = 0, *, to: str) -> int:
        """Deposit amounts and mint LP shares to `to`.

        The first deposit locks MINIMUM_LIQUIDITY shares at the dead address.

        Returns:
            Shares minted to `to`
        """
        quote = self.quote_mint(amounts)
        if quote.liquidity < min_liquidity:
            raise MinLiquidityNotMet()

        new_reserves = [r + a for r, a in zip(self.reserves, quote.amounts, strict=True)]
        if max(new_reserves) > UINT112_MAX:
            raise ReserveOverflow()

        if self.total_supply == 0:
            self.lp_token.mint(DEAD_ADDRESS, MINIMUM_LIQUIDITY)
        self.lp_token.mint(to, quote.liquidity)
        self.reserves = new_reserves

        logger.debug(
            "volatile_mint",
            pool=self.address,
            to=to,
            amounts=list(quote.amounts),
            liquidity=quote.liquidity,
        )
        return quote.liquidity

    def quote_burn(self, liquidity: int) -> list[int]:
        """Pro-rata amounts returned for burning liquidity shares."""
        total_supply = self.total_supply
        if total_supply == 0 or liquidity > total_supply:
            raise InsufficientLiquidityBurned()
        return proportional_amounts(liquidity, self.reserves, total_supply)

    @nonreentrant
    def burn(
        self,
        liquidity: int,
        min_amounts: Sequence[int] | None = None,
        *,
        owner: str,
    ) -> list[int]:
        """Burn owner's liquidity shares for a pro-rata share of the reserves.

        Raises:
            InsufficientLpBalance: If owner holds fewer shares than liquidity
            InsufficientLiquidityBurned: If any payout would be zero
            MinAmountsNotMet: If a payout is below min_amounts
        """
        if min_amounts is None:
            min_amounts = [0] * self.n_tokens
        self._check_amounts_length(min_amounts)
        if liquidity > self.lp_token.balance_of(owner):
            raise InsufficientLpBalance()

        amounts = self.quote_burn(liquidity)
        if 0 in amounts:
            raise InsufficientLiquidityBurned()
        for amount, minimum in zip(amounts, min_amounts, strict=True):
            if amount < minimum:
                raise MinAmountsNotMet("_amount < _amountsMin")

        self.lp_token.burn_from(owner, liquidity)
        self.reserves = [r - a for r, a in zip(self.reserves, amounts, strict=True)]

        logger.debug(
            "volatile_burn",
            pool=self.address,
            owner=owner,
            liquidity=liquidity,
            amounts=amounts,
        )
        return amounts

    def claim_fees(self) -> list[int]:
        """Pay out the protocol's accrued share of swap fees."""
        return self.claim_admin_fees()


__all__ = ["ConstantProductPool", "MintQuote", "admin_fee_amount", "get_amount_out"]
