"""Shared LP share accounting.

Both pool types mint and burn shares through the helpers below. Rounding
always favours the pool: shares minted round down, amounts paid out round
down, amounts taken in and fees charged round up.
"""

from __future__ import annotations

from collections.abc import Sequence

from ammcore.constants import FEE_DENOMINATOR
from ammcore.math.fixed_point import ceil_div, difference, isqrt, mul_div_down, mul_div_up


def initial_liquidity(amounts: Sequence[int]) -> int:
    """Shares for the first deposit into a two-token pool: sqrt(a0 * a1)."""
    return isqrt(amounts[0] * amounts[1])


def proportional_share(amounts: Sequence[int], reserves: Sequence[int], total_supply: int) -> int:
    """Shares for a deposit into a pool that already has liquidity.

    The depositor is credited according to the limiting token:
    min(amounts[i] * total_supply / reserves[i]).
    """
    return min(mul_div_down(a, total_supply, r) for a, r in zip(amounts, reserves, strict=True))


def consumed_amounts(liquidity: int, reserves: Sequence[int], total_supply: int) -> list[int]:
    """Amounts a deposit must contribute to back liquidity new shares.

    Rounded up, so the result never exceeds the amounts that produced
    liquidity via proportional_share.
    """
    return [mul_div_up(liquidity, r, total_supply) for r in reserves]


def proportional_amounts(liquidity: int, reserves: Sequence[int], total_supply: int) -> list[int]:
    """Pro-rata payout for burning liquidity shares: reserves[i] * liquidity / total_supply."""
    return [mul_div_down(r, liquidity, total_supply) for r in reserves]


def quote_counterpart(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Amount of B with the same value as amount_a at the current reserve ratio."""
    return mul_div_down(amount_a, reserve_b, reserve_a)


def fee_per_token(swap_fee_rate: int, n_tokens: int) -> int:
    """Imbalance fee rate charged per token: fee * n / (4 * (n - 1))."""
    return (swap_fee_rate * n_tokens) // (4 * (n_tokens - 1))


def imbalance_fees(
    old_balances: Sequence[int],
    new_balances: Sequence[int],
    d0: int,
    d1: int,
    fee_rate: int,
) -> list[int]:
    """Fee owed by each token for moving the pool away from its current ratio.

    The ideal balance of token i after the operation keeps its share of the
    invariant: d1 * old_balances[i] / d0. The fee is charged on the distance
    between the ideal and the actual new balance and rounded up.
    """
    fees = []
    for old, new in zip(old_balances, new_balances, strict=True):
        ideal = mul_div_down(d1, old, d0)
        fees.append(ceil_div(fee_rate * difference(ideal, new), FEE_DENOMINATOR))
    return fees


__all__ = [
    "consumed_amounts",
    "fee_per_token",
    "imbalance_fees",
    "initial_liquidity",
    "proportional_amounts",
    "proportional_share",
    "quote_counterpart",
]
