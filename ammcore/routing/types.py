"""Type definitions for routing module."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class HopResult:
    """Result of a single hop in a route."""

    pool: str
    input_token: str
    output_token: str
    amount_in: int
    amount_out: int


@dataclass
class SwapResult:
    """Result of a swap along a route.

    amounts[0] is the input and amounts[k + 1] is the output of hop k.
    """

    amounts: list[int]
    hops: list[HopResult] = field(default_factory=list)

    @property
    def amount_in(self) -> int:
        return self.amounts[0]

    @property
    def amount_out(self) -> int:
        return self.amounts[-1]


@dataclass
class AddLiquidityQuote:
    """Token amounts a deposit takes and the LP shares it mints.

    Amounts are in the caller's token order.
    """

    amounts: list[int]
    liquidity: int


@dataclass
class AddLiquidityResult:
    """Outcome of an executed deposit, in the caller's token order."""

    pool: str
    amounts: list[int]
    liquidity: int


__all__ = ["AddLiquidityQuote", "AddLiquidityResult", "HopResult", "SwapResult"]
