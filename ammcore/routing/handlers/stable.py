"""Handler for StableSwap (stable) pairs."""

from __future__ import annotations

from collections.abc import Sequence
from typing import cast

import structlog

from ammcore.errors import DeadlineNotMet
from ammcore.models.route import PairType
from ammcore.pools.base import Pool
from ammcore.pools.stable import StableSwapPool
from ammcore.routing.handlers.base import BaseHandler

logger = structlog.get_logger()


class StableHandler(BaseHandler):
    """Routes swaps and liquidity changes through StableSwapPool pairs.

    Stable pairs must be created explicitly (they need decimals and an
    amplification). Deposits take the full desired amounts; the minimums
    only bound what the caller accepts.
    """

    pair_type = PairType.STABLE
    pool_class = StableSwapPool
    deadline_error = DeadlineNotMet

    def _pool(self, pool: Pool) -> StableSwapPool:
        self.check_pool(pool)
        return cast(StableSwapPool, pool)

    def get_amount_out(self, pool: Pool, token_in: str, token_out: str, amount_in: int) -> int:
        return self._pool(pool).get_amount_out(token_in, token_out, amount_in)

    def swap(self, pool: Pool, token_in: str, token_out: str, amount_in: int) -> int:
        pair = self._pool(pool)
        return pair.swap(pair.token_index(token_in), pair.token_index(token_out), amount_in)

    def quote_add_liquidity(self, pool: Pool, amounts: Sequence[int]) -> tuple[list[int], int]:
        change = self._pool(pool).quote_add_liquidity(amounts)
        return list(change.amounts), change.lp_amount

    def add_liquidity(
        self,
        pool: Pool,
        amounts_desired: Sequence[int],
        amounts_min: Sequence[int],
        min_liquidity: int,
        to: str,
    ) -> tuple[list[int], int]:
        pair = self._pool(pool)
        liquidity = pair.add_liquidity(amounts_desired, min_liquidity, to=to)
        logger.debug(
            "stable_liquidity_added",
            pair=pair.address,
            amounts=list(amounts_desired),
            liquidity=liquidity,
        )
        return list(amounts_desired), liquidity

    def quote_remove_liquidity(self, pool: Pool, liquidity: int) -> list[int]:
        return self._pool(pool).calculate_remove_liquidity(liquidity)

    def remove_liquidity(
        self,
        pool: Pool,
        liquidity: int,
        amounts_min: Sequence[int],
        owner: str,
    ) -> list[int]:
        return self._pool(pool).remove_liquidity(liquidity, amounts_min, owner=owner)

    # --- Stable-only withdrawals ---

    def quote_remove_liquidity_one_token(self, pool: Pool, liquidity: int, index: int) -> int:
        return self._pool(pool).calculate_remove_liquidity_one_token(liquidity, index)

    def remove_liquidity_one_token(
        self,
        pool: Pool,
        liquidity: int,
        index: int,
        min_amount: int,
        owner: str,
    ) -> int:
        return self._pool(pool).remove_liquidity_one_token(liquidity, index, min_amount, owner=owner)

    def quote_remove_liquidity_imbalance(self, pool: Pool, amounts: Sequence[int]) -> int:
        return self._pool(pool).calculate_token_amount(amounts, deposit=False)

    def remove_liquidity_imbalance(
        self,
        pool: Pool,
        amounts: Sequence[int],
        max_burn_amount: int,
        owner: str,
    ) -> int:
        return self._pool(pool).remove_liquidity_imbalance(amounts, max_burn_amount, owner=owner)


__all__ = ["StableHandler"]
