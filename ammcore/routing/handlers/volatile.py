"""Handler for constant-product (volatile) pairs."""

from __future__ import annotations

from collections.abc import Sequence
from typing import cast

import structlog

from ammcore.errors import Expired, InsufficientAAmount, InsufficientBAmount
from ammcore.models.route import PairType
from ammcore.pools.base import Pool
from ammcore.pools.constant_product import ConstantProductPool
from ammcore.routing.handlers.base import BaseHandler

logger = structlog.get_logger()


class VolatileHandler(BaseHandler):
    """Routes swaps and liquidity changes through ConstantProductPool pairs.

    Volatile pairs are created on the first deposit. Deposits are sized to
    the current reserve ratio, so only part of the desired amounts may be
    taken.
    """

    pair_type = PairType.VOLATILE
    pool_class = ConstantProductPool
    deadline_error = Expired
    creates_pairs = True

    def _pool(self, pool: Pool) -> ConstantProductPool:
        self.check_pool(pool)
        return cast(ConstantProductPool, pool)

    def get_amount_out(self, pool: Pool, token_in: str, token_out: str, amount_in: int) -> int:
        return self._pool(pool).get_amount_out(token_in, token_out, amount_in)

    def swap(self, pool: Pool, token_in: str, token_out: str, amount_in: int) -> int:
        pair = self._pool(pool)
        # Validates that token_out is the other side of the pair
        pair.get_amount_out(token_in, token_out, amount_in)
        return pair.swap(amount_in, token_in)

    def quote_add_liquidity(self, pool: Pool, amounts: Sequence[int]) -> tuple[list[int], int]:
        pair = self._pool(pool)
        optimal = pair.optimal_amounts(amounts, [0] * pair.n_tokens)
        quote = pair.quote_mint(optimal)
        return list(quote.amounts), quote.liquidity

    def add_liquidity(
        self,
        pool: Pool,
        amounts_desired: Sequence[int],
        amounts_min: Sequence[int],
        min_liquidity: int,
        to: str,
    ) -> tuple[list[int], int]:
        """Deposit the reserve-ratio matched part of amounts_desired.

        Raises:
            InsufficientAAmount / InsufficientBAmount: If the amount taken of a
                token would be below its minimum
            MinLiquidityNotMet: If fewer than min_liquidity shares would be minted
        """
        pair = self._pool(pool)
        optimal = pair.optimal_amounts(amounts_desired, amounts_min)
        quote = pair.quote_mint(optimal)
        for i, (taken, minimum) in enumerate(zip(quote.amounts, amounts_min, strict=True)):
            if taken < minimum:
                raise InsufficientAAmount() if i == 0 else InsufficientBAmount()

        liquidity = pair.mint(optimal, min_liquidity, to=to)
        logger.debug(
            "volatile_liquidity_added",
            pair=pair.address,
            amounts=list(quote.amounts),
            liquidity=liquidity,
        )
        return list(quote.amounts), liquidity

    def quote_remove_liquidity(self, pool: Pool, liquidity: int) -> list[int]:
        return self._pool(pool).quote_burn(liquidity)

    def remove_liquidity(
        self,
        pool: Pool,
        liquidity: int,
        amounts_min: Sequence[int],
        owner: str,
    ) -> list[int]:
        return self._pool(pool).burn(liquidity, amounts_min, owner=owner)


__all__ = ["VolatileHandler"]
