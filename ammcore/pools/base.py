"""Base class for pools."""

from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, TypeVar

import structlog

from ammcore.constants import MAX_ADMIN_FEE, MAX_SWAP_FEE
from ammcore.errors import AmountsLengthMismatch, FeeTooHigh, ReentrancyError, TokenNotInPool
from ammcore.math.fixed_point import FeeRate
from ammcore.models.route import PairType
from ammcore.models.types import derive_address, normalize_address
from ammcore.pools.lp_token import LPToken, LPTokenState

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class PoolState:
    """Point-in-time copy of a pool's mutable state."""

    reserves: tuple[int, ...]
    admin_fees: tuple[int, ...]
    lp: LPTokenState


def nonreentrant(method: F) -> F:
    """Guard a pool entry point.

    The pool is locked for the duration of the call, so a collaborator that
    calls back into the same pool fails with LOCKED. If the call raises, the
    pool's reserves, accrued fees and LP ledger are restored.
    """

    @functools.wraps(method)
    def wrapper(self: Pool, *args: Any, **kwargs: Any) -> Any:
        if self._locked:
            raise ReentrancyError()
        self._locked = True
        state = self.snapshot()
        try:
            return method(self, *args, **kwargs)
        except BaseException:
            self.restore(state)
            raise
        finally:
            self._locked = False

    return wrapper  # type: ignore[return-value]


class Pool(ABC):
    """A liquidity pool holding an ordered, fixed set of tokens.

    reserves[i] is the pool's balance of tokens[i] available to traders.
    Protocol (admin) fees are held by the pool but tracked in admin_fees and
    never counted as reserves.
    """

    pair_type: ClassVar[PairType]

    def __init__(
        self,
        address: str,
        tokens: Sequence[str],
        swap_fee_rate: int,
        admin_fee_rate: int,
    ) -> None:
        self.address = normalize_address(address)
        self.tokens: tuple[str, ...] = tuple(normalize_address(t) for t in tokens)
        self.reserves: list[int] = [0] * len(self.tokens)
        self.admin_fees: list[int] = [0] * len(self.tokens)
        self.swap_fee = FeeRate(_check_fee(swap_fee_rate, MAX_SWAP_FEE, "SwapFee"))
        self.admin_fee = FeeRate(_check_fee(admin_fee_rate, MAX_ADMIN_FEE, "AdminFee"))
        self.lp_token = LPToken(address=derive_address(self.address, "lp"))
        self._locked = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.address!r}, tokens={self.tokens!r})"

    @property
    def n_tokens(self) -> int:
        return len(self.tokens)

    @property
    def swap_fee_rate(self) -> int:
        return self.swap_fee.value

    @property
    def admin_fee_rate(self) -> int:
        return self.admin_fee.value

    @property
    def total_supply(self) -> int:
        return self.lp_token.total_supply

    def token_index(self, token: str) -> int:
        """Position of token in the pool.

        Raises:
            TokenNotInPool: If token is not held by the pool
        """
        try:
            return self.tokens.index(normalize_address(token))
        except ValueError:
            raise TokenNotInPool() from None

    def has_tokens(self, *tokens: str) -> bool:
        return all(normalize_address(t) in self.tokens for t in tokens)

    def get_reserves(self) -> tuple[int, ...]:
        return tuple(self.reserves)

    def _check_amounts_length(self, amounts: Sequence[int]) -> None:
        if len(amounts) != self.n_tokens:
            raise AmountsLengthMismatch()

    # --- Admin ---

    def set_swap_fee_rate(self, rate: int) -> None:
        self.swap_fee = FeeRate(_check_fee(rate, MAX_SWAP_FEE, "SwapFee"))
        logger.debug("pool_swap_fee_set", pool=self.address, rate=rate)

    def set_admin_fee_rate(self, rate: int) -> None:
        self.admin_fee = FeeRate(_check_fee(rate, MAX_ADMIN_FEE, "AdminFee"))
        logger.debug("pool_admin_fee_set", pool=self.address, rate=rate)

    @nonreentrant
    def claim_admin_fees(self) -> list[int]:
        """Pay out and reset the accrued protocol fees."""
        claimed = list(self.admin_fees)
        self.admin_fees = [0] * self.n_tokens
        logger.debug("pool_admin_fees_claimed", pool=self.address, amounts=claimed)
        return claimed

    # --- Snapshots ---

    def snapshot(self) -> PoolState:
        return PoolState(
            reserves=tuple(self.reserves),
            admin_fees=tuple(self.admin_fees),
            lp=self.lp_token.snapshot(),
        )

    def restore(self, state: PoolState) -> None:
        self.reserves = list(state.reserves)
        self.admin_fees = list(state.admin_fees)
        self.lp_token.restore(state.lp)

    # --- Pricing ---

    @abstractmethod
    def get_amount_out(self, token_in: str, token_out: str, amount_in: int) -> int:
        """Output for an exact input swap, without changing state."""
        ...


def _check_fee(rate: int, maximum: int, name: str) -> int:
    if rate < 0 or rate > maximum:
        raise FeeTooHigh(f"{name} is greater than the maximum value")
    return rate


__all__ = ["Pool", "PoolState", "nonreentrant"]
