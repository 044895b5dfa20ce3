"""Base class and protocol for pair type handlers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import ClassVar, Protocol

from ammcore.errors import ExpiredError, InvalidRoute
from ammcore.models.route import PairType
from ammcore.pools.base import Pool


class PairHandler(Protocol):
    """Protocol for pair-type-specific router handlers.

    Each handler adapts one pool implementation to the router's uniform
    operations. All amounts a handler accepts or returns are in the pool's
    own token order; the router maps them to and from the caller's order.

    The handler pattern centralizes pair-specific logic:
    - Deadline error flavour
    - Deposit sizing and slippage checks
    - Swap and withdrawal dispatch
    """

    pair_type: PairType
    pool_class: type[Pool]
    deadline_error: type[ExpiredError]
    creates_pairs: bool

    def check_deadline(self, deadline: int, now: int) -> None:
        """Raise deadline_error if now is past deadline."""
        ...

    def check_pool(self, pool: Pool) -> None:
        """Raise InvalidRoute if pool is not of this handler's pool class."""
        ...

    def get_amount_out(self, pool: Pool, token_in: str, token_out: str, amount_in: int) -> int:
        """Output for an exact input swap, without changing state."""
        ...

    def swap(self, pool: Pool, token_in: str, token_out: str, amount_in: int) -> int:
        """Execute an exact input swap and return the output amount."""
        ...

    def quote_add_liquidity(self, pool: Pool, amounts: Sequence[int]) -> tuple[list[int], int]:
        """(amounts taken, shares minted) for depositing up to amounts."""
        ...

    def add_liquidity(
        self,
        pool: Pool,
        amounts_desired: Sequence[int],
        amounts_min: Sequence[int],
        min_liquidity: int,
        to: str,
    ) -> tuple[list[int], int]:
        """Deposit into pool and return (amounts taken, shares minted)."""
        ...

    def quote_remove_liquidity(self, pool: Pool, liquidity: int) -> list[int]:
        """Token amounts paid out for burning liquidity shares."""
        ...

    def remove_liquidity(
        self,
        pool: Pool,
        liquidity: int,
        amounts_min: Sequence[int],
        owner: str,
    ) -> list[int]:
        """Burn owner's shares and return the token amounts paid out."""
        ...


class BaseHandler:
    """Base class with shared handler utilities.

    Subclasses set pair_type, pool_class and deadline_error.
    """

    pair_type: ClassVar[PairType]
    pool_class: ClassVar[type[Pool]]
    deadline_error: ClassVar[type[ExpiredError]]
    creates_pairs: ClassVar[bool] = False

    def check_deadline(self, deadline: int, now: int) -> None:
        """Operations are accepted up to and including the deadline second."""
        if now > deadline:
            raise self.deadline_error()

    def check_pool(self, pool: Pool) -> None:
        if not isinstance(pool, self.pool_class):
            raise InvalidRoute(f"is not {self.pair_type.name.lower()} pair")


__all__ = ["BaseHandler", "PairHandler"]
