"""Pair registry.

Creates pairs and answers lookups by (tokens, pair type). Pair addresses are
derived from the pair type and the sorted token set, so the same tokens in
any order resolve to the same pair, and the address of a pair is known
before the pair exists.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

import structlog

from ammcore.collaborators import Clock, system_clock
from ammcore.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ammcore.constants import MAX_ADMIN_FEE, MAX_SWAP_FEE
from ammcore.errors import FeeTooHigh, InvalidPairType, InvalidTokens
from ammcore.models.route import PairType
from ammcore.models.types import derive_address, normalize_address
from ammcore.pools.base import Pool
from ammcore.pools.constant_product import ConstantProductPool
from ammcore.pools.stable import StableSwapPool

logger = structlog.get_logger()


def sort_tokens(tokens: Sequence[str]) -> tuple[str, ...]:
    """Canonical token order: normalized and sorted."""
    return tuple(sorted(normalize_address(t) for t in tokens))


def pair_address(tokens: Sequence[str], pair_type: PairType | int) -> str:
    """Deterministic address of the pair for this token set and type."""
    return derive_address("pair", str(int(pair_type)), *sort_tokens(tokens))


class PairRegistry:
    """Registry of pair implementations and created pairs.

    Usage:
        registry = PairRegistry.with_default_pair_types()
        pool = registry.create_pair([USDC, DAI], PairType.VOLATILE)
        address, exists = registry.pair_for([DAI, USDC], PairType.VOLATILE)
    """

    def __init__(
        self,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
        clock: Clock = system_clock,
    ) -> None:
        self._config = config
        self._clock = clock
        self._pool_classes: dict[PairType, type[Pool]] = {}
        self._pairs: dict[str, Pool] = {}
        self._all_pairs: list[str] = []
        self._pair_types: dict[str, PairType] = {}
        self.default_swap_fee_rate = config.default_swap_fee_rate
        self.default_admin_fee_rate = config.default_admin_fee_rate

    @classmethod
    def with_default_pair_types(
        cls,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
        clock: Clock = system_clock,
    ) -> PairRegistry:
        """Registry with volatile and stable pairs enabled."""
        registry = cls(config, clock)
        registry.add_pair_type(PairType.VOLATILE, ConstantProductPool)
        registry.add_pair_type(PairType.STABLE, StableSwapPool)
        return registry

    # --- Pair types ---

    def add_pair_type(self, pair_type: PairType, pool_class: type[Pool]) -> None:
        if pair_type in self._pool_classes:
            raise InvalidPairType("This pair type already exists")
        if pool_class.pair_type != pair_type:
            raise InvalidPairType(f"{pool_class.__name__} implements {pool_class.pair_type.name}")
        self._pool_classes[pair_type] = pool_class
        logger.debug("pair_type_added", pair_type=pair_type.name, pool_class=pool_class.__name__)

    def is_pair_type(self, pair_type: PairType | int) -> bool:
        try:
            return PairType(pair_type) in self._pool_classes
        except ValueError:
            return False

    def pool_class(self, pair_type: PairType | int) -> type[Pool]:
        if not self.is_pair_type(pair_type):
            raise InvalidPairType()
        return self._pool_classes[PairType(pair_type)]

    # --- Default fees ---

    def set_default_swap_fee_rate(self, rate: int) -> None:
        if rate > MAX_SWAP_FEE:
            raise FeeTooHigh("PairFactory: Over MAX_SWAP_FEE is not allowed")
        if rate == self.default_swap_fee_rate:
            raise FeeTooHigh("PairFactory: _defSwapFeeRate invalid")
        self.default_swap_fee_rate = rate

    def set_default_admin_fee_rate(self, rate: int) -> None:
        if rate > MAX_ADMIN_FEE:
            raise FeeTooHigh("PairFactory: Over MAX_ADMIN_FEE is not allowed")
        if rate == self.default_admin_fee_rate:
            raise FeeTooHigh("PairFactory: _defAdminFeeRate invalid")
        self.default_admin_fee_rate = rate

    # --- Pairs ---

    def create_pair(
        self,
        tokens: Sequence[str],
        pair_type: PairType | int,
        **params: Any,
    ) -> Pool:
        """Create and register a pair.

        Tokens are stored in canonical (sorted) order. Extra params are
        passed to the pool class (e.g. decimals, amplification for stable
        pairs); swap and admin fee rates default to the registry defaults.

        Raises:
            InvalidPairType: If the pair type is not registered
            InvalidTokens: If the pair already exists or the tokens are rejected
                by the pool class
        """
        pool_class = self.pool_class(pair_type)
        pair_type = PairType(pair_type)
        address = pair_address(tokens, pair_type)
        if address in self._pairs:
            raise InvalidTokens("PairFactory: Pair already exists")

        canonical = sort_tokens(tokens)
        if "decimals" in params and params["decimals"] is not None:
            by_token = dict(zip((normalize_address(t) for t in tokens), params["decimals"], strict=True))
            params["decimals"] = [by_token[t] for t in canonical]

        params.setdefault("swap_fee_rate", self.default_swap_fee_rate)
        params.setdefault("admin_fee_rate", self.default_admin_fee_rate)
        if issubclass(pool_class, StableSwapPool):
            params.setdefault("amplification", self._config.default_amplification)
            params.setdefault("clock", self._clock)
            params.setdefault("max_iterations", self._config.max_iterations)

        pool = pool_class(address, canonical, **params)
        self._pairs[address] = pool
        self._pair_types[address] = pair_type
        self._all_pairs.append(address)
        logger.debug("pair_created", pair=address, pair_type=pair_type.name, tokens=list(canonical))
        return pool

    def pair_for(self, tokens: Sequence[str], pair_type: PairType | int) -> tuple[str, bool]:
        """Address of the pair for tokens and whether it has been created."""
        address = pair_address(tokens, pair_type)
        return address, address in self._pairs

    def get_pair(self, address: str) -> Pool | None:
        return self._pairs.get(normalize_address(address))

    def pair_type_of(self, address: str) -> PairType | None:
        return self._pair_types.get(normalize_address(address))

    def discard_pair(self, address: str) -> None:
        """Unregister a pair that never received liquidity."""
        address = normalize_address(address)
        pool = self._pairs.get(address)
        if pool is None or pool.total_supply != 0:
            return
        del self._pairs[address]
        del self._pair_types[address]
        self._all_pairs.remove(address)
        logger.debug("pair_discarded", pair=address)

    def all_pairs(self) -> list[str]:
        return list(self._all_pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __iter__(self) -> Iterator[Pool]:
        return iter(self._pairs.values())


__all__ = ["PairRegistry", "pair_address", "sort_tokens"]
