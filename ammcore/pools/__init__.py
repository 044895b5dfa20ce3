"""Pool implementations and the pair registry."""

from ammcore.pools.base import Pool, PoolState
from ammcore.pools.constant_product import ConstantProductPool
from ammcore.pools.lp_token import LPToken
from ammcore.pools.registry import PairRegistry, pair_address, sort_tokens
from ammcore.pools.stable import StableSwapPool

__all__ = [
    "ConstantProductPool",
    "LPToken",
    "PairRegistry",
    "Pool",
    "PoolState",
    "StableSwapPool",
    "pair_address",
    "sort_tokens",
]
