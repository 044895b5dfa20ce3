"""Test helpers module for shared test utilities.

- constants: Token and account addresses, common amounts
- factories: Pool builders, fake clock and signature verifier
"""

from tests.helpers.constants import (
    ALICE,
    BOB,
    CAROL,
    DAI,
    ONE_DAY,
    ONE_ETHER,
    ONE_USDC,
    START_TIME,
    TOKEN_DECIMALS,
    UNI,
    USDC,
    USDT,
    WBTC,
    WETH,
)
from tests.helpers.factories import (
    FakeClock,
    StubVerifier,
    add_liquidity,
    create_stable_pair,
    fund,
    make_stable_pool,
    make_volatile_pool,
    real_decimals,
)

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "USDT",
    "WBTC",
    "UNI",
    "TOKEN_DECIMALS",
    "ALICE",
    "BOB",
    "CAROL",
    "ONE_ETHER",
    "ONE_USDC",
    "START_TIME",
    "ONE_DAY",
    # Factories
    "FakeClock",
    "StubVerifier",
    "add_liquidity",
    "create_stable_pair",
    "fund",
    "make_stable_pool",
    "make_volatile_pool",
    "real_decimals",
]
