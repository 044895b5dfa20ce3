"""Shared token and account constants for tests.

All addresses are lowercase for consistency with normalize_address().

Usage:
    from tests.helpers import WETH, USDC, ALICE
    # or
    from tests.helpers.constants import WETH, USDC
"""

# =============================================================================
# Tokens
# =============================================================================

WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"  # Wrapped Ether (18 decimals)
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"  # USD Coin (6 decimals)
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"  # Dai Stablecoin (18 decimals)
USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"  # Tether USD (6 decimals)
WBTC = "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599"  # Wrapped Bitcoin (8 decimals)
UNI = "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984"  # Uniswap Token (18 decimals)

TOKEN_DECIMALS = {
    WETH: 18,
    USDC: 6,
    DAI: 18,
    USDT: 6,
    WBTC: 8,
    UNI: 18,
}

# =============================================================================
# Accounts
# =============================================================================

ALICE = "0x00000000000000000000000000000000000a11ce"
BOB = "0x0000000000000000000000000000000000000b0b"
CAROL = "0x00000000000000000000000000000000000ca201"

# =============================================================================
# Amounts and time
# =============================================================================

ONE_ETHER = 10**18
ONE_USDC = 10**6
START_TIME = 1_700_000_000
ONE_DAY = 24 * 60 * 60


__all__ = [
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
]
