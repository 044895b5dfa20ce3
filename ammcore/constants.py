"""Protocol constants for the AMM engine.

Centralizes fee scales, pool limits and the StableSwap precision parameters.
"""

# Fee rates are integers scaled by FEE_DENOMINATOR (1e10 = 100%)
FEE_DENOMINATOR = 10**10

# Swap fee can be at most 1%
MAX_SWAP_FEE = 10**8

# Admin fee is a share of the swap fee and can be at most 100% of it
MAX_ADMIN_FEE = 10**10

# LP shares locked forever on the first constant-product deposit
MINIMUM_LIQUIDITY = 1000

# Holder of the locked MINIMUM_LIQUIDITY shares
DEAD_ADDRESS = "0x000000000000000000000000000000000000dead"

# Zero address: cannot receive LP shares or swap output
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Constant-product reserves must fit in 112 bits
UINT112_MAX = 2**112 - 1

# =============================================================================
# StableSwap parameters
# =============================================================================

# Balances are normalized to 18 decimals before invariant math
POOL_PRECISION_DECIMALS = 18

# A is stored multiplied by A_PRECISION for finer ramping granularity
A_PRECISION = 100

# Raw A must be in (0, MAX_A)
MAX_A = 10**6

# A can change by at most this factor in a single ramp
MAX_A_CHANGE = 2

# Ramps must last at least two weeks
MIN_RAMP_TIME = 14 * 24 * 60 * 60

# A new ramp cannot start within a day of the previous one
RAMP_COOLDOWN = 24 * 60 * 60

# Newton iteration cap for the D and y solvers
MAX_LOOP_LIMIT = 255

# Largest number of tokens a stable pool can hold
MAX_POOLED_TOKENS = 32
