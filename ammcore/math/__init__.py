"""Mathematical utilities for pool calculations.

This package provides the integer primitives used by both pool types:
- SafeInt: checked unsigned arithmetic
- FeeRate and scaled mul/div helpers with explicit rounding
"""

from ammcore.math.fixed_point import FeeRate, ceil_div, isqrt, mul_div_down, mul_div_up
from ammcore.math.safe_int import S, SafeInt

__all__ = ["FeeRate", "S", "SafeInt", "ceil_div", "isqrt", "mul_div_down", "mul_div_up"]
