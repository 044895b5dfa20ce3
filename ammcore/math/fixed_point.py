"""Scaled-integer math for pool calculations.

All quantities are plain non-negative integers. Rates (swap fee, admin fee)
are integers scaled by FEE_DENOMINATOR (1e10 = 100%), wrapped in FeeRate.
Every division states its rounding direction explicitly.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import ClassVar

from ammcore.constants import FEE_DENOMINATOR

__all__ = [
    # Classes
    "FeeRate",
    # Functions
    "mul_div_down",
    "mul_div_up",
    "ceil_div",
    "isqrt",
    "pow_int",
    "within1",
    "difference",
]


# =============================================================================
# Core functions
# =============================================================================


def mul_div_down(a: int, b: int, denominator: int) -> int:
    """Compute a * b / denominator rounded down."""
    if denominator == 0:
        raise ZeroDivisionError("mul_div_down by zero")
    return (a * b) // denominator


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """Compute a * b / denominator rounded up."""
    if denominator == 0:
        raise ZeroDivisionError("mul_div_up by zero")
    product = a * b
    if product == 0:
        return 0
    return (product - 1) // denominator + 1


def ceil_div(a: int, b: int) -> int:
    """Ceiling division for non-negative operands."""
    if b == 0:
        raise ZeroDivisionError("ceil_div by zero")
    if a == 0:
        return 0
    return (a - 1) // b + 1


def isqrt(x: int) -> int:
    """Floor square root of a non-negative integer."""
    if x < 0:
        raise ValueError(f"isqrt of negative value: {x}")
    return math.isqrt(x)


def pow_int(base: int, exponent: int) -> int:
    """Integer power for non-negative exponents."""
    if exponent < 0:
        raise ValueError(f"pow_int requires non-negative exponent, got {exponent}")
    return base**exponent


def within1(a: int, b: int) -> bool:
    """True when a and b differ by at most 1 (Newton convergence test)."""
    return abs(a - b) <= 1


def difference(a: int, b: int) -> int:
    """Absolute difference |a - b|."""
    return a - b if a > b else b - a


# =============================================================================
# Fee rate
# =============================================================================


class FeeRate:
    """Fee rate stored as an integer scaled by FEE_DENOMINATOR.

    Example: 0.3% is stored as 30_000_000.
    """

    ONE: ClassVar[int] = FEE_DENOMINATOR

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]  # Unhashable since we define __eq__

    def __init__(self, value: int) -> None:
        if value < 0 or value > self.ONE:
            raise ValueError(f"FeeRate must be within [0, {self.ONE}], got {value}")
        self.value = value

    def to_decimal(self) -> Decimal:
        return Decimal(self.value) / Decimal(self.ONE)

    def portion(self, amount: int) -> int:
        """Fee charged on amount, rounded down."""
        return (amount * self.value) // self.ONE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeeRate):
            return NotImplemented
        return self.value == other.value

    def __repr__(self) -> str:
        return f"FeeRate({self.value})"

    def __str__(self) -> str:
        return f"{self.to_decimal() * 100}%"
