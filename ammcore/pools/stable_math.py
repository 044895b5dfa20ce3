"""StableSwap invariant math.

Newton-Raphson solvers for the invariant D and for a single balance y given
D. Balances are the normalized (18-decimal) "xp" values and the amplification
is in A_PRECISION units.

All arithmetic goes through SafeInt so an underflow or zero division surfaces
as an ArithmeticError instead of a silently wrong result.
"""

from __future__ import annotations

from collections.abc import Sequence

from ammcore.constants import A_PRECISION, MAX_LOOP_LIMIT
from ammcore.errors import DDoesNotConverge, InsufficientLiquidity, InvalidTokenIndex, YDoesNotConverge
from ammcore.math.fixed_point import within1
from ammcore.math.safe_int import S


def get_d(xp: Sequence[int], amp: int, max_iterations: int = MAX_LOOP_LIMIT) -> int:
    """Calculate the StableSwap invariant D.

    Solves A*n^n*sum(x) + D = A*D*n^n + D^(n+1) / (n^n * prod(x)) for D,
    starting from D = sum(x):

        D_p = D^(n+1) / (n^n * prod(x))
        D = (Ann * S / A_PREC + D_p * n) * D / ((Ann - A_PREC) * D / A_PREC + (n + 1) * D_p)

    Args:
        xp: Normalized balances
        amp: Amplification in A_PRECISION units
        max_iterations: Newton iteration cap

    Returns:
        D, or 0 if all balances are zero

    Raises:
        InsufficientLiquidity: If some but not all balances are zero
        DDoesNotConverge: If |D - D_prev| <= 1 is not reached within the cap
    """
    n_coins = len(xp)
    s = S(sum(xp))
    if s == 0:
        return 0
    for i, x in enumerate(xp):
        if x <= 0:
            raise InsufficientLiquidity(f"Balance at index {i} must be positive")

    d = s
    n_a = S(amp) * n_coins

    for _ in range(max_iterations):
        d_p = d
        for x in xp:
            d_p = d_p * d // (S(x) * n_coins)

        d_prev = d
        numerator = (n_a * s // A_PRECISION + d_p * n_coins) * d
        denominator = (n_a - A_PRECISION) * d // A_PRECISION + d_p * (n_coins + 1)
        d = numerator // denominator

        if within1(d.value, d_prev.value):
            return d.value

    raise DDoesNotConverge()


def get_y(
    amp: int,
    index_from: int,
    index_to: int,
    x: int,
    xp: Sequence[int],
    max_iterations: int = MAX_LOOP_LIMIT,
) -> int:
    """New balance of index_to after index_from's balance becomes x, holding D fixed.

    Args:
        amp: Amplification in A_PRECISION units
        index_from: Index of the token whose balance changes
        index_to: Index of the token to solve for
        x: New normalized balance of index_from
        xp: Current normalized balances
        max_iterations: Newton iteration cap

    Raises:
        InvalidTokenIndex: If the indices are equal or out of range
        DDoesNotConverge / YDoesNotConverge: If either solver fails
    """
    n_coins = len(xp)
    if index_from == index_to:
        raise InvalidTokenIndex("Can't compare token to itself")
    if not (0 <= index_from < n_coins and 0 <= index_to < n_coins):
        raise InvalidTokenIndex("Tokens must be in pool")

    d = get_d(xp, amp, max_iterations)
    balances = [x if k == index_from else xp[k] for k in range(n_coins)]
    return _solve_y(amp, index_to, balances, d, max_iterations)


def get_yd(
    amp: int,
    index: int,
    xp: Sequence[int],
    d: int,
    max_iterations: int = MAX_LOOP_LIMIT,
) -> int:
    """Balance of token index that keeps the invariant at d, other balances fixed.

    Used for single-token withdrawals, where D is lowered first and the
    withdrawn token's balance is solved for.

    Raises:
        InvalidTokenIndex: If index is out of range
        YDoesNotConverge: If the solver fails
    """
    if not 0 <= index < len(xp):
        raise InvalidTokenIndex("Token not found")
    return _solve_y(amp, index, xp, d, max_iterations)


def _solve_y(amp: int, index: int, balances: Sequence[int], d: int, max_iterations: int) -> int:
    """Newton iteration y = (y^2 + c) / (2y + b - D) over all balances except index."""
    n_coins = len(balances)
    sd = S(d)
    n_a = S(amp) * n_coins

    c = sd
    s = S(0)
    for k, balance in enumerate(balances):
        if k == index:
            continue
        s = s + balance
        c = c * sd // (S(balance) * n_coins)

    c = c * sd * A_PRECISION // (n_a * n_coins)
    b = s + sd * A_PRECISION // n_a

    y = sd
    for _ in range(max_iterations):
        y_prev = y
        y = (y * y + c) // (y * 2 + b - sd)
        if within1(y.value, y_prev.value):
            return y.value

    raise YDoesNotConverge()


__all__ = ["get_d", "get_y", "get_yd"]
