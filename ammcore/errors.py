"""AMM error classes.

Every error carries a ``reason`` string. Callers match on these strings, so
they are part of the public contract and must not change.

The hierarchy follows the failure taxonomy:
- ValidationError: malformed input, rejected before any state change
- SlippageError: computed result outside caller-supplied bounds
- ExpiredError: deadline passed
- ConvergenceError: StableSwap solver did not converge
- AuthorizationError: missing allowance or bad signature
"""

from __future__ import annotations


class AmmError(Exception):
    """Base error for AMM operations."""

    default_reason = "AMM error"

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason if reason is not None else self.default_reason
        super().__init__(self.reason)


# =============================================================================
# Categories
# =============================================================================


class ValidationError(AmmError):
    """Invalid input. Raised before any state is mutated."""

    pass


class SlippageError(AmmError):
    """Result falls outside the caller's minimum/maximum bounds."""

    pass


class ExpiredError(AmmError):
    """Operation submitted after its deadline."""

    pass


class ConvergenceError(AmmError):
    """Iterative solver failed within the iteration cap."""

    pass


class AuthorizationError(AmmError):
    """Missing approval or invalid signature."""

    pass


class ReentrancyError(AmmError):
    """Pool entry point re-entered while locked."""

    default_reason = "LOCKED"


# =============================================================================
# Validation
# =============================================================================


class InsufficientInputAmount(ValidationError):
    """Swap input is zero."""

    default_reason = "INSUFFICIENT_INPUT_AMOUNT"


class InsufficientLiquidity(ValidationError):
    """Pool has no reserves for the requested operation."""

    default_reason = "INSUFFICIENT_LIQUIDITY"


class InsufficientLiquidityMinted(ValidationError):
    """Deposit would mint no LP shares."""

    default_reason = "INSUFFICIENT_LIQUIDITY_MINTED"


class InsufficientLiquidityBurned(ValidationError):
    """Burn would return nothing for at least one token."""

    default_reason = "INSUFFICIENT_LIQUIDITY_BURNED"


class AmountsLengthMismatch(ValidationError):
    """Amount vector does not match the pool's token count."""

    default_reason = "Amounts must match pooled tokens"


class MustSupplyAllTokens(ValidationError):
    """Stable deposits require a nonzero amount of every token."""

    default_reason = "Must supply all tokens in pool"


class DShouldIncrease(ValidationError):
    """Deposit did not increase the StableSwap invariant."""

    default_reason = "D should increase"


class CannotMintZero(ValidationError):
    """LP token mint of zero shares."""

    default_reason = "LPToken: cannot mint 0"


class CannotSendToItself(ValidationError):
    """LP token transfer to the token itself."""

    default_reason = "LPToken: cannot send to itself"


class InsufficientLpBalance(ValidationError):
    """Owner does not hold enough LP shares."""

    default_reason = ">LP.balanceOf"


class WithdrawExceedsAvailable(ValidationError):
    """Single-token withdrawal larger than the pool balance."""

    default_reason = "Withdraw exceeds available"


class BurntAmountZero(ValidationError):
    """Imbalanced withdrawal would burn no LP shares."""

    default_reason = "Burnt amount cannot be zero"


class TokenNotInPool(ValidationError):
    """Token is not one of the pool's tokens."""

    default_reason = "Token not found"


class InvalidTokenIndex(ValidationError):
    """Token index out of range or both indices equal."""

    default_reason = "Token index out of range"


class InvalidTokens(ValidationError):
    """Token list rejected at pair creation."""

    default_reason = "Token cannot be the same"


class InvalidRecipient(ValidationError):
    """Recipient cannot receive the output."""

    default_reason = "INVALID_TO"


class FeeTooHigh(ValidationError):
    """Fee rate above the protocol maximum."""

    default_reason = "SwapFee is greater than the maximum value"


class ReserveOverflow(ValidationError):
    """Constant-product reserve does not fit in 112 bits."""

    default_reason = "OVERFLOW"


class InvariantViolation(ValidationError):
    """Constant product decreased after a swap."""

    default_reason = "K"


class DesiredAmountInvalid(ValidationError):
    """Minimum amount is larger than the desired amount for a token."""

    default_reason = "desired invalid"

    @classmethod
    def for_index(cls, index: int) -> DesiredAmountInvalid:
        """Build the error for a given token position."""
        return cls(f"token[{index}] desired invalid")


class InvalidAmplification(ValidationError):
    """Amplification parameter or ramp schedule rejected."""

    default_reason = "futureA_ must be > 0 and < MAX_A"


class NotPair(ValidationError):
    """Address is not a registered pair."""

    default_reason = "is not pair"


class InvalidPairType(ValidationError):
    """Pair type has no registered implementation."""

    default_reason = "invalid pair type"


class InvalidRoute(ValidationError):
    """Route is empty, broken or names the wrong pool type."""

    default_reason = "INVALID_PATH"


# =============================================================================
# Slippage
# =============================================================================


class InsufficientOutputAmount(SlippageError):
    """Output below the caller's minimum."""

    default_reason = "INSUFFICIENT_OUTPUT_AMOUNT"


class InsufficientAAmount(SlippageError):
    """Optimal amount of the first token is below its minimum."""

    default_reason = "INSUFFICIENT_A_AMOUNT"


class InsufficientBAmount(SlippageError):
    """Optimal amount of the second token is below its minimum."""

    default_reason = "INSUFFICIENT_B_AMOUNT"


class MinLiquidityNotMet(SlippageError):
    """Minted LP shares below the caller's minimum."""

    default_reason = "Couldn't mint min requested"


class MinAmountsNotMet(SlippageError):
    """Withdrawn amount below the caller's minimum."""

    default_reason = "amounts[i] < minAmounts[i]"


class MaxBurnExceeded(SlippageError):
    """Imbalanced withdrawal would burn more than allowed."""

    default_reason = "tokenAmount > maxBurnAmount"


# =============================================================================
# Temporal
# =============================================================================


class Expired(ExpiredError):
    """Deadline passed."""

    default_reason = "EXPIRED"


class DeadlineNotMet(ExpiredError):
    """Deadline passed on a stable pool operation."""

    default_reason = "Deadline not met"


# =============================================================================
# Convergence
# =============================================================================


class DDoesNotConverge(ConvergenceError):
    """Newton iteration for the invariant D did not converge."""

    default_reason = "D does not converge"


class YDoesNotConverge(ConvergenceError):
    """Newton iteration for a single balance y did not converge."""

    default_reason = "Approximation did not converge"


# =============================================================================
# Authorization
# =============================================================================


class InvalidSignature(AuthorizationError):
    """Permit signature rejected by the verifier."""

    default_reason = "INVALID_SIGNATURE"


class TransferFailed(AuthorizationError):
    """Token pull failed for lack of balance or allowance."""

    default_reason = "TransferHelper: TRANSFER_FROM_FAILED"


__all__ = [
    "AmmError",
    "ValidationError",
    "SlippageError",
    "ExpiredError",
    "ConvergenceError",
    "AuthorizationError",
    "ReentrancyError",
    "InsufficientInputAmount",
    "InsufficientLiquidity",
    "InsufficientLiquidityMinted",
    "InsufficientLiquidityBurned",
    "AmountsLengthMismatch",
    "MustSupplyAllTokens",
    "DShouldIncrease",
    "CannotMintZero",
    "CannotSendToItself",
    "InsufficientLpBalance",
    "WithdrawExceedsAvailable",
    "BurntAmountZero",
    "TokenNotInPool",
    "InvalidTokenIndex",
    "InvalidTokens",
    "InvalidRecipient",
    "FeeTooHigh",
    "ReserveOverflow",
    "InvariantViolation",
    "DesiredAmountInvalid",
    "InvalidAmplification",
    "NotPair",
    "InvalidPairType",
    "InvalidRoute",
    "InsufficientOutputAmount",
    "InsufficientAAmount",
    "InsufficientBAmount",
    "MinLiquidityNotMet",
    "MinAmountsNotMet",
    "MaxBurnExceeded",
    "Expired",
    "DeadlineNotMet",
    "DDoesNotConverge",
    "YDoesNotConverge",
    "InvalidSignature",
    "TransferFailed",
]
