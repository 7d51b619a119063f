"""Weighted pool error classes.

Errors are grouped by kind. Every failure aborts the whole operation; callers
may catch a kind (e.g. SlippageExceeded) or a concrete condition
(e.g. LimitOutError).
"""


class PoolError(Exception):
    """Base error for pool operations."""

    pass


# =============================================================================
# Preconditions
# =============================================================================


class PreconditionViolation(PoolError):
    """Pool is not in the state required by the operation."""

    pass


class NotBoundError(PreconditionViolation):
    """Token is not bound to the pool."""

    pass


class AlreadyBoundError(PreconditionViolation):
    """Token is already bound to the pool."""

    pass


class NotFinalizedError(PreconditionViolation):
    """Operation requires a finalized pool."""

    pass


class FinalizedError(PreconditionViolation):
    """Operation is not allowed once the pool is finalized."""

    pass


class SwapNotPublicError(PreconditionViolation):
    """Public swapping is disabled."""

    pass


class NotControllerError(PreconditionViolation):
    """Caller is not the pool controller."""

    pass


class ReentrancyError(PreconditionViolation):
    """Pool was re-entered while a mutating operation was in progress."""

    pass


class AnchorTokenError(PreconditionViolation):
    """The anchor token cannot be removed from the pool."""

    pass


# =============================================================================
# Parameter ranges
# =============================================================================


class ParameterOutOfRange(PoolError):
    """A weight, fee, balance or count is outside its configured bounds."""

    pass


class MinWeightError(ParameterOutOfRange):
    """Denormalized weight is below MIN_WEIGHT."""

    pass


class MaxWeightError(ParameterOutOfRange):
    """Denormalized weight is above MAX_WEIGHT."""

    pass


class MaxTotalWeightError(ParameterOutOfRange):
    """Sum of denormalized weights would exceed MAX_TOTAL_WEIGHT."""

    pass


class MinBalanceError(ParameterOutOfRange):
    """Token balance is below MIN_BALANCE."""

    pass


class MinFeeError(ParameterOutOfRange):
    """Swap fee is below MIN_FEE."""

    pass


class MaxFeeError(ParameterOutOfRange):
    """Swap fee is above MAX_FEE."""

    pass


class MinTokensError(ParameterOutOfRange):
    """Pool holds fewer than MIN_ASSETS tokens."""

    pass


class MaxTokensError(ParameterOutOfRange):
    """Pool would hold more than MAX_ASSETS tokens."""

    pass


class AnchorWeightTooLow(ParameterOutOfRange):
    """Anchor token's normalized weight is below the configured minimum."""

    pass


class AmountsMismatchError(ParameterOutOfRange):
    """Number of limits does not match the number of bound tokens."""

    pass


# =============================================================================
# Amount checks
# =============================================================================


class RoundingToZero(PoolError):
    """A computed amount or ratio rounded to zero."""

    pass


class SlippageExceeded(PoolError):
    """A computed amount or price violates a caller-supplied limit."""

    pass


class LimitInError(SlippageExceeded):
    """Required input exceeds the caller's maximum."""

    pass


class LimitOutError(SlippageExceeded):
    """Output is below the caller's minimum."""

    pass


class BadLimitPriceError(SlippageExceeded):
    """Spot price before the swap already exceeds the caller's max price."""

    pass


class LimitPriceError(SlippageExceeded):
    """Spot price after the swap exceeds the caller's max price."""

    pass


class RatioLimitExceeded(PoolError):
    """Operation would move too large a fraction of a token balance."""

    pass


class MaxInRatioError(RatioLimitExceeded):
    """Input exceeds MAX_IN_RATIO of the token balance."""

    pass


class MaxOutRatioError(RatioLimitExceeded):
    """Output exceeds MAX_OUT_RATIO of the token balance."""

    pass


class InvariantViolation(PoolError):
    """Post-trade price check failed; state would be exploitable."""

    pass


# =============================================================================
# Arithmetic
# =============================================================================


class ArithmeticFailure(PoolError, ArithmeticError):
    """Base class for fixed-point arithmetic errors."""

    pass


class Overflow(ArithmeticFailure):
    """Result or intermediate exceeds the uint256 range."""

    pass


class Underflow(ArithmeticFailure):
    """Subtraction would produce a negative result."""

    pass


class DivisionByZero(ArithmeticFailure):
    """Division or modulo by zero."""

    pass


class BaseTooLow(ArithmeticFailure):
    """Power base is below MIN_POW_BASE."""

    pass


class BaseTooHigh(ArithmeticFailure):
    """Power base is above MAX_POW_BASE."""

    pass


# =============================================================================
# External collaborators
# =============================================================================


class ExternalTransferFailed(PoolError):
    """Asset transfer reported failure or raised."""

    pass


# =============================================================================
# Pool share ledger
# =============================================================================


class LedgerError(PoolError):
    """Base error for pool share bookkeeping."""

    pass


class InsufficientBalance(LedgerError):
    """Account holds fewer shares than the amount moved."""

    pass


class InsufficientAllowance(LedgerError):
    """Spender is neither the owner nor holds enough allowance."""

    pass
