"""Weighted-pool fixed-point (Bnum) math library.

18-decimal unsigned fixed-point arithmetic with explicit rounding and
range checks. All values are stored as integers scaled by 10^18 and must fit
in an unsigned 256-bit word; every operation checks its intermediates and
raises instead of wrapping or clamping.

Rounding rules:
- mul: (a * b) // ONE, rounds down
- div: (a * ONE + b // 2) // b, rounds half up
- pow: whole exponent by binary exponentiation, fractional exponent by a
  binomial series truncated at POW_PRECISION
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import ClassVar

from weighted_amm.constants import (
    MAX_POW_BASE,
    MIN_POW_BASE,
    ONE,
    POW_PRECISION,
    UINT256_MAX,
)
from weighted_amm.errors import (
    ArithmeticFailure,
    BaseTooHigh,
    BaseTooLow,
    DivisionByZero,
    Overflow,
    Underflow,
)

__all__ = [
    # Classes
    "Bnum",
    # Errors
    "PowApproximationError",
    # Functions
    "checked",
    "sub_sign",
    "mul_raw",
    "div_raw",
    "pow_int",
    "pow_approx",
    "pow_raw",
    # Constants
    "POW_MAX_ITERATIONS",
    "POW_RELATIVE_ERROR",
]

# Series terms evaluated before giving up on a fractional power. Bases in
# [0.01, 1.99] converge within roughly 1,200 terms.
POW_MAX_ITERATIONS = 5_000

# Relative error bound of pow() for bases in [0.5, 2). Below 1 the series
# terms share a sign, so the truncated tail grows as the base approaches 0.
POW_RELATIVE_ERROR = Decimal("1e-9")


class PowApproximationError(ArithmeticFailure):
    """Fractional power series did not reach POW_PRECISION within the iteration budget."""

    pass


# =============================================================================
# Raw integer helpers
# =============================================================================


def checked(value: int) -> int:
    """Return value if it is a valid uint256, raise otherwise."""
    if value < 0:
        raise Underflow(f"Negative fixed-point value: {value}")
    if value > UINT256_MAX:
        raise Overflow(f"Value exceeds uint256: {value}")
    return value


def sub_sign(a: int, b: int) -> tuple[int, bool]:
    """Return (|a - b|, a < b)."""
    if a >= b:
        return a - b, False
    return b - a, True


def mul_raw(a: int, b: int) -> int:
    """Multiply two fixed-point integers, rounding down."""
    product = a * b
    if product > UINT256_MAX:
        raise Overflow(f"Multiplication overflow: {a} * {b}")
    return product // ONE


def div_raw(a: int, b: int) -> int:
    """Divide two fixed-point integers, rounding half up."""
    if b == 0:
        raise DivisionByZero(f"Division by zero: {a} / 0")
    scaled = a * ONE
    if scaled > UINT256_MAX:
        raise Overflow(f"Division internal overflow: {a} * ONE")
    # Round half up
    numerator = scaled + b // 2
    if numerator > UINT256_MAX:
        raise Overflow(f"Division internal overflow: {scaled} + {b // 2}")
    return numerator // b


def pow_int(base: int, n: int) -> int:
    """Compute base^n for a fixed-point base and a plain integer n.

    Uses binary exponentiation with a rounding multiplication per step.
    """
    result = base if n % 2 else ONE
    n //= 2
    while n:
        base = mul_raw(base, base)
        if n % 2:
            result = mul_raw(result, base)
        n //= 2
    return result


def pow_approx(base: int, exp: int, precision: int = POW_PRECISION) -> int:
    """Compute base^exp for a fractional exponent (exp < ONE).

    Evaluates the binomial series

        (1 + x)^a = sum_k  C(a, k) * x^k,  x = base - 1

    with signs tracked separately, since all intermediates are unsigned.
    Stops once a term drops below precision or rounds to zero.

    Raises:
        PowApproximationError: If the series does not converge within
            POW_MAX_ITERATIONS terms.
    """
    x, x_negative = sub_sign(base, ONE)
    term = ONE
    total = term
    negative = False

    i = 1
    while term >= precision:
        if i > POW_MAX_ITERATIONS:
            raise PowApproximationError(
                f"pow({base}, {exp}) did not converge within {POW_MAX_ITERATIONS} terms"
            )
        big_k = i * ONE
        c, c_negative = sub_sign(exp, big_k - ONE)
        term = mul_raw(term, mul_raw(c, x))
        term = div_raw(term, big_k)
        if term == 0:
            break

        if x_negative:
            negative = not negative
        if c_negative:
            negative = not negative

        if negative:
            if term > total:
                raise Underflow(f"pow series went negative: {total} - {term}")
            total -= term
        else:
            total = checked(total + term)
        i += 1

    return total


def pow_raw(base: int, exp: int) -> int:
    """Compute base^exp where both are fixed-point integers.

    Raises:
        BaseTooLow: If base < MIN_POW_BASE
        BaseTooHigh: If base > MAX_POW_BASE
    """
    if base < MIN_POW_BASE:
        raise BaseTooLow(f"Power base {base} below {MIN_POW_BASE}")
    if base > MAX_POW_BASE:
        raise BaseTooHigh(f"Power base {base} above {MAX_POW_BASE}")

    whole = (exp // ONE) * ONE
    remain = exp - whole

    whole_pow = pow_int(base, whole // ONE)

    if remain == 0:
        return whole_pow

    partial = pow_approx(base, remain, POW_PRECISION)
    return mul_raw(whole_pow, partial)


# =============================================================================
# Bnum class
# =============================================================================


class Bnum:
    """18-decimal unsigned fixed-point number.

    All values are stored as integers scaled by 10^18 and are always
    within [0, 2^256 - 1].
    Example: 1.5 is stored as 1_500_000_000_000_000_000
    """

    ONE: ClassVar[int] = ONE

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]  # Unhashable since we define __eq__

    value: int

    def __init__(self, value: int) -> None:
        """Create Bnum from raw scaled value."""
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"Bnum requires int, got {type(value).__name__}")
        self.value = checked(value)

    @classmethod
    def of(cls, value: int | Bnum) -> Bnum:
        """Coerce a raw scaled int or Bnum to Bnum."""
        if isinstance(value, Bnum):
            return value
        return cls(value)

    @classmethod
    def from_int(cls, i: int) -> Bnum:
        """Create from integer (will be scaled by 10^18)."""
        return cls(i * cls.ONE)

    @classmethod
    def from_decimal(cls, d: Decimal | str) -> Bnum:
        """Create from decimal (will be scaled by 10^18).

        Uses ROUND_HALF_UP. Requires non-negative input.
        """
        d = Decimal(d)
        if d < 0:
            raise ValueError(f"Bnum.from_decimal requires non-negative input, got {d}")
        scaled = (d * cls.ONE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return cls(int(scaled))

    @classmethod
    def zero(cls) -> Bnum:
        return cls(0)

    @classmethod
    def one(cls) -> Bnum:
        return cls(cls.ONE)

    def to_decimal(self) -> Decimal:
        """Convert to Decimal for display."""
        return Decimal(self.value) / Decimal(self.ONE)

    def to_int(self) -> int:
        """Whole units, truncated."""
        return self.value // self.ONE

    def floor(self) -> Bnum:
        """Largest whole-unit value not above self."""
        return Bnum(self.to_int() * self.ONE)

    # --- Arithmetic ---

    def add(self, other: Bnum) -> Bnum:
        """Add two values. Raises Overflow past uint256."""
        return Bnum(self.value + other.value)

    def sub(self, other: Bnum) -> Bnum:
        """Subtract other from self. Raises Underflow if negative."""
        if other.value > self.value:
            raise Underflow(f"Underflow: {self.value} - {other.value}")
        return Bnum(self.value - other.value)

    def sub_sign(self, other: Bnum) -> tuple[Bnum, bool]:
        """Absolute difference and whether it is negative."""
        diff, negative = sub_sign(self.value, other.value)
        return Bnum(diff), negative

    def mul(self, other: Bnum) -> Bnum:
        """Multiply with floor rounding: (a * b) // 10^18"""
        return Bnum(mul_raw(self.value, other.value))

    def div(self, other: Bnum) -> Bnum:
        """Divide with half-up rounding: (a * 10^18 + b / 2) // b"""
        return Bnum(div_raw(self.value, other.value))

    def mul_up(self, other: Bnum) -> Bnum:
        """Multiply with ceiling rounding."""
        product = self.value * other.value
        if product > UINT256_MAX:
            raise Overflow(f"Multiplication overflow: {self.value} * {other.value}")
        if product == 0:
            return Bnum(0)
        return Bnum((product - 1) // self.ONE + 1)

    def div_down(self, other: Bnum) -> Bnum:
        """Divide with floor rounding: (a * 10^18) // b"""
        if other.value == 0:
            raise DivisionByZero(f"Division by zero: {self.value} / 0")
        return Bnum(checked(self.value * self.ONE) // other.value)

    def div_up(self, other: Bnum) -> Bnum:
        """Divide with ceiling rounding."""
        if other.value == 0:
            raise DivisionByZero(f"Division by zero: {self.value} / 0")
        numerator = checked(self.value * self.ONE)
        if numerator == 0:
            return Bnum(0)
        return Bnum((numerator - 1) // other.value + 1)

    def mod(self, other: Bnum) -> Bnum:
        """Integer remainder of the raw values."""
        if other.value == 0:
            raise DivisionByZero(f"Modulo by zero: {self.value} % 0")
        return Bnum(self.value % other.value)

    def pow(self, exp: Bnum) -> Bnum:
        """Compute self^exp, approximate for fractional exponents."""
        return Bnum(pow_raw(self.value, exp.value))

    def complement(self) -> Bnum:
        """Return 1 - self. Raises Underflow if self > 1."""
        return Bnum.one().sub(self)

    def min(self, other: Bnum) -> Bnum:
        return self if self.value <= other.value else other

    def max(self, other: Bnum) -> Bnum:
        return self if self.value >= other.value else other

    def average(self, other: Bnum) -> Bnum:
        """Mean of two values, rounded down."""
        a, b = self.value, other.value
        # (a & b) + (a ^ b) / 2 never exceeds max(a, b)
        return Bnum((a & b) + ((a ^ b) >> 1))

    # --- Comparison ---

    def is_zero(self) -> bool:
        return self.value == 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bnum):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Bnum):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Bnum):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Bnum):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Bnum):
            return NotImplemented
        return self.value >= other.value

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"Bnum({self.value})"

    def __str__(self) -> str:
        return str(self.to_decimal())
