"""Tests for Bnum fixed-point arithmetic."""

from decimal import Decimal

import pytest

from tests.helpers import dpow, rel_error
from weighted_amm.constants import MAX_POW_BASE, ONE, UINT256_MAX
from weighted_amm.errors import (
    ArithmeticFailure,
    BaseTooHigh,
    BaseTooLow,
    DivisionByZero,
    Overflow,
    Underflow,
)
from weighted_amm.math.fixed_point import (
    POW_RELATIVE_ERROR,
    Bnum,
    PowApproximationError,
    pow_raw,
    sub_sign,
)


def d(s: str) -> Bnum:
    return Bnum.from_decimal(s)


class TestBnumConstruction:
    """Construction and range checks."""

    def test_from_int_scales(self):
        """from_int scales by ONE."""
        assert Bnum.from_int(3).value == 3 * ONE

    def test_from_decimal_rounds_half_up(self):
        """Half of the smallest unit rounds up."""
        assert d("0.0000000000000000005").value == 1
        assert d("0.0000000000000000004").value == 0

    def test_from_decimal_rejects_negative(self):
        """Negative decimals are rejected."""
        with pytest.raises(ValueError):
            Bnum.from_decimal("-1")

    def test_negative_raw_value_rejected(self):
        """A negative raw value underflows."""
        with pytest.raises(Underflow):
            Bnum(-1)

    def test_value_above_uint256_rejected(self):
        """A raw value above UINT256_MAX overflows."""
        with pytest.raises(Overflow):
            Bnum(UINT256_MAX + 1)

    def test_uint256_max_accepted(self):
        """UINT256_MAX itself is representable."""
        assert Bnum(UINT256_MAX).value == UINT256_MAX

    @pytest.mark.parametrize("value", [1.5, "1", True, None])
    def test_non_int_rejected(self, value):
        """Only ints are accepted as raw values."""
        with pytest.raises(TypeError):
            Bnum(value)

    def test_of_passes_bnum_through(self):
        """Bnum.of returns Bnum arguments unchanged."""
        b = Bnum(5)
        assert Bnum.of(b) is b
        assert Bnum.of(5) == b

    def test_unhashable(self):
        """Bnum values cannot be hashed."""
        with pytest.raises(TypeError):
            hash(Bnum(1))

    def test_to_int_and_floor_truncate(self):
        """to_int and floor drop the fractional part."""
        b = d("2.75")
        assert b.to_int() == 2
        assert b.floor() == Bnum.from_int(2)

    def test_to_decimal(self):
        """to_decimal returns the exact decimal value."""
        assert d("1.25").to_decimal() == Decimal("1.25")
        assert str(d("1.25")) == "1.25"


class TestBnumAddSub:
    """Addition and subtraction never wrap or clamp."""

    def test_add(self):
        """Addition is exact."""
        assert d("1.5").add(d("2.25")) == d("3.75")

    def test_add_overflow(self):
        """Addition past UINT256_MAX overflows."""
        with pytest.raises(Overflow):
            Bnum(UINT256_MAX).add(Bnum(1))

    def test_sub(self):
        """Subtraction is exact."""
        assert d("5").sub(d("3")) == d("2")

    def test_sub_to_zero(self):
        """Subtracting a value from itself gives zero."""
        a = d("5")
        assert a.sub(a).is_zero()

    def test_sub_underflow_raises(self):
        """Unlike a saturating subtraction, a larger subtrahend is an error."""
        with pytest.raises(Underflow):
            d("3").sub(d("5"))

    def test_sub_sign(self):
        """sub_sign returns the absolute difference and a negative flag."""
        assert sub_sign(3, 5) == (2, True)
        assert sub_sign(5, 3) == (2, False)
        diff, negative = d("1").sub_sign(d("1.5"))
        assert diff == d("0.5")
        assert negative

    def test_complement(self):
        """complement is ONE minus the value."""
        assert d("0.25").complement() == d("0.75")

    def test_complement_above_one_raises(self):
        """The complement of a value above ONE underflows."""
        with pytest.raises(Underflow):
            d("1.5").complement()


class TestBnumMulDiv:
    """Multiplication and division rounding."""

    def test_mul_exact(self):
        """Multiplication of representable products is exact."""
        assert d("1.5").mul(d("2")) == d("3")

    def test_mul_rounds_down(self):
        """mul rounds down."""
        assert Bnum(1).mul(Bnum(1)).value == 0

    def test_mul_up_rounds_up(self):
        """mul_up rounds up."""
        assert Bnum(1).mul_up(Bnum(1)).value == 1
        assert Bnum(0).mul_up(Bnum(5)).value == 0
        assert d("1.5").mul_up(d("2")) == d("3")

    def test_mul_overflow(self):
        """Multiplication past UINT256_MAX overflows."""
        with pytest.raises(Overflow):
            Bnum(UINT256_MAX).mul(Bnum(2))

    def test_div_rounds_half_up(self):
        """div rounds half up."""
        one, three = Bnum.one(), Bnum.from_int(3)
        assert one.div(three).value == 333333333333333333
        assert Bnum.from_int(2).div(three).value == 666666666666666667

    def test_div_down_and_up(self):
        """div_down and div_up bracket the exact quotient."""
        three = Bnum.from_int(3)
        assert Bnum.from_int(2).div_down(three).value == 666666666666666666
        assert Bnum.one().div_up(three).value == 333333333333333334
        assert Bnum.from_int(6).div_up(three) == Bnum.from_int(2)

    @pytest.mark.parametrize("method", ["div", "div_down", "div_up", "mod"])
    def test_division_by_zero(self, method):
        """Every division variant rejects a zero divisor."""
        with pytest.raises(DivisionByZero):
            getattr(Bnum.one(), method)(Bnum.zero())

    def test_div_internal_overflow(self):
        """a * ONE must fit in uint256."""
        with pytest.raises(Overflow):
            Bnum(UINT256_MAX).div(Bnum.one())

    def test_mod(self):
        """mod returns the raw remainder."""
        assert Bnum(7).mod(Bnum(3)) == Bnum(1)

    def test_arithmetic_errors_are_arithmetic_errors(self):
        """Callers may catch the builtin ArithmeticError."""
        assert issubclass(ArithmeticFailure, ArithmeticError)
        with pytest.raises(ArithmeticError):
            Bnum.one().div(Bnum.zero())


class TestBnumMinMaxAverage:
    """Exact helpers."""

    def test_min_max(self):
        """min and max pick by value."""
        a, b = d("1"), d("2")
        assert a.min(b) == a
        assert b.min(a) == a
        assert a.max(b) == b
        assert b.max(a) == b

    def test_average_rounds_down(self):
        """average rounds down."""
        assert Bnum(3).average(Bnum(4)) == Bnum(3)
        assert Bnum(4).average(Bnum(3)) == Bnum(3)

    def test_average_exact(self):
        """average of representable midpoints is exact."""
        assert d("1").average(d("2")) == d("1.5")

    def test_average_does_not_overflow(self):
        """average of huge values does not overflow."""
        big = Bnum(UINT256_MAX)
        assert big.average(big) == big
        assert big.average(Bnum(UINT256_MAX - 1)).value == UINT256_MAX - 1


class TestBnumComparison:
    """Tests for Bnum comparison and display."""

    def test_ordering(self):
        """Bnum values order by their raw value."""
        assert d("1") < d("2")
        assert d("2") > d("1")
        assert d("1") <= d("1")
        assert d("1") >= d("1")

    def test_not_equal_to_int(self):
        """A Bnum never equals a plain int."""
        assert Bnum(1) != 1

    def test_repr(self):
        """repr shows the raw value."""
        assert repr(Bnum(5)) == "Bnum(5)"


class TestBnumPow:
    """Power with whole and fractional exponents."""

    def test_zero_exponent(self):
        """Any base to the power zero is ONE."""
        assert d("1.5").pow(Bnum.zero()) == Bnum.one()

    def test_whole_exponent_exact(self):
        """Whole exponents use exact repeated multiplication."""
        assert d("1.5").pow(Bnum.from_int(2)) == d("2.25")
        assert d("0.5").pow(Bnum.from_int(3)) == d("0.125")

    def test_base_too_low(self):
        """Bases below the minimum are rejected."""
        with pytest.raises(BaseTooLow):
            Bnum.zero().pow(d("0.5"))

    def test_base_too_high(self):
        """Bases above the maximum are rejected."""
        with pytest.raises(BaseTooHigh):
            Bnum(MAX_POW_BASE + 1).pow(d("0.5"))

    @pytest.mark.parametrize("base", ["0.5", "0.9", "0.999", "1", "1.1", "1.5", "1.99"])
    @pytest.mark.parametrize("exp", ["0.25", "0.5", "0.333333333333333333", "1.75", "3.5"])
    def test_fractional_exponent_within_documented_error(self, base, exp):
        """Fractional powers stay within POW_RELATIVE_ERROR."""
        result = d(base).pow(d(exp))
        expected = dpow(Decimal(base), Decimal(exp))
        assert rel_error(result.value, expected) < POW_RELATIVE_ERROR

    def test_series_gives_up_near_zero(self):
        """The smallest base needs millions of terms and hits the iteration cap."""
        with pytest.raises(PowApproximationError):
            pow_raw(1, ONE // 2)
