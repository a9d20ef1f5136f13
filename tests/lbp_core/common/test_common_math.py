import pytest

from decimal import Decimal, localcontext

from lbp_core.common.errors import (
    AdditionOverflow,
    ConversionOverflow,
    DivisionUnderflow,
    ExponentiationOverflow,
    MultiplicationOverflow,
    SubtractionUnderflow,
)
from lbp_core.common.math import (
    I64_MAX,
    I64_MIN,
    MAX_POW_EXPONENT,
    U64_MAX,
    WAD,
    checked_add,
    checked_div,
    checked_div_up,
    checked_mul,
    checked_sub,
    complement,
    div_down,
    div_up,
    mul_div_down,
    mul_div_up,
    mul_down,
    mul_up,
    pow_up,
    to_i64,
    to_u64,
)


@pytest.mark.parametrize("value", [0, 1, U64_MAX])
def test_to_u64_valid(value):
    assert to_u64(value) == value


@pytest.mark.parametrize("value", [-1, U64_MAX + 1, 1.0, True, "5", None])
def test_to_u64_invalid(value):
    with pytest.raises(ConversionOverflow):
        to_u64(value)


@pytest.mark.parametrize("value", [I64_MIN, -1, 0, I64_MAX])
def test_to_i64_valid(value):
    assert to_i64(value) == value


@pytest.mark.parametrize("value", [I64_MIN - 1, I64_MAX + 1, 0.5, False])
def test_to_i64_invalid(value):
    with pytest.raises(ConversionOverflow):
        to_i64(value)


def test_checked_add():
    assert checked_add(1, 2) == 3
    assert checked_add(U64_MAX - 1, 1) == U64_MAX
    with pytest.raises(AdditionOverflow):
        checked_add(U64_MAX, 1)
    # a wider bound lets intermediates grow
    assert checked_add(U64_MAX, 1, bound=2 ** 128) == 2 ** 64


def test_checked_sub():
    assert checked_sub(5, 5) == 0
    with pytest.raises(SubtractionUnderflow):
        checked_sub(4, 5)


def test_checked_mul():
    assert checked_mul(2 ** 32, 2 ** 31) == 2 ** 63
    with pytest.raises(MultiplicationOverflow):
        checked_mul(2 ** 32, 2 ** 32)


def test_checked_div_rounding():
    assert checked_div(7, 2) == 3
    assert checked_div_up(7, 2) == 4
    assert checked_div_up(8, 2) == 4
    assert checked_div_up(0, 3) == 0


@pytest.mark.parametrize("fn", [checked_div, checked_div_up])
def test_division_by_zero(fn):
    with pytest.raises(DivisionUnderflow):
        fn(1, 0)


def test_mul_div_directed_rounding():
    assert mul_div_down(10, 10, 3) == 33
    assert mul_div_up(10, 10, 3) == 34
    assert mul_div_down(9, 10, 3) == mul_div_up(9, 10, 3) == 30


def test_mul_div_uses_wide_intermediate():
    # the product exceeds u128 but the quotient fits
    assert mul_div_down(U64_MAX, U64_MAX, U64_MAX) == U64_MAX


def test_mul_div_result_must_fit_u128():
    with pytest.raises(MultiplicationOverflow):
        mul_div_down(2 ** 100, 2 ** 100, 1)


def test_wad_helpers():
    half = WAD // 2
    assert mul_down(3 * WAD, half) == 3 * WAD // 2
    assert div_down(WAD, 3 * WAD) == WAD // 3
    assert div_up(WAD, 3 * WAD) == WAD // 3 + 1
    assert mul_up(1, 1) == 1
    assert mul_down(1, 1) == 0


def test_complement():
    assert complement(0) == WAD
    assert complement(WAD // 4) == 3 * WAD // 4
    assert complement(WAD) == 0
    assert complement(2 * WAD) == 0


class TestPow:

    def test_exact_shortcuts(self):
        assert pow_up(5 * WAD, 0) == WAD
        assert pow_up(WAD, 7 * WAD) == WAD
        assert pow_up(0, WAD // 2) == 0
        assert pow_up(123 * WAD, WAD) == 123 * WAD

    @pytest.mark.parametrize(
        "base, exponent, expected",
        [
            (4 * WAD, WAD // 2, 2 * WAD),
            (WAD // 4, WAD // 2, WAD // 2),
            (2 * WAD, 2 * WAD, 4 * WAD),
            (9 * WAD // 10, 3 * WAD, 729 * WAD // 1000),
        ]
    )
    def test_never_below_true_value(self, base, exponent, expected):
        assert expected <= pow_up(base, exponent) <= expected + 2

    def test_inexact_power_rounds_up(self):
        base = 909090909090909091
        exponent = 111111111111111111
        with localcontext() as ctx:
            ctx.prec = 80
            true_value = (Decimal(base) / WAD) ** (Decimal(exponent) / WAD) * WAD
        up = pow_up(base, exponent)
        assert true_value < up <= true_value + 2

    def test_exponent_too_large(self):
        with pytest.raises(ExponentiationOverflow):
            pow_up(2 * WAD, MAX_POW_EXPONENT + 1)

    def test_result_too_large(self):
        with pytest.raises(ExponentiationOverflow):
            pow_up(2 * WAD, 200 * WAD)

    def test_small_base_large_exponent_stays_positive(self):
        assert 0 < pow_up(WAD // 10, 100 * WAD) <= 2
