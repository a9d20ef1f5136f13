"""
Checked integer arithmetic and WAD fixed-point helpers.

Every monetary amount in the engine is an unsigned 64-bit integer, every
timestamp a signed 64-bit integer. Ratios and powers are carried as WAD
(1e18-scaled) integers. Nothing here wraps or truncates silently: each
operation either returns an in-range integer or raises a SafeMathError.
"""
from decimal import Decimal, Inexact, ROUND_CEILING, ROUND_HALF_EVEN, localcontext

from lbp_core.common.errors import (
    AdditionOverflow,
    ConversionOverflow,
    DivisionUnderflow,
    ExponentiationOverflow,
    MultiplicationOverflow,
    SubtractionUnderflow,
)


U64_MAX = 2 ** 64 - 1
I64_MIN = -(2 ** 63)
I64_MAX = 2 ** 63 - 1
U128_MAX = 2 ** 128 - 1
U256_MAX = 2 ** 256 - 1

WAD = 10 ** 18
BASIS_POINTS = 10_000

# Exponents are weight ratios; weights live in [1, 9999] basis points.
MAX_POW_EXPONENT = BASIS_POINTS * WAD
MAX_POW_RESULT = 2 ** 128
POW_PRECISION = 60

_WAD_DEC = Decimal(WAD)

with localcontext() as _ctx:
    _ctx.prec = POW_PRECISION
    _MAX_POW_LN = (Decimal(MAX_POW_RESULT) / _WAD_DEC).ln()


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def to_u64(value: int) -> int:
    """
    Returns 'value' unchanged if it is an int in [0, 2**64 - 1].

    :raises ConversionOverflow: for anything else (floats, bools, negatives, too large).
    """
    if not _is_int(value) or value < 0 or value > U64_MAX:
        raise ConversionOverflow(f"{value!r} is not an unsigned 64-bit integer")
    return value


def to_i64(value: int) -> int:
    """Returns 'value' unchanged if it is an int in the signed 64-bit range."""
    if not _is_int(value) or value < I64_MIN or value > I64_MAX:
        raise ConversionOverflow(f"{value!r} is not a signed 64-bit integer")
    return value


def checked_add(a: int, b: int, bound: int = U64_MAX) -> int:
    result = a + b
    if result > bound:
        raise AdditionOverflow(f"{a} + {b} exceeds {bound}")
    return result


def checked_sub(a: int, b: int) -> int:
    result = a - b
    if result < 0:
        raise SubtractionUnderflow(f"{a} - {b} is negative")
    return result


def checked_mul(a: int, b: int, bound: int = U64_MAX) -> int:
    result = a * b
    if result > bound:
        raise MultiplicationOverflow(f"{a} * {b} exceeds {bound}")
    return result


def checked_div(a: int, b: int) -> int:
    if b == 0:
        raise DivisionUnderflow(f"{a} / 0")
    return a // b


def checked_div_up(a: int, b: int) -> int:
    if b == 0:
        raise DivisionUnderflow(f"{a} / 0")
    return -(-a // b)


def mul_div_down(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with a u256 intermediate and a u128 result."""
    product = checked_mul(a, b, bound=U256_MAX)
    result = checked_div(product, denominator)
    if result > U128_MAX:
        raise MultiplicationOverflow(f"{a} * {b} / {denominator} exceeds u128")
    return result


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator) with a u256 intermediate and a u128 result."""
    product = checked_mul(a, b, bound=U256_MAX)
    result = checked_div_up(product, denominator)
    if result > U128_MAX:
        raise MultiplicationOverflow(f"{a} * {b} / {denominator} exceeds u128")
    return result


def mul_down(a: int, b: int) -> int:
    return mul_div_down(a, b, WAD)


def mul_up(a: int, b: int) -> int:
    return mul_div_up(a, b, WAD)


def div_down(a: int, b: int) -> int:
    return mul_div_down(a, WAD, b)


def div_up(a: int, b: int) -> int:
    return mul_div_up(a, WAD, b)


def complement(x: int) -> int:
    """WAD - x, floored at zero."""
    return WAD - x if x < WAD else 0


def _pow_scaled(base: int, exponent: int, rounding: str):
    """
    Computes (base / WAD) ** (exponent / WAD) * WAD carried to POW_PRECISION
    significant digits, rounds it to an integer in the given direction, and
    reports whether any step was inexact.
    """
    if exponent > MAX_POW_EXPONENT:
        raise ExponentiationOverflow(f"exponent {exponent} exceeds {MAX_POW_EXPONENT}")

    with localcontext() as ctx:
        ctx.prec = POW_PRECISION
        ctx.rounding = ROUND_HALF_EVEN
        ctx.clear_flags()

        b = Decimal(base) / _WAD_DEC
        e = Decimal(exponent) / _WAD_DEC
        if b > 1 and e * b.ln() > _MAX_POW_LN:
            raise ExponentiationOverflow(f"{b} ** {e} exceeds the fixed-point range")

        scaled = (b ** e) * _WAD_DEC
        inexact = bool(ctx.flags[Inexact])
        if scaled > MAX_POW_RESULT:
            raise ExponentiationOverflow(f"{b} ** {e} exceeds the fixed-point range")
        result = int(scaled.to_integral_value(rounding=rounding))

    return result, inexact


def _pow_exact(base: int, exponent: int):
    if exponent == 0 or base == WAD:
        return WAD
    if base == 0:
        return 0
    if exponent == WAD:
        return base
    return None


def pow_up(base: int, exponent: int) -> int:
    """
    WAD power rounded up: never below the true value of base ** exponent.
    Inputs and result are WAD-scaled.
    """
    exact = _pow_exact(base, exponent)
    if exact is not None:
        return exact
    result, inexact = _pow_scaled(base, exponent, ROUND_CEILING)
    return result + 1 if inexact else result
