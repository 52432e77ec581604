"""
Exact signed 64-bit integer arithmetic with explicit rounding control.

Python integers never overflow, so every helper here checks its true
mathematical result against the signed 64-bit range and raises OverflowError
instead of silently producing a value no 64-bit consumer could hold.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import math
import operator
from decimal import Decimal, localcontext
from decimal import ROUND_CEILING, ROUND_DOWN, ROUND_FLOOR, ROUND_HALF_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_UP
from enum import StrEnum, unique
from typing import Final

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import fmt_type, fmt_value

# @formatter:off

INT64_MIN: Final[int] = -(2 ** 63)
INT64_MAX: Final[int] = 2 ** 63 - 1

# @formatter:on


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class RoundingMode(StrEnum):
    """
    Rounding modes for divide_exact() and round_decimal().

    Attributes:
        CEILING     : Towards positive infinity.
        DOWN        : Towards zero (truncation).
        FLOOR       : Towards negative infinity.
        HALF_DOWN   : To the nearest neighbor, ties towards zero.
        HALF_EVEN   : To the nearest neighbor, ties to the even neighbor.
        HALF_UP     : To the nearest neighbor, ties away from zero.
        UNNECESSARY : Asserts the result is exact, raises ArithmeticError otherwise.
        UP          : Away from zero.
    """
    CEILING = "ceiling"
    DOWN = "down"
    FLOOR = "floor"
    HALF_DOWN = "half_down"
    HALF_EVEN = "half_even"
    HALF_UP = "half_up"
    UNNECESSARY = "unnecessary"
    UP = "up"


_DECIMAL_ROUNDING = {
    RoundingMode.CEILING: ROUND_CEILING,
    RoundingMode.DOWN: ROUND_DOWN,
    RoundingMode.FLOOR: ROUND_FLOOR,
    RoundingMode.HALF_DOWN: ROUND_HALF_DOWN,
    RoundingMode.HALF_EVEN: ROUND_HALF_EVEN,
    RoundingMode.HALF_UP: ROUND_HALF_UP,
    RoundingMode.UP: ROUND_UP,
}


# Methods --------------------------------------------------------------------------------------------------------------

def std_int64(value, *, name: str = "value") -> int:
    """
    Validate and normalize a signed 64-bit integer argument.

    Accepts Python int and any type implementing ``__index__`` (NumPy integer
    scalars and alike). Booleans, floats, Decimals and other types are rejected
    even when they hold an integral value.

    Args:
        value: The candidate integer.
        name: Argument name used in error messages.

    Returns:
        The value as a plain Python int.

    Raises:
        TypeError: If value is a bool or does not implement ``__index__``.
        OverflowError: If value is outside of [INT64_MIN, INT64_MAX].

    Examples:
        >>> std_int64(42)
        42
        >>> std_int64(2 ** 63)
        Traceback (most recent call last):
            ...
        OverflowError: value out of signed 64-bit range: 9223372036854775808
    """
    if isinstance(value, bool) or not hasattr(value, "__index__"):
        raise TypeError(f"{name} must be an integer, but got {fmt_type(value)}")

    value = operator.index(value)
    if not INT64_MIN <= value <= INT64_MAX:
        raise OverflowError(f"{name} out of signed 64-bit range: {value}")
    return value


def add_exact(x: int, y: int) -> int:
    """Returns x + y, raising OverflowError if the sum overflows a signed 64-bit integer."""
    return _checked(_int(x, "x") + _int(y, "y"), "long overflow")


def subtract_exact(x: int, y: int) -> int:
    """Returns x - y, raising OverflowError if the difference overflows a signed 64-bit integer."""
    return _checked(_int(x, "x") - _int(y, "y"), "long overflow")


def multiply_exact(x: int, y: int) -> int:
    """
    Returns x * y, raising OverflowError if the product overflows a signed 64-bit integer.

    The operands themselves may be arbitrary Python integers: unit factors of
    zetta and yotta exceed 64 bits, only the product is range checked.
    """
    return _checked(_int(x, "x") * _int(y, "y"), "long overflow")


def negate_exact(x: int) -> int:
    """Returns -x, raising OverflowError for INT64_MIN."""
    return _checked(-_int(x, "x"), "long overflow")


def abs_exact(x: int) -> int:
    """Returns abs(x), raising OverflowError for INT64_MIN."""
    return _checked(abs(_int(x, "x")), "long overflow")


def divide_exact(x: int, y: int, mode: RoundingMode | str = RoundingMode.HALF_UP) -> int:
    """
    Returns x / y rounded with the given rounding mode.

    The dividend must be a signed 64-bit integer; the divisor may be any non-zero
    integer. The only overflowing division is INT64_MIN / -1.

    Args:
        x: The dividend.
        y: The divisor.
        mode: The RoundingMode (or its string value), HALF_UP by default.

    Returns:
        The rounded quotient.

    Raises:
        ZeroDivisionError: If y is zero.
        OverflowError: If x is INT64_MIN and y is -1.
        ArithmeticError: If mode is UNNECESSARY and the division is inexact.
        ValueError: If mode is not a known rounding mode.

    Examples:
        >>> divide_exact(500, 1000, RoundingMode.HALF_UP)
        1
        >>> divide_exact(499, 1000, RoundingMode.HALF_UP)
        0
        >>> divide_exact(-7, 2, RoundingMode.FLOOR)
        -4
    """
    x = std_int64(x, name="dividend")
    y = _int(y, "divisor")
    mode = _rounding_mode(mode)

    if y == 0:
        raise ZeroDivisionError("division by zero")
    if x == INT64_MIN and y == -1:
        raise OverflowError("long overflow")

    signum = -1 if (x < 0) != (y < 0) else 1
    quotient, remainder = divmod(abs(x), abs(y))

    if remainder == 0:
        return signum * quotient

    match mode:
        case RoundingMode.UNNECESSARY:
            raise ArithmeticError("rounding necessary")
        case RoundingMode.DOWN:
            increment = False
        case RoundingMode.UP:
            increment = True
        case RoundingMode.CEILING:
            increment = signum > 0
        case RoundingMode.FLOOR:
            increment = signum < 0
        case RoundingMode.HALF_UP | RoundingMode.HALF_DOWN | RoundingMode.HALF_EVEN:
            # Sign of the comparison of the remainder with half of the divisor
            cmp_half = remainder - (abs(y) - remainder)
            if cmp_half == 0:
                increment = mode == RoundingMode.HALF_UP or (mode == RoundingMode.HALF_EVEN and quotient % 2 == 1)
            else:
                increment = cmp_half > 0
        case _:
            raise AssertionError(f"unhandled rounding mode: {mode}")

    return signum * (quotient + 1 if increment else quotient)


def ceil_to_multiple(x: float, multiple: float) -> float:
    """
    Rounds x up to the nearest multiple of the given multiple.

    A zero multiple returns x unchanged.

    Examples:
        >>> ceil_to_multiple(0.3, 0.125)
        0.375
    """
    return x if multiple == 0 else math.ceil(x / multiple) * multiple


def floor_to_multiple(x: float, multiple: float) -> float:
    """
    Rounds x down to the nearest multiple of the given multiple.

    A zero multiple returns x unchanged.

    Examples:
        >>> floor_to_multiple(-0.3, 0.125)
        -0.375
    """
    return x if multiple == 0 else math.floor(x / multiple) * multiple


def round_decimal(x: float | int | Decimal, scale: int, mode: RoundingMode | str = RoundingMode.HALF_EVEN) -> Decimal:
    """
    Rounds a number to `scale` digits after the decimal point.

    Floats are converted to their exact binary value before rounding, so
    2.675 rounds to 2.67 under HALF_UP, like any exact decimal arithmetic would.

    Raises:
        ValueError: If x is not finite, scale is negative, or mode is unknown.
        ArithmeticError: If mode is UNNECESSARY and rounding is required.
    """
    mode = _rounding_mode(mode)
    if scale < 0:
        raise ValueError(f"scale must be >= 0, got {scale}")

    value = x if isinstance(x, Decimal) else Decimal(x)
    if not value.is_finite():
        raise ValueError(f"cannot round non-finite value {fmt_value(x)}")

    quantum = Decimal(1).scaleb(-scale)
    with localcontext() as ctx:
        # Enough digits for the integral part plus scale fraction digits
        ctx.prec = max(ctx.prec, value.adjusted() + scale + 2)
        if mode == RoundingMode.UNNECESSARY:
            rounded = value.quantize(quantum, rounding=ROUND_DOWN)
            if rounded != value:
                raise ArithmeticError("rounding necessary")
            return rounded
        return value.quantize(quantum, rounding=_DECIMAL_ROUNDING[mode])


# Private Methods ------------------------------------------------------------------------------------------------------

def _checked(result: int, message: str) -> int:
    if not INT64_MIN <= result <= INT64_MAX:
        raise OverflowError(message)
    return result


def _int(value, name: str) -> int:
    if isinstance(value, bool) or not hasattr(value, "__index__"):
        raise TypeError(f"{name} must be an integer, but got {fmt_type(value)}")
    return operator.index(value)


def _rounding_mode(mode: RoundingMode | str) -> RoundingMode:
    try:
        return RoundingMode(mode)
    except ValueError:
        raise ValueError(f"unknown rounding mode {fmt_value(mode)}, expected one of {[m.value for m in RoundingMode]}") \
            from None


# Module Sanity Checks -------------------------------------------------------------------------------------------------

if set(_DECIMAL_ROUNDING) != set(RoundingMode) - {RoundingMode.UNNECESSARY}:
    raise AssertionError("Configuration Error: every RoundingMode except UNNECESSARY needs a decimal rounding constant.")
