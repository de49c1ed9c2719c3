"""
Fixed-point helpers for the cellar model.

All cellar accounting is done on plain integers. Amounts of the managed asset are
rescaled between the asset's native precision and the 18 decimal normalized scale,
and every multiply-then-divide names its rounding direction explicitly.
"""

from enum import Enum

from cellar_config import NORMALIZED_DECIMALS, WAD


class Rounding(Enum):
    """Direction used when an integer division leaves a remainder."""
    DOWN = 0
    UP = 1


def mul_div(x: int, y: int, denominator: int, rounding: Rounding = Rounding.DOWN) -> int:
    """
    Compute x * y / denominator on integers with the requested rounding.

    Args:
        x: First factor
        y: Second factor
        denominator: Divisor, must be non-zero
        rounding: Rounding.DOWN truncates, Rounding.UP rounds any remainder up

    Returns:
        The rounded quotient
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")

    product = x * y
    quotient = product // denominator

    # Add ceiling effect
    if rounding is Rounding.UP and product % denominator > 0:
        quotient += 1

    return quotient


def mul_div_down(x: int, y: int, denominator: int) -> int:
    return mul_div(x, y, denominator, Rounding.DOWN)


def mul_div_up(x: int, y: int, denominator: int) -> int:
    return mul_div(x, y, denominator, Rounding.UP)


def mul_wad_down(x: int, y: int) -> int:
    """Multiply by a WAD-scaled fraction (1e18 == 100%), rounding down."""
    return mul_div(x, y, WAD, Rounding.DOWN)


def change_decimals(amount: int, from_decimals: int, to_decimals: int,
                    rounding: Rounding = Rounding.DOWN) -> int:
    """
    Rescale an amount from one decimal precision to another.

    Scaling down drops digits; Rounding.UP rounds any dropped remainder up.
    """
    if from_decimals == to_decimals:
        return amount
    if from_decimals < to_decimals:
        return amount * 10 ** (to_decimals - from_decimals)
    return mul_div(amount, 1, 10 ** (from_decimals - to_decimals), rounding)


def normalize(amount: int, asset_decimals: int) -> int:
    """Native asset amount -> 18 decimal normalized amount."""
    return change_decimals(amount, asset_decimals, NORMALIZED_DECIMALS)


def denormalize(amount: int, asset_decimals: int, rounding: Rounding = Rounding.DOWN) -> int:
    """18 decimal normalized amount -> native asset amount (truncating unless rounding up)."""
    return change_decimals(amount, NORMALIZED_DECIMALS, asset_decimals, rounding)


def to_units(value, decimals: int) -> int:
    """
    Convert a human readable amount (e.g. 100.5) into integer base units.

    Strings and ints are converted exactly; floats go through their shortest repr.
    """
    text = str(value)
    if "e" in text or "E" in text:
        text = format(float(value), "f")

    negative = text.startswith("-")
    if negative:
        text = text[1:]

    characteristic, _, mantissa = text.partition(".")
    mantissa = (mantissa + "0" * decimals)[:decimals]
    units = int(characteristic or "0") * 10 ** decimals + int(mantissa or "0")

    return -units if negative else units
