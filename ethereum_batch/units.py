"""
Conversion between human-readable amounts and integer base units.

All arithmetic is done with ``decimal.Decimal`` so transfer amounts stay exact.
Fractions smaller than one base unit are truncated, never rounded up.
"""
from decimal import Decimal, InvalidOperation, Overflow, ROUND_DOWN, localcontext
from enum import Enum
from typing import Union

from .exceptions import ConversionError

NATIVE_DECIMALS = 18
DEFAULT_TOKEN_DECIMALS = 18

# uint256 max is ~1.16e77
MAX_DECIMALS = 77
MAX_UINT256 = 2**256 - 1

Number = Union[str, int, float, Decimal]


class AmountUnit(str, Enum):
    """How a native transfer amount is expressed."""
    ETHER = "ether"
    WEI = "wei"
    AUTO = "auto"


def _check_uint256(amount: int, value: Number) -> int:
    if amount > MAX_UINT256:
        raise ConversionError(f"Amount exceeds the uint256 maximum: {value!r}")
    return amount


def _check_decimals(decimals: int) -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise ConversionError(f"decimals must be an integer, got {decimals!r}")
    if decimals < 0 or decimals > MAX_DECIMALS:
        raise ConversionError(f"decimals must be between 0 and {MAX_DECIMALS}, got {decimals}")
    return decimals


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, bool):
        raise ConversionError(f"Amount cannot be a boolean: {value!r}")
    if isinstance(value, Decimal):
        parsed = value
    else:
        # floats go through their shortest repr, not their binary expansion
        text = str(value).strip()
        if not text:
            raise ConversionError("Amount cannot be empty")
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            raise ConversionError(f"Amount is not a valid number: {value!r}")
    if not parsed.is_finite():
        raise ConversionError(f"Amount must be finite: {value!r}")
    if parsed < 0:
        raise ConversionError(f"Amount must be non-negative: {value!r}")
    return parsed


def to_base_units(value: Number, decimals: int = NATIVE_DECIMALS) -> int:
    """
    Convert a human-readable amount to integer base units.

    Args:
        value: Decimal amount such as ``"1.5"`` or ``"2"``
        decimals: Decimal places of the currency

    Returns:
        Amount in base units, truncated toward zero

    Raises:
        ConversionError: If the amount is not a finite non-negative number
            or does not fit in a uint256
    """
    decimals = _check_decimals(decimals)
    amount = _to_decimal(value)
    with localcontext() as ctx:
        ctx.prec = 200
        try:
            scaled = amount.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN)
        except Overflow:
            raise ConversionError(f"Amount exceeds the uint256 maximum: {value!r}")
        # compare before int() so absurd exponents never become huge ints
        if scaled > MAX_UINT256:
            raise ConversionError(f"Amount exceeds the uint256 maximum: {value!r}")
        return int(scaled)


def parse_base_units(value: Number) -> int:
    """
    Parse an amount that is already expressed in base units.

    Accepts decimal digits or a ``0x``-prefixed hex quantity.

    Raises:
        ConversionError: If the value has a fractional part, is not an integer
            or exceeds the uint256 maximum
    """
    if isinstance(value, bool):
        raise ConversionError(f"Amount cannot be a boolean: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ConversionError(f"Amount must be non-negative: {value!r}")
        return _check_uint256(value, value)
    text = str(value).strip()
    if not text:
        raise ConversionError("Amount cannot be empty")
    if text.lower().startswith("0x"):
        try:
            amount = int(text, 16)
        except ValueError:
            raise ConversionError(f"Invalid hex quantity: {value!r}")
        return _check_uint256(amount, value)
    if text.isdigit():
        return _check_uint256(int(text, 10), value)
    raise ConversionError(f"Base-unit amount must be a non-negative integer: {value!r}")


def to_human_units(base_units: int, decimals: int = NATIVE_DECIMALS) -> str:
    """
    Render base units as a decimal string for display.

    Trailing zeros are dropped: ``1500000000000000000`` becomes ``"1.5"``.
    """
    decimals = _check_decimals(decimals)
    if isinstance(base_units, bool) or not isinstance(base_units, int):
        raise ConversionError(f"Base units must be an integer, got {base_units!r}")
    with localcontext() as ctx:
        ctx.prec = 200
        human = Decimal(base_units).scaleb(-decimals)
        if human == human.to_integral_value():
            return str(human.quantize(Decimal(1)))
        return format(human.normalize(), "f")


def resolve_amount(value: Number, unit: Union[AmountUnit, str], decimals: int = NATIVE_DECIMALS) -> int:
    """
    Convert an amount according to its declared unit.

    ``AUTO`` treats a value with a ``.`` as human units and anything else as
    base units.
    """
    unit = AmountUnit(unit)
    if unit is AmountUnit.ETHER:
        return to_base_units(value, decimals)
    if unit is AmountUnit.WEI:
        return parse_base_units(value)
    if "." in str(value):
        return to_base_units(value, decimals)
    return parse_base_units(value)
