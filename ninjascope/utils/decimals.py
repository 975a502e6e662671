"""
Normalization of chain fixed-point amounts into human-readable decimal strings.

Spot markets quote prices and quantities in the smallest units of their base
and quote tokens:

    human_price = raw_price * 10^(base_decimals - quote_decimals)
    human_quantity = raw_quantity / 10^base_decimals

Derivative markets are already quoted in human units, so their values are
only reformatted. Every result is a string; arithmetic happens in Decimal so
no binary float rounding leaks into the output.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation

DEFAULT_BASE_DECIMALS = 18
DEFAULT_QUOTE_DECIMALS = 6

_LARGE = Context(prec=10, rounding=ROUND_HALF_UP)
_SMALL = Context(prec=8, rounding=ROUND_HALF_UP)
_SMALL_FLOOR = Decimal("0.00001")


@dataclass(frozen=True)
class TokenDecimals:
    """Decimal precision of a market's base and quote tokens."""

    base_decimals: int = DEFAULT_BASE_DECIMALS
    quote_decimals: int = DEFAULT_QUOTE_DECIMALS


def parse_decimal(value: str | int | float | Decimal | None) -> Decimal:
    """
    Parse a provider amount, mapping missing or unparsable input to zero.

    NaN and infinities also become zero; this never raises.
    """
    if value is None:
        return Decimal(0)
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal(0)
    if not parsed.is_finite():
        return Decimal(0)
    return parsed


def safe_float(value: str | int | float | Decimal | None) -> float:
    """Parse a value to float for metric arithmetic; unparsable input is 0.0."""
    return float(parse_decimal(value))


def format_number(value: str | int | float | Decimal | None) -> str:
    """
    Render a number as a human-readable string.

    Magnitudes >= 1 keep 10 significant digits, magnitudes in [1e-5, 1)
    keep 8, and smaller non-zero magnitudes use scientific notation with
    6 fractional digits. Zero and unparsable input render as "0".
    """
    number = parse_decimal(value)
    if number.is_zero():
        return "0"

    magnitude = abs(number)
    if magnitude >= 1:
        rounded = _LARGE.plus(number)
    elif magnitude >= _SMALL_FLOOR:
        rounded = _SMALL.plus(number)
    else:
        return format(number, ".6e")

    return format(rounded.normalize(), "f")


def human_spot_price(raw_price: str | int | float | None, decimals: TokenDecimals) -> str:
    raw = parse_decimal(raw_price)
    if raw.is_zero():
        return "0"
    return format_number(raw.scaleb(decimals.base_decimals - decimals.quote_decimals))


def human_spot_quantity(raw_quantity: str | int | float | None, base_decimals: int) -> str:
    raw = parse_decimal(raw_quantity)
    if raw.is_zero():
        return "0"
    return format_number(raw.scaleb(-base_decimals))


def human_derivative_price(raw_price: str | int | float | None) -> str:
    return format_number(raw_price)


def human_derivative_quantity(raw_quantity: str | int | float | None) -> str:
    return format_number(raw_quantity)
