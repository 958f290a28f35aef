from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from posledger.core.errors import ValidationError

Amount = Union[Decimal, int, float, str]

# Fractional digits of every monetary column (prices and totals).
MONEY_PLACES = 2
ROUNDING = ROUND_HALF_UP

# Exclusive upper bounds of the Numeric(10,2) price and Numeric(12,2) total columns.
PRICE_LIMIT = Decimal("100000000")
TOTAL_LIMIT = Decimal("10000000000")
# Integer columns (stock, qty) are 32-bit.
MAX_INT = 2**31 - 1


def _quantum(places: int) -> Decimal:
    return Decimal(1).scaleb(-places)


def to_decimal(value: Amount) -> Decimal:
    """Exact Decimal for value. Floats go through repr, not their binary expansion."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid monetary amount: {value!r}")
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, float):
        d = Decimal(repr(value))
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid monetary amount: {value!r}") from None
    if not d.is_finite():
        raise ValidationError(f"Invalid monetary amount: {value!r}")
    return d


def encode(value: Amount, places: int = MONEY_PLACES) -> Decimal:
    """
    Convert an amount to its storage form: a Decimal with exactly `places`
    fractional digits. Extra digits are rounded half-up, never truncated.
    """
    try:
        return to_decimal(value).quantize(_quantum(places), rounding=ROUNDING)
    except InvalidOperation:
        raise ValidationError(f"Monetary amount out of range: {value!r}") from None


def decode(stored: Optional[Amount], places: int = MONEY_PLACES) -> Optional[Decimal]:
    """Convert a stored amount (Decimal, str, or a float from drivers without native decimals) back to Decimal."""
    if stored is None:
        return None
    return encode(stored, places)


def line_subtotal(qty: int, unit_price: Amount) -> Decimal:
    return encode(encode(unit_price) * qty)


def sum_amounts(values: Iterable[Amount]) -> Decimal:
    total = Decimal("0")
    for v in values:
        total += encode(v)
    return encode(total)


def check_limit(value: Decimal, limit: Decimal, name: str) -> Decimal:
    """Return value unchanged, or raise ValidationError when it does not fit below limit."""
    if value >= limit:
        raise ValidationError(f"{name} must be less than {limit}")
    return value
