"""
Money arithmetic.

Balances and amounts are stored as integer minor units (paise/cents).
Decimal is used only at the boundary, so repeated commission splits never
accumulate rounding drift.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from hierarchy_ledger.config.constants import MAX_BALANCE_MINOR
from hierarchy_ledger.utils.exceptions import InvalidAmount


def minor_unit(places: int) -> Decimal:
    """Smallest representable amount for the given number of places."""
    return Decimal(1).scaleb(-places)


def parse_amount(value: object, places: int = 2) -> Decimal:
    """
    Parse user input into a positive Decimal amount.

    Args:
        value: Raw amount (str, int, float or Decimal)
        places: Digits after the decimal point allowed

    Returns:
        Parsed amount quantized to the minor unit

    Raises:
        InvalidAmount: If value is not numeric, not finite, not positive,
            finer than the minor unit or larger than the ledger can hold

    Examples:
        >>> parse_amount("100.50")
        Decimal('100.50')
        >>> parse_amount(7)
        Decimal('7.00')
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount("Amount must be a valid number")

    try:
        # floats go through their shortest repr, so 0.1 parses as 0.1
        if isinstance(value, str | float):
            amount = Decimal(str(value).strip())
        else:
            amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount("Amount must be a valid number") from None

    if not amount.is_finite():
        raise InvalidAmount("Amount must be a valid number")

    if amount <= 0:
        raise InvalidAmount("Please enter a valid amount greater than 0")

    if amount > Decimal(MAX_BALANCE_MINOR).scaleb(-places):
        raise InvalidAmount("Amount exceeds the maximum allowed")

    unit = minor_unit(places)
    quantized = amount.quantize(unit)
    if quantized != amount:
        raise InvalidAmount(
            f"Amount cannot have more than {places} decimal places"
        )

    return quantized


def to_minor(amount: Decimal, places: int = 2) -> int:
    """
    Convert a Decimal amount to integer minor units.

    Args:
        amount: Decimal amount, already validated
        places: Digits after the decimal point

    Returns:
        Amount in minor units
    """
    return int(amount.scaleb(places).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor(minor: int, places: int = 2) -> Decimal:
    """
    Convert integer minor units back to a Decimal amount.

    Args:
        minor: Amount in minor units
        places: Digits after the decimal point

    Returns:
        Decimal amount with exactly ``places`` fractional digits
    """
    return Decimal(minor).scaleb(-places).quantize(minor_unit(places))


def compute_commission(amount_minor: int, rate: Decimal) -> int:
    """
    Commission on an amount, rounded half-up to the minor unit.

    Args:
        amount_minor: Gross amount in minor units
        rate: Commission rate as a fraction (0.02 = 2%)

    Returns:
        Commission in minor units, never more than the amount

    Examples:
        >>> compute_commission(10000, Decimal("0.02"))
        200
        >>> compute_commission(25, Decimal("0.02"))
        1
    """
    commission = (Decimal(amount_minor) * rate).quantize(
        Decimal(1), rounding=ROUND_HALF_UP
    )
    return min(int(commission), amount_minor)


def format_amount(minor: int, places: int = 2) -> str:
    """Format minor units for transaction descriptions, e.g. '2.00'."""
    return f"{from_minor(minor, places):.{places}f}"
