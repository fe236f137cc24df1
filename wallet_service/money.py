"""
Money conversion helpers.

Balances and amounts are exact decimals with two fraction digits at every
interface (Decimal("800.00")), and integer cents in the database. Integer
columns keep SQL arithmetic exact on every backend. SQLite has no native
DECIMAL type and would otherwise do the `balance - amount` update in floating
point.

These two functions are the only place the conversion happens.
"""

from decimal import Decimal, InvalidOperation

from wallet_service.exceptions import InvalidRequestError

CENT = Decimal("0.01")


def to_cents(amount: Decimal | int | str) -> int:
    """
    Convert a decimal amount to integer cents.

    Amounts with more than two fraction digits are rejected rather than
    rounded.

    Raises:
        InvalidRequestError: If the value isn't a finite number or has
            sub-cent precision.
    """
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        if not value.is_finite():
            raise InvalidRequestError(f"Invalid amount: {amount!r}")
        quantized = value.quantize(CENT)
    except InvalidOperation:
        raise InvalidRequestError(f"Invalid amount: {amount!r}")

    if value != quantized:
        raise InvalidRequestError("Amounts may have at most two decimal places")

    return int(quantized * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to a two-decimal-place Decimal (1050 -> Decimal("10.50"))."""
    return (Decimal(cents) / 100).quantize(CENT)
