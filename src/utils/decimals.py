"""Money parsing helpers."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENTS = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Parse an order total into a Decimal.

    Accepts Decimals (DynamoDB numbers), ints, floats and decimal strings
    such as "1,250.50" or "$99". Missing, blank, non-numeric and non-finite
    values count as zero.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = str(value).strip().replace(",", "").lstrip("$")
        if not text:
            return Decimal("0")
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return Decimal("0")
    if not parsed.is_finite():
        return Decimal("0")
    return parsed


def quantize_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)
