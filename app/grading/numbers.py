"""Numeric coercion helpers shared by the grading engine."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

TWO_PLACES = Decimal("0.01")

# Largest magnitude accepted for a score, a scale or a coefficient
MAX_MAGNITUDE = Decimal("1e9")


def to_decimal(value: Any) -> Decimal | None:
    """Coerce a raw score to Decimal.

    Returns None for anything that is not a finite number: None, booleans,
    empty or malformed strings, NaN, infinities and magnitudes of
    MAX_MAGNITUDE or more. A decimal comma ("12,5") is accepted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not result.is_finite() or abs(result) >= MAX_MAGNITUDE:
        return None
    return result


def round_score(value: Decimal) -> Decimal:
    """Round half-up to two decimal places, as printed on bulletins."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def mean(values: list[Decimal]) -> Decimal:
    """Arithmetic mean of a non-empty list, independent of input order."""
    return sum(sorted(values), Decimal("0")) / len(values)
