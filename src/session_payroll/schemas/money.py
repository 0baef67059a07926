"""
Currency arithmetic (SSOT).

All money values are Decimal. Every product and every running sum is
quantized to cents with ROUND_HALF_UP, so 3 × 15.50 is exactly 46.50 and
accumulated totals never drift.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# Rounding precision for currency amounts
CURRENCY_PRECISION = Decimal("0.01")

ZERO = Decimal("0.00")


def to_decimal(value: Decimal | float | int | str | None) -> Decimal:
    """Convert a price-like value to Decimal.

    Missing values map to zero: a client without configured prices is billed
    at 0, which is reported as a warning rather than an error.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Amount must be a finite number, got {value}")
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(str(value).strip().replace(",", "."))
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount format: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Amount must be a finite number, got {value}")
    return result


def round_to_cents(amount: Decimal) -> Decimal:
    """Quantize to cents, half-up (0.125 -> 0.13)."""
    return amount.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)


def multiply_and_round(price: Decimal, count: int) -> Decimal:
    """Per-session price times session count, rounded to cents."""
    return round_to_cents(price * count)


def add_and_round(total: Decimal, amount: Decimal) -> Decimal:
    """Accumulate into a running total, re-rounding after the addition."""
    return round_to_cents(total + amount)
