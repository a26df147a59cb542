# Overview: Decimal money helpers (two-place currency precision).

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Maximum price: 99,999,999.99, the largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")


def quantize(value) -> Decimal:
    """Round to currency precision (half-up)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value, *, field: str = "amount", allow_negative: bool = False) -> Decimal:
    """
    Coerce client input (str/int/float/Decimal) to a two-place Decimal.

    Floats go through str() so 0.1 stays 0.10 instead of its binary expansion.
    Booleans are rejected.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0 and not allow_negative:
        raise ValidationError(f"{field} cannot be negative")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds maximum of {MAX_AMOUNT}")
    return quantize(amount)


def money_str(value) -> str | None:
    """Serialize for JSON as a fixed two-place string (e.g. "344.00")."""
    if value is None:
        return None
    return str(quantize(value))
