"""
POS Amount Primitive - Money and Stock Quantities
==================================================
Engine: Core Primitives

Money is a Decimal with two places, rounded half-up (round2).
Stock quantities are Decimals with three places in the ingredient's
base unit (grams, millilitres, pieces).

RULES:
- No floats are ever stored. Floats are accepted at the edge only and
  converted through str() so 0.1 stays 0.1.
- Rounding happens once, at the point a value is stored.
- A single currency; there is no currency field anywhere.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from core.errors import ValidationError


MONEY_PLACES = Decimal("0.01")
QUANTITY_PLACES = Decimal("0.001")

ZERO = Decimal("0")
ZERO_MONEY = Decimal("0.00")
ZERO_QUANTITY = Decimal("0.000")
HUNDRED = Decimal("100")


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """
    Coerce int / str / float / Decimal into a finite Decimal.

    Raises ValidationError for anything else (bools included).
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number.")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field_name} must be a number, got '{value}'.")
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise ValidationError(
            f"{field_name} must be a number, got {type(value).__name__}."
        )
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite.")
    return result


def round2(value: Any) -> Decimal:
    """Quantize to money precision (0.01, half-up)."""
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def round3(value: Any) -> Decimal:
    """Quantize to stock-quantity precision (0.001, half-up)."""
    return to_decimal(value).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def money(value: Any, field_name: str = "amount") -> Decimal:
    """Validated money value, rounded to two places."""
    return round2(to_decimal(value, field_name))


def quantity(value: Any, field_name: str = "quantity") -> Decimal:
    """Validated stock quantity, rounded to three places."""
    return round3(to_decimal(value, field_name))


def clamp_percent(value: Any) -> Decimal:
    """Clamp a percentage into [0, 100]. Out-of-range is not an error."""
    pct = to_decimal(value, "percent")
    if pct < ZERO:
        return ZERO
    if pct > HUNDRED:
        return HUNDRED
    return pct
