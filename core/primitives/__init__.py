"""
POS Core Primitives - Shared Value Helpers
==========================================
Pure Python building blocks consumed by every engine:

    amounts - money (0.01) and stock quantity (0.001) Decimals
"""

from core.primitives.amounts import (
    HUNDRED,
    MONEY_PLACES,
    QUANTITY_PLACES,
    ZERO,
    ZERO_MONEY,
    ZERO_QUANTITY,
    clamp_percent,
    money,
    quantity,
    round2,
    round3,
    to_decimal,
)

__all__ = [
    "HUNDRED",
    "MONEY_PLACES",
    "QUANTITY_PLACES",
    "ZERO",
    "ZERO_MONEY",
    "ZERO_QUANTITY",
    "clamp_percent",
    "money",
    "quantity",
    "round2",
    "round3",
    "to_decimal",
]
