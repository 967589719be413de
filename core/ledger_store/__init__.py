"""
POS Ledger Store - Public API
=============================
Storage protocol, row records and the in-memory store.

The Django-backed store lives in core.ledger_store.repository and is
imported explicitly, so pure engine code never needs a configured ORM.
"""

from core.ledger_store.memory import InMemoryLedgerStore
from core.ledger_store.protocol import LedgerStore
from core.ledger_store.records import (
    CashMovementRecord,
    CashTxnType,
    IngredientRecord,
    InventoryMovementRecord,
    MovementKind,
    OrderItemRecord,
    OrderRecord,
    PaymentMethod,
    PaymentRecord,
    PaymentStatus,
    ProductRecord,
    QueueStatus,
    RecipeLineRecord,
    ShiftRecord,
)

__all__ = [
    "InMemoryLedgerStore",
    "LedgerStore",
    "CashMovementRecord",
    "CashTxnType",
    "IngredientRecord",
    "InventoryMovementRecord",
    "MovementKind",
    "OrderItemRecord",
    "OrderRecord",
    "PaymentMethod",
    "PaymentRecord",
    "PaymentStatus",
    "ProductRecord",
    "QueueStatus",
    "RecipeLineRecord",
    "ShiftRecord",
]
