"""
POS Ledger Store - Records
==========================
Frozen row types shared by every store implementation.

Headers (products, orders, ingredients, shifts) are replaced as a whole
on update. Ledger rows (payments, inventory movements, cash movements)
are only ever appended.

Money fields are Decimal at 0.01; stock quantities are Decimal at 0.001
in the ingredient's base unit.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional


# ══════════════════════════════════════════════════════════════
# VOCABULARIES
# ══════════════════════════════════════════════════════════════

class QueueStatus:
    QUEUED = "queued"
    PREPARING = "preparing"
    DONE = "done"
    VOID = "void"

    ALL = (QUEUED, PREPARING, DONE, VOID)


class PaymentStatus:
    UNPAID = "unpaid"
    PAID = "paid"

    ALL = (UNPAID, PAID)


class PaymentMethod:
    CASH = "cash"
    TRANSFER = "transfer"
    PROMPTPAY = "promptpay"
    CARD = "card"
    OTHER = "other"

    ALL = (CASH, TRANSFER, PROMPTPAY, CARD, OTHER)


class MovementKind:
    IN = "in"
    WASTE = "waste"
    ADJUST = "adjust"

    ALL = (IN, WASTE, ADJUST)


class CashTxnType:
    SALE_CASH = "sale_cash"
    CASH_IN = "cash_in"
    CASH_OUT = "cash_out"
    REFUND_CASH = "refund_cash"
    EXPENSE = "expense"

    ALL = (SALE_CASH, CASH_IN, CASH_OUT, REFUND_CASH, EXPENSE)
    INFLOWS = frozenset({SALE_CASH, CASH_IN})
    OUTFLOWS = frozenset({CASH_OUT, REFUND_CASH, EXPENSE})


# ══════════════════════════════════════════════════════════════
# CATALOG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProductRecord:
    id: str
    sku: str
    name: str
    price: Decimal
    category: str = ""
    is_active: bool = True


# ══════════════════════════════════════════════════════════════
# ORDERS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OrderRecord:
    id: str
    code: str
    opened_at: datetime
    subtotal: Decimal
    total: Decimal
    discount_amount: Decimal = Decimal("0.00")
    queue_status: str = QueueStatus.QUEUED
    payment_status: str = PaymentStatus.UNPAID
    started_at: Optional[datetime] = None
    done_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    paid_method: Optional[str] = None
    note: str = ""
    version: int = 1

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def is_void(self) -> bool:
        return self.queue_status == QueueStatus.VOID

    def evolve(self, **changes) -> OrderRecord:
        """Copy with changes and the version bumped by one."""
        return replace(self, version=self.version + 1, **changes)


@dataclass(frozen=True)
class OrderItemRecord:
    order_id: str
    position: int
    product_id: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class PaymentRecord:
    id: str
    order_id: str
    method: str
    amount: Decimal
    created_at: datetime


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class IngredientRecord:
    id: str
    name: str
    unit: str = "g"
    min_level: Decimal = Decimal("0.000")
    purchase_unit: Optional[str] = None
    base_per_purchase: Optional[Decimal] = None
    is_active: bool = True


@dataclass(frozen=True)
class RecipeLineRecord:
    product_id: str
    ingredient_id: str
    qty_per_unit: Decimal
    position: int


@dataclass(frozen=True)
class InventoryMovementRecord:
    id: str
    ingredient_id: str
    quantity: Decimal
    kind: str
    created_at: datetime
    reason: str = ""
    reference: Optional[str] = None


# ══════════════════════════════════════════════════════════════
# CASH
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ShiftRecord:
    id: str
    opened_at: datetime
    opening_cash: Decimal
    closed_at: Optional[datetime] = None
    closing_cash: Optional[Decimal] = None
    cash_diff: Optional[Decimal] = None
    note: str = ""

    @property
    def is_open(self) -> bool:
        return self.closed_at is None


@dataclass(frozen=True)
class CashMovementRecord:
    id: str
    shift_id: str
    amount: Decimal
    txn_type: str
    created_at: datetime
    note: str = ""
    reference: Optional[str] = None
