"""
POS Ledger Store - Protocol
===========================
The storage contract every engine service is written against.

Rules:
- Every engine operation runs inside exactly one `atomic()` block
- Ledger tables (payments, inventory movements, cash movements) are
  insert-only: there is no update or delete method for them
- Order headers are written by compare-and-set on `version`
- At most one shift with closed_at = None; a second insert raises
  ConflictError inside the inserting transaction
- `on_commit` callbacks run after the outermost block commits and are
  discarded on rollback

Two implementations ship with the core:
    InMemoryLedgerStore  (core.ledger_store.memory)
    DjangoLedgerStore    (core.ledger_store.repository)
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Callable, ContextManager, Iterable, Optional, Protocol

from core.ledger_store.records import (
    CashMovementRecord,
    IngredientRecord,
    InventoryMovementRecord,
    OrderItemRecord,
    OrderRecord,
    PaymentRecord,
    ProductRecord,
    RecipeLineRecord,
    ShiftRecord,
)


class LedgerStore(Protocol):

    # ── transactions ──────────────────────────────────────────
    def atomic(self) -> ContextManager[None]: ...  # pragma: no cover
    def on_commit(self, callback: Callable[[], None]) -> None: ...  # pragma: no cover

    # ── products ──────────────────────────────────────────────
    def get_product(self, product_id: str) -> Optional[ProductRecord]: ...  # pragma: no cover
    def get_product_by_sku(self, sku: str) -> Optional[ProductRecord]: ...  # pragma: no cover
    def list_products(self) -> list[ProductRecord]: ...  # pragma: no cover
    def save_product(self, product: ProductRecord) -> None: ...  # pragma: no cover
    def delete_product(self, product_id: str) -> None: ...  # pragma: no cover
    def product_is_referenced(self, product_id: str) -> bool: ...  # pragma: no cover

    # ── orders ────────────────────────────────────────────────
    def next_order_sequence(self, code_prefix: str) -> int: ...  # pragma: no cover
    def insert_order(
        self, order: OrderRecord, items: Iterable[OrderItemRecord]
    ) -> None: ...  # pragma: no cover
    def get_order(
        self, order_id: str, *, for_update: bool = False
    ) -> Optional[OrderRecord]: ...  # pragma: no cover
    def compare_and_set_order(
        self, order: OrderRecord, expected_version: int
    ) -> bool: ...  # pragma: no cover
    def list_order_items(self, order_id: str) -> list[OrderItemRecord]: ...  # pragma: no cover
    def list_items_for_orders(
        self, order_ids: Iterable[str]
    ) -> list[OrderItemRecord]: ...  # pragma: no cover
    def delete_order(self, order_id: str) -> None: ...  # pragma: no cover
    def list_orders_opened(
        self, start: datetime, end: datetime
    ) -> list[OrderRecord]: ...  # pragma: no cover
    def list_orders_paid(
        self, start: datetime, end: datetime
    ) -> list[OrderRecord]: ...  # pragma: no cover

    # ── payments (append-only) ────────────────────────────────
    def append_payment(self, payment: PaymentRecord) -> None: ...  # pragma: no cover
    def list_payments(self, order_id: str) -> list[PaymentRecord]: ...  # pragma: no cover
    def list_payments_for_orders(
        self, order_ids: Iterable[str]
    ) -> list[PaymentRecord]: ...  # pragma: no cover

    # ── ingredients / recipes ─────────────────────────────────
    def get_ingredient(self, ingredient_id: str) -> Optional[IngredientRecord]: ...  # pragma: no cover
    def list_ingredients(self) -> list[IngredientRecord]: ...  # pragma: no cover
    def save_ingredient(self, ingredient: IngredientRecord) -> None: ...  # pragma: no cover
    def delete_ingredient(self, ingredient_id: str) -> None: ...  # pragma: no cover
    def ingredient_is_referenced(self, ingredient_id: str) -> bool: ...  # pragma: no cover
    def replace_recipe(
        self, product_id: str, lines: Iterable[RecipeLineRecord]
    ) -> None: ...  # pragma: no cover
    def list_recipe_lines(self, product_id: str) -> list[RecipeLineRecord]: ...  # pragma: no cover

    # ── inventory ledger (append-only) ────────────────────────
    def append_inventory_movement(
        self, movement: InventoryMovementRecord
    ) -> None: ...  # pragma: no cover
    def on_hand(self, ingredient_id: str) -> Decimal: ...  # pragma: no cover
    def replay_on_hand(self, ingredient_id: str) -> Decimal: ...  # pragma: no cover
    def list_inventory_movements(
        self,
        ingredient_id: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> list[InventoryMovementRecord]: ...  # pragma: no cover

    # ── shifts / cash ledger ──────────────────────────────────
    def insert_shift(self, shift: ShiftRecord) -> None: ...  # pragma: no cover
    def get_shift(
        self, shift_id: str, *, for_update: bool = False
    ) -> Optional[ShiftRecord]: ...  # pragma: no cover
    def get_open_shift(self) -> Optional[ShiftRecord]: ...  # pragma: no cover
    def update_shift(self, shift: ShiftRecord) -> None: ...  # pragma: no cover
    def append_cash_movement(self, movement: CashMovementRecord) -> None: ...  # pragma: no cover
    def list_cash_movements(self, shift_id: str) -> list[CashMovementRecord]: ...  # pragma: no cover
    def cash_movement_total(self, shift_id: str) -> Decimal: ...  # pragma: no cover
    def cash_reference_total(self, reference: str) -> Decimal: ...  # pragma: no cover
