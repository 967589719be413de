"""
POS Ledger Store - In-Memory Implementation
===========================================
Thread-safe store for tests, demos and single-process terminals.

Isolation: one re-entrant lock is held for the whole of an atomic block,
so transactions are serialized. Every block (outermost or nested) takes
a snapshot of the tables on entry and restores it if the block raises,
the way a savepoint would.

On-hand per ingredient is kept as a running aggregate, updated in the
same transaction as the movement insert. `replay_on_hand` folds the
full movement log instead, for audits.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Iterator, Optional

from core.errors import ConflictError
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
from core.primitives.amounts import ZERO_MONEY, ZERO_QUANTITY, round2, round3

logger = logging.getLogger("pos.store")


@dataclass
class _Tables:
    products: dict[str, ProductRecord] = field(default_factory=dict)
    orders: dict[str, OrderRecord] = field(default_factory=dict)
    order_items: dict[str, tuple[OrderItemRecord, ...]] = field(default_factory=dict)
    payments: list[PaymentRecord] = field(default_factory=list)
    ingredients: dict[str, IngredientRecord] = field(default_factory=dict)
    recipes: dict[str, tuple[RecipeLineRecord, ...]] = field(default_factory=dict)
    inventory: list[InventoryMovementRecord] = field(default_factory=list)
    onhand: dict[str, Decimal] = field(default_factory=dict)
    shifts: dict[str, ShiftRecord] = field(default_factory=dict)
    cash: list[CashMovementRecord] = field(default_factory=list)

    def snapshot(self) -> _Tables:
        # Records are frozen; copying the containers is enough.
        return _Tables(
            products=dict(self.products),
            orders=dict(self.orders),
            order_items=dict(self.order_items),
            payments=list(self.payments),
            ingredients=dict(self.ingredients),
            recipes=dict(self.recipes),
            inventory=list(self.inventory),
            onhand=dict(self.onhand),
            shifts=dict(self.shifts),
            cash=list(self.cash),
        )


class InMemoryLedgerStore:
    """LedgerStore backed by Python containers."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tables = _Tables()
        self._depth = 0
        self._callbacks: list[list[Callable[[], None]]] = []

    # ══════════════════════════════════════════════════════════
    # TRANSACTIONS
    # ══════════════════════════════════════════════════════════

    @contextmanager
    def atomic(self) -> Iterator[None]:
        pending: list[Callable[[], None]] = []
        with self._lock:
            saved = self._tables.snapshot()
            self._depth += 1
            self._callbacks.append([])
            try:
                yield
            except BaseException:
                self._tables = saved
                self._callbacks.pop()
                raise
            else:
                committed = self._callbacks.pop()
                if self._callbacks:
                    self._callbacks[-1].extend(committed)
                else:
                    pending = committed
            finally:
                self._depth -= 1

        for callback in pending:
            callback()

    def on_commit(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._callbacks:
                self._callbacks[-1].append(callback)
                return
        callback()

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    # ══════════════════════════════════════════════════════════
    # PRODUCTS
    # ══════════════════════════════════════════════════════════

    def get_product(self, product_id: str) -> Optional[ProductRecord]:
        with self._lock:
            return self._tables.products.get(product_id)

    def get_product_by_sku(self, sku: str) -> Optional[ProductRecord]:
        with self._lock:
            for product in self._tables.products.values():
                if product.sku == sku:
                    return product
            return None

    def list_products(self) -> list[ProductRecord]:
        with self._lock:
            return sorted(
                self._tables.products.values(),
                key=lambda p: (p.name.lower(), p.sku),
            )

    def save_product(self, product: ProductRecord) -> None:
        with self.atomic():
            clash = self.get_product_by_sku(product.sku)
            if clash is not None and clash.id != product.id:
                raise ConflictError(
                    f"SKU '{product.sku}' already belongs to product {clash.id}.",
                    code="DUPLICATE_SKU",
                )
            self._tables.products[product.id] = product

    def delete_product(self, product_id: str) -> None:
        with self.atomic():
            self._tables.products.pop(product_id, None)

    def product_is_referenced(self, product_id: str) -> bool:
        with self._lock:
            if self._tables.recipes.get(product_id):
                return True
            return any(
                item.product_id == product_id
                for items in self._tables.order_items.values()
                for item in items
            )

    # ══════════════════════════════════════════════════════════
    # ORDERS
    # ══════════════════════════════════════════════════════════

    def next_order_sequence(self, code_prefix: str) -> int:
        with self._lock:
            highest = 0
            for order in self._tables.orders.values():
                head, _, tail = order.code.rpartition("-")
                if head == code_prefix and tail.isdigit():
                    highest = max(highest, int(tail))
            return highest + 1

    def insert_order(
        self, order: OrderRecord, items: Iterable[OrderItemRecord]
    ) -> None:
        with self.atomic():
            if order.id in self._tables.orders:
                raise ConflictError(f"Order {order.id} already exists.")
            if any(o.code == order.code for o in self._tables.orders.values()):
                raise ConflictError(
                    f"Order code '{order.code}' already taken.",
                    code="DUPLICATE_ORDER_CODE",
                )
            self._tables.order_items[order.id] = tuple(
                sorted(items, key=lambda i: i.position)
            )
            self._tables.orders[order.id] = order

    def get_order(
        self, order_id: str, *, for_update: bool = False
    ) -> Optional[OrderRecord]:
        with self._lock:
            return self._tables.orders.get(order_id)

    def compare_and_set_order(
        self, order: OrderRecord, expected_version: int
    ) -> bool:
        with self.atomic():
            current = self._tables.orders.get(order.id)
            if current is None or current.version != expected_version:
                return False
            self._tables.orders[order.id] = order
            return True

    def list_order_items(self, order_id: str) -> list[OrderItemRecord]:
        with self._lock:
            return list(self._tables.order_items.get(order_id, ()))

    def list_items_for_orders(
        self, order_ids: Iterable[str]
    ) -> list[OrderItemRecord]:
        with self._lock:
            items: list[OrderItemRecord] = []
            for order_id in order_ids:
                items.extend(self._tables.order_items.get(order_id, ()))
            return items

    def delete_order(self, order_id: str) -> None:
        with self.atomic():
            self._tables.order_items.pop(order_id, None)
            self._tables.orders.pop(order_id, None)

    def list_orders_opened(
        self, start: datetime, end: datetime
    ) -> list[OrderRecord]:
        with self._lock:
            return sorted(
                (o for o in self._tables.orders.values()
                 if start <= o.opened_at < end),
                key=lambda o: (o.opened_at, o.code),
            )

    def list_orders_paid(
        self, start: datetime, end: datetime
    ) -> list[OrderRecord]:
        with self._lock:
            return sorted(
                (o for o in self._tables.orders.values()
                 if o.paid_at is not None and start <= o.paid_at < end),
                key=lambda o: (o.paid_at, o.code),
            )

    # ══════════════════════════════════════════════════════════
    # PAYMENTS
    # ══════════════════════════════════════════════════════════

    def append_payment(self, payment: PaymentRecord) -> None:
        with self.atomic():
            self._tables.payments.append(payment)

    def list_payments(self, order_id: str) -> list[PaymentRecord]:
        with self._lock:
            return [p for p in self._tables.payments if p.order_id == order_id]

    def list_payments_for_orders(
        self, order_ids: Iterable[str]
    ) -> list[PaymentRecord]:
        wanted = set(order_ids)
        with self._lock:
            return [p for p in self._tables.payments if p.order_id in wanted]

    # ══════════════════════════════════════════════════════════
    # INGREDIENTS / RECIPES
    # ══════════════════════════════════════════════════════════

    def get_ingredient(self, ingredient_id: str) -> Optional[IngredientRecord]:
        with self._lock:
            return self._tables.ingredients.get(ingredient_id)

    def list_ingredients(self) -> list[IngredientRecord]:
        with self._lock:
            return sorted(
                self._tables.ingredients.values(),
                key=lambda i: (i.name.lower(), i.id),
            )

    def save_ingredient(self, ingredient: IngredientRecord) -> None:
        with self.atomic():
            self._tables.ingredients[ingredient.id] = ingredient

    def delete_ingredient(self, ingredient_id: str) -> None:
        with self.atomic():
            self._tables.ingredients.pop(ingredient_id, None)
            self._tables.onhand.pop(ingredient_id, None)

    def ingredient_is_referenced(self, ingredient_id: str) -> bool:
        with self._lock:
            if any(m.ingredient_id == ingredient_id for m in self._tables.inventory):
                return True
            return any(
                line.ingredient_id == ingredient_id
                for lines in self._tables.recipes.values()
                for line in lines
            )

    def replace_recipe(
        self, product_id: str, lines: Iterable[RecipeLineRecord]
    ) -> None:
        with self.atomic():
            self._tables.recipes.pop(product_id, None)
            new_lines = tuple(sorted(lines, key=lambda l: l.position))
            seen: set[str] = set()
            for line in new_lines:
                if line.ingredient_id in seen:
                    raise ConflictError(
                        f"Ingredient {line.ingredient_id} appears twice "
                        f"in recipe of product {product_id}.",
                        code="DUPLICATE_RECIPE_LINE",
                    )
                seen.add(line.ingredient_id)
            if new_lines:
                self._tables.recipes[product_id] = new_lines

    def list_recipe_lines(self, product_id: str) -> list[RecipeLineRecord]:
        with self._lock:
            return list(self._tables.recipes.get(product_id, ()))

    # ══════════════════════════════════════════════════════════
    # INVENTORY LEDGER
    # ══════════════════════════════════════════════════════════

    def append_inventory_movement(
        self, movement: InventoryMovementRecord
    ) -> None:
        with self.atomic():
            self._tables.inventory.append(movement)
            current = self._tables.onhand.get(movement.ingredient_id, ZERO_QUANTITY)
            self._tables.onhand[movement.ingredient_id] = round3(
                current + movement.quantity
            )

    def on_hand(self, ingredient_id: str) -> Decimal:
        with self._lock:
            return self._tables.onhand.get(ingredient_id, ZERO_QUANTITY)

    def replay_on_hand(self, ingredient_id: str) -> Decimal:
        with self._lock:
            total = ZERO_QUANTITY
            for movement in self._tables.inventory:
                if movement.ingredient_id == ingredient_id:
                    total += movement.quantity
            return round3(total)

    def list_inventory_movements(
        self,
        ingredient_id: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> list[InventoryMovementRecord]:
        with self._lock:
            return [
                m for m in self._tables.inventory
                if (ingredient_id is None or m.ingredient_id == ingredient_id)
                and (reference is None or m.reference == reference)
            ]

    # ══════════════════════════════════════════════════════════
    # SHIFTS / CASH LEDGER
    # ══════════════════════════════════════════════════════════

    def insert_shift(self, shift: ShiftRecord) -> None:
        with self.atomic():
            if shift.is_open and self._open_shift_unlocked() is not None:
                raise ConflictError(
                    "A shift is already open.", code="SHIFT_ALREADY_OPEN",
                )
            self._tables.shifts[shift.id] = shift

    def get_shift(
        self, shift_id: str, *, for_update: bool = False
    ) -> Optional[ShiftRecord]:
        with self._lock:
            return self._tables.shifts.get(shift_id)

    def get_open_shift(self) -> Optional[ShiftRecord]:
        with self._lock:
            return self._open_shift_unlocked()

    def _open_shift_unlocked(self) -> Optional[ShiftRecord]:
        for shift in self._tables.shifts.values():
            if shift.is_open:
                return shift
        return None

    def update_shift(self, shift: ShiftRecord) -> None:
        with self.atomic():
            if shift.is_open:
                other = self._open_shift_unlocked()
                if other is not None and other.id != shift.id:
                    raise ConflictError(
                        "A shift is already open.", code="SHIFT_ALREADY_OPEN",
                    )
            self._tables.shifts[shift.id] = shift

    def append_cash_movement(self, movement: CashMovementRecord) -> None:
        with self.atomic():
            self._tables.cash.append(movement)

    def list_cash_movements(self, shift_id: str) -> list[CashMovementRecord]:
        with self._lock:
            return [m for m in self._tables.cash if m.shift_id == shift_id]

    def cash_movement_total(self, shift_id: str) -> Decimal:
        with self._lock:
            total = ZERO_MONEY
            for movement in self._tables.cash:
                if movement.shift_id == shift_id:
                    total += movement.amount
            return round2(total)

    def cash_reference_total(self, reference: str) -> Decimal:
        with self._lock:
            total = ZERO_MONEY
            for movement in self._tables.cash:
                if movement.reference == reference:
                    total += movement.amount
            return round2(total)
