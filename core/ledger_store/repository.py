"""
POS Ledger Store - Django Repository
====================================
LedgerStore over the Django ORM.

Transactions are Django's: `atomic()` is `transaction.atomic()` and
`on_commit` is `transaction.on_commit`. Writes that can collide with a
database constraint run in their own savepoint, so an IntegrityError
becomes a ConflictError without poisoning the caller's transaction.

On-hand and expected cash are SQL SUM folds over the committed ledger
rows; nothing is cached.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable, ContextManager, Iterable, Optional

from django.db import IntegrityError, transaction
from django.db.models import ProtectedError, Sum

from core.errors import ConflictError, ReferentialError
from core.ledger_store.models import (
    CashMovement,
    Ingredient,
    InventoryMovement,
    Order,
    OrderItem,
    Payment,
    Product,
    RecipeLine,
    Shift,
)
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


def _as_uuid(value) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _opt(value: Optional[Decimal], rounder) -> Optional[Decimal]:
    return None if value is None else rounder(value)


# ══════════════════════════════════════════════════════════════
# ROW → RECORD
# ══════════════════════════════════════════════════════════════

def _product(row: Product) -> ProductRecord:
    return ProductRecord(
        id=str(row.id),
        sku=row.sku,
        name=row.name,
        price=round2(row.price),
        category=row.category,
        is_active=row.is_active,
    )


def _order(row: Order) -> OrderRecord:
    return OrderRecord(
        id=str(row.id),
        code=row.code,
        opened_at=row.opened_at,
        started_at=row.started_at,
        done_at=row.done_at,
        queue_status=row.queue_status,
        payment_status=row.payment_status,
        paid_at=row.paid_at,
        paid_method=row.paid_method,
        subtotal=round2(row.subtotal),
        discount_amount=round2(row.discount_amount),
        total=round2(row.total),
        note=row.note,
        version=row.version,
    )


def _item(row: OrderItem) -> OrderItemRecord:
    return OrderItemRecord(
        order_id=str(row.order_id),
        position=row.position,
        product_id=str(row.product_id),
        quantity=row.quantity,
        unit_price=round2(row.unit_price),
        subtotal=round2(row.subtotal),
    )


def _payment(row: Payment) -> PaymentRecord:
    return PaymentRecord(
        id=str(row.entry_id),
        order_id=str(row.order_id),
        method=row.method,
        amount=round2(row.amount),
        created_at=row.created_at,
    )


def _ingredient(row: Ingredient) -> IngredientRecord:
    return IngredientRecord(
        id=str(row.id),
        name=row.name,
        unit=row.unit,
        min_level=round3(row.min_level),
        purchase_unit=row.purchase_unit,
        base_per_purchase=_opt(row.base_per_purchase, round3),
        is_active=row.is_active,
    )


def _recipe_line(row: RecipeLine) -> RecipeLineRecord:
    return RecipeLineRecord(
        product_id=str(row.product_id),
        ingredient_id=str(row.ingredient_id),
        qty_per_unit=round3(row.qty_per_unit),
        position=row.position,
    )


def _movement(row: InventoryMovement) -> InventoryMovementRecord:
    return InventoryMovementRecord(
        id=str(row.entry_id),
        ingredient_id=str(row.ingredient_id),
        quantity=round3(row.quantity),
        kind=row.kind,
        reason=row.reason,
        reference=row.reference,
        created_at=row.created_at,
    )


def _shift(row: Shift) -> ShiftRecord:
    return ShiftRecord(
        id=str(row.id),
        opened_at=row.opened_at,
        opening_cash=round2(row.opening_cash),
        closed_at=row.closed_at,
        closing_cash=_opt(row.closing_cash, round2),
        cash_diff=_opt(row.cash_diff, round2),
        note=row.note,
    )


def _cash(row: CashMovement) -> CashMovementRecord:
    return CashMovementRecord(
        id=str(row.entry_id),
        shift_id=str(row.shift_id),
        amount=round2(row.amount),
        txn_type=row.txn_type,
        note=row.note,
        reference=row.reference,
        created_at=row.created_at,
    )


# ══════════════════════════════════════════════════════════════
# STORE
# ══════════════════════════════════════════════════════════════

class DjangoLedgerStore:
    """LedgerStore backed by the `ledger_store` Django app."""

    def __init__(self, using: str = "default") -> None:
        self._using = using

    # ── transactions ──────────────────────────────────────────

    def atomic(self) -> ContextManager[None]:
        return transaction.atomic(using=self._using)

    def on_commit(self, callback: Callable[[], None]) -> None:
        transaction.on_commit(callback, using=self._using)

    # ── products ──────────────────────────────────────────────

    def get_product(self, product_id: str) -> Optional[ProductRecord]:
        pk = _as_uuid(product_id)
        if pk is None:
            return None
        row = Product.objects.using(self._using).filter(id=pk).first()
        return _product(row) if row else None

    def get_product_by_sku(self, sku: str) -> Optional[ProductRecord]:
        row = Product.objects.using(self._using).filter(sku=sku).first()
        return _product(row) if row else None

    def list_products(self) -> list[ProductRecord]:
        return [_product(row) for row in Product.objects.using(self._using).all()]

    def save_product(self, product: ProductRecord) -> None:
        try:
            with transaction.atomic(using=self._using):
                Product.objects.using(self._using).update_or_create(
                    id=uuid.UUID(product.id),
                    defaults={
                        "sku": product.sku,
                        "name": product.name,
                        "price": product.price,
                        "category": product.category,
                        "is_active": product.is_active,
                    },
                )
        except IntegrityError as exc:
            raise ConflictError(
                f"SKU '{product.sku}' already belongs to another product.",
                code="DUPLICATE_SKU",
            ) from exc

    def delete_product(self, product_id: str) -> None:
        try:
            Product.objects.using(self._using).filter(id=product_id).delete()
        except ProtectedError as exc:
            raise ReferentialError(
                f"Product {product_id} is still referenced.",
                code="PRODUCT_REFERENCED",
            ) from exc

    def product_is_referenced(self, product_id: str) -> bool:
        return (
            OrderItem.objects.using(self._using).filter(product_id=product_id).exists()
            or RecipeLine.objects.using(self._using).filter(product_id=product_id).exists()
        )

    # ── orders ────────────────────────────────────────────────

    def next_order_sequence(self, code_prefix: str) -> int:
        codes = (
            Order.objects.using(self._using)
            .filter(code__startswith=f"{code_prefix}-")
            .values_list("code", flat=True)
        )
        highest = 0
        for code in codes:
            tail = code.rpartition("-")[2]
            if tail.isdigit():
                highest = max(highest, int(tail))
        return highest + 1

    def insert_order(
        self, order: OrderRecord, items: Iterable[OrderItemRecord]
    ) -> None:
        try:
            with transaction.atomic(using=self._using):
                row = Order.objects.using(self._using).create(
                    id=uuid.UUID(order.id),
                    code=order.code,
                    opened_at=order.opened_at,
                    started_at=order.started_at,
                    done_at=order.done_at,
                    queue_status=order.queue_status,
                    payment_status=order.payment_status,
                    paid_at=order.paid_at,
                    paid_method=order.paid_method,
                    subtotal=order.subtotal,
                    discount_amount=order.discount_amount,
                    total=order.total,
                    note=order.note,
                    version=order.version,
                )
                OrderItem.objects.using(self._using).bulk_create([
                    OrderItem(
                        order=row,
                        position=item.position,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        subtotal=item.subtotal,
                    )
                    for item in items
                ])
        except IntegrityError as exc:
            raise ConflictError(
                f"Order code '{order.code}' already taken.",
                code="DUPLICATE_ORDER_CODE",
            ) from exc

    def get_order(
        self, order_id: str, *, for_update: bool = False
    ) -> Optional[OrderRecord]:
        pk = _as_uuid(order_id)
        if pk is None:
            return None
        query = Order.objects.using(self._using).filter(id=pk)
        if for_update:
            query = query.select_for_update()
        row = query.first()
        return _order(row) if row else None

    def compare_and_set_order(
        self, order: OrderRecord, expected_version: int
    ) -> bool:
        updated = (
            Order.objects.using(self._using)
            .filter(id=order.id, version=expected_version)
            .update(
                started_at=order.started_at,
                done_at=order.done_at,
                queue_status=order.queue_status,
                payment_status=order.payment_status,
                paid_at=order.paid_at,
                paid_method=order.paid_method,
                subtotal=order.subtotal,
                discount_amount=order.discount_amount,
                total=order.total,
                note=order.note,
                version=order.version,
            )
        )
        return updated == 1

    def list_order_items(self, order_id: str) -> list[OrderItemRecord]:
        rows = (
            OrderItem.objects.using(self._using)
            .filter(order_id=order_id)
            .order_by("position")
        )
        return [_item(row) for row in rows]

    def list_items_for_orders(
        self, order_ids: Iterable[str]
    ) -> list[OrderItemRecord]:
        rows = (
            OrderItem.objects.using(self._using)
            .filter(order_id__in=list(order_ids))
            .order_by("order_id", "position")
        )
        return [_item(row) for row in rows]

    def delete_order(self, order_id: str) -> None:
        try:
            with transaction.atomic(using=self._using):
                OrderItem.objects.using(self._using).filter(order_id=order_id).delete()
                Order.objects.using(self._using).filter(id=order_id).delete()
        except ProtectedError as exc:
            raise ReferentialError(
                f"Order {order_id} has payments.", code="ORDER_HAS_PAYMENTS",
            ) from exc

    def list_orders_opened(
        self, start: datetime, end: datetime
    ) -> list[OrderRecord]:
        rows = (
            Order.objects.using(self._using)
            .filter(opened_at__gte=start, opened_at__lt=end)
            .order_by("opened_at", "code")
        )
        return [_order(row) for row in rows]

    def list_orders_paid(
        self, start: datetime, end: datetime
    ) -> list[OrderRecord]:
        rows = (
            Order.objects.using(self._using)
            .filter(paid_at__gte=start, paid_at__lt=end)
            .order_by("paid_at", "code")
        )
        return [_order(row) for row in rows]

    # ── payments ──────────────────────────────────────────────

    def append_payment(self, payment: PaymentRecord) -> None:
        Payment.objects.using(self._using).create(
            entry_id=uuid.UUID(payment.id),
            order_id=payment.order_id,
            method=payment.method,
            amount=payment.amount,
            created_at=payment.created_at,
        )

    def list_payments(self, order_id: str) -> list[PaymentRecord]:
        rows = Payment.objects.using(self._using).filter(order_id=order_id)
        return [_payment(row) for row in rows]

    def list_payments_for_orders(
        self, order_ids: Iterable[str]
    ) -> list[PaymentRecord]:
        rows = Payment.objects.using(self._using).filter(order_id__in=list(order_ids))
        return [_payment(row) for row in rows]

    # ── ingredients / recipes ─────────────────────────────────

    def get_ingredient(self, ingredient_id: str) -> Optional[IngredientRecord]:
        pk = _as_uuid(ingredient_id)
        if pk is None:
            return None
        row = Ingredient.objects.using(self._using).filter(id=pk).first()
        return _ingredient(row) if row else None

    def list_ingredients(self) -> list[IngredientRecord]:
        rows = Ingredient.objects.using(self._using).order_by("name", "id")
        return [_ingredient(row) for row in rows]

    def save_ingredient(self, ingredient: IngredientRecord) -> None:
        Ingredient.objects.using(self._using).update_or_create(
            id=uuid.UUID(ingredient.id),
            defaults={
                "name": ingredient.name,
                "unit": ingredient.unit,
                "min_level": ingredient.min_level,
                "purchase_unit": ingredient.purchase_unit,
                "base_per_purchase": ingredient.base_per_purchase,
                "is_active": ingredient.is_active,
            },
        )

    def delete_ingredient(self, ingredient_id: str) -> None:
        try:
            Ingredient.objects.using(self._using).filter(id=ingredient_id).delete()
        except ProtectedError as exc:
            raise ReferentialError(
                f"Ingredient {ingredient_id} is still referenced.",
                code="INGREDIENT_REFERENCED",
            ) from exc

    def ingredient_is_referenced(self, ingredient_id: str) -> bool:
        return (
            RecipeLine.objects.using(self._using).filter(ingredient_id=ingredient_id).exists()
            or InventoryMovement.objects.using(self._using)
            .filter(ingredient_id=ingredient_id).exists()
        )

    def replace_recipe(
        self, product_id: str, lines: Iterable[RecipeLineRecord]
    ) -> None:
        try:
            with transaction.atomic(using=self._using):
                RecipeLine.objects.using(self._using).filter(product_id=product_id).delete()
                RecipeLine.objects.using(self._using).bulk_create([
                    RecipeLine(
                        product_id=product_id,
                        ingredient_id=line.ingredient_id,
                        qty_per_unit=line.qty_per_unit,
                        position=line.position,
                    )
                    for line in lines
                ])
        except IntegrityError as exc:
            raise ConflictError(
                f"Recipe of product {product_id} lists an ingredient twice.",
                code="DUPLICATE_RECIPE_LINE",
            ) from exc

    def list_recipe_lines(self, product_id: str) -> list[RecipeLineRecord]:
        rows = (
            RecipeLine.objects.using(self._using)
            .filter(product_id=product_id)
            .order_by("position")
        )
        return [_recipe_line(row) for row in rows]

    # ── inventory ledger ──────────────────────────────────────

    def append_inventory_movement(
        self, movement: InventoryMovementRecord
    ) -> None:
        InventoryMovement.objects.using(self._using).create(
            entry_id=uuid.UUID(movement.id),
            ingredient_id=movement.ingredient_id,
            quantity=movement.quantity,
            kind=movement.kind,
            reason=movement.reason,
            reference=movement.reference,
            created_at=movement.created_at,
        )

    def on_hand(self, ingredient_id: str) -> Decimal:
        total = (
            InventoryMovement.objects.using(self._using)
            .filter(ingredient_id=ingredient_id)
            .aggregate(total=Sum("quantity"))["total"]
        )
        return round3(total) if total is not None else ZERO_QUANTITY

    def replay_on_hand(self, ingredient_id: str) -> Decimal:
        quantities = (
            InventoryMovement.objects.using(self._using)
            .filter(ingredient_id=ingredient_id)
            .order_by("seq")
            .values_list("quantity", flat=True)
        )
        total = ZERO_QUANTITY
        for quantity in quantities:
            total += quantity
        return round3(total)

    def list_inventory_movements(
        self,
        ingredient_id: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> list[InventoryMovementRecord]:
        query = InventoryMovement.objects.using(self._using).order_by("seq")
        if ingredient_id is not None:
            query = query.filter(ingredient_id=ingredient_id)
        if reference is not None:
            query = query.filter(reference=reference)
        return [_movement(row) for row in query]

    # ── shifts / cash ledger ──────────────────────────────────

    def insert_shift(self, shift: ShiftRecord) -> None:
        try:
            with transaction.atomic(using=self._using):
                Shift.objects.using(self._using).create(
                    id=uuid.UUID(shift.id),
                    opened_at=shift.opened_at,
                    opening_cash=shift.opening_cash,
                    closed_at=shift.closed_at,
                    closing_cash=shift.closing_cash,
                    cash_diff=shift.cash_diff,
                    note=shift.note,
                )
        except IntegrityError as exc:
            raise ConflictError(
                "A shift is already open.", code="SHIFT_ALREADY_OPEN",
            ) from exc

    def get_shift(
        self, shift_id: str, *, for_update: bool = False
    ) -> Optional[ShiftRecord]:
        pk = _as_uuid(shift_id)
        if pk is None:
            return None
        query = Shift.objects.using(self._using).filter(id=pk)
        if for_update:
            query = query.select_for_update()
        row = query.first()
        return _shift(row) if row else None

    def get_open_shift(self) -> Optional[ShiftRecord]:
        row = (
            Shift.objects.using(self._using)
            .filter(closed_at__isnull=True)
            .first()
        )
        return _shift(row) if row else None

    def update_shift(self, shift: ShiftRecord) -> None:
        try:
            with transaction.atomic(using=self._using):
                Shift.objects.using(self._using).filter(id=shift.id).update(
                    closed_at=shift.closed_at,
                    closing_cash=shift.closing_cash,
                    cash_diff=shift.cash_diff,
                    note=shift.note,
                )
        except IntegrityError as exc:
            raise ConflictError(
                "A shift is already open.", code="SHIFT_ALREADY_OPEN",
            ) from exc

    def append_cash_movement(self, movement: CashMovementRecord) -> None:
        CashMovement.objects.using(self._using).create(
            entry_id=uuid.UUID(movement.id),
            shift_id=movement.shift_id,
            amount=movement.amount,
            txn_type=movement.txn_type,
            note=movement.note,
            reference=movement.reference,
            created_at=movement.created_at,
        )

    def list_cash_movements(self, shift_id: str) -> list[CashMovementRecord]:
        rows = CashMovement.objects.using(self._using).filter(shift_id=shift_id)
        return [_cash(row) for row in rows]

    def cash_movement_total(self, shift_id: str) -> Decimal:
        total = (
            CashMovement.objects.using(self._using)
            .filter(shift_id=shift_id)
            .aggregate(total=Sum("amount"))["total"]
        )
        return round2(total) if total is not None else ZERO_MONEY

    def cash_reference_total(self, reference: str) -> Decimal:
        total = (
            CashMovement.objects.using(self._using)
            .filter(reference=reference)
            .aggregate(total=Sum("amount"))["total"]
        )
        return round2(total) if total is not None else ZERO_MONEY
