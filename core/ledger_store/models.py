"""
POS Ledger Store - Relational Model
===================================
Django ORM tables behind DjangoLedgerStore.

RULES:
- payments, inventory_movements and cash_movements are INSERT only
- order headers carry `version` for compare-and-set updates
- at most one shift may have closed_at IS NULL (partial unique index)
- references that block deletes are declared PROTECT

This file contains NO business logic.
"""

import uuid

from django.db import models

from core.ledger_store.records import (
    CashTxnType,
    MovementKind,
    PaymentMethod,
    PaymentStatus,
    QueueStatus,
)


def _choices(values):
    return [(value, value.replace("_", " ").title()) for value in values]


MONEY = {"max_digits": 12, "decimal_places": 2}
QUANTITY = {"max_digits": 14, "decimal_places": 3}


class AppendOnlyModel(models.Model):
    """
    Ledger row: written once, never changed or removed.

    `seq` is the insertion order; `entry_id` is the public identifier.
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise PermissionError(
                f"{type(self).__name__} rows are append-only. "
                f"Post a reversing row instead of updating."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError(
            f"{type(self).__name__} rows are append-only and never deleted."
        )


# ══════════════════════════════════════════════════════════════
# CATALOG
# ══════════════════════════════════════════════════════════════

class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=200)
    price = models.DecimalField(**MONEY)
    category = models.CharField(max_length=100, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["name", "sku"]

    def __str__(self):
        return f"{self.sku} {self.name}"


# ══════════════════════════════════════════════════════════════
# ORDERS
# ══════════════════════════════════════════════════════════════

class Order(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=32, unique=True)
    opened_at = models.DateTimeField(db_index=True)
    started_at = models.DateTimeField(null=True, blank=True)
    done_at = models.DateTimeField(null=True, blank=True)
    queue_status = models.CharField(
        max_length=16,
        choices=_choices(QueueStatus.ALL),
        default=QueueStatus.QUEUED,
    )
    payment_status = models.CharField(
        max_length=16,
        choices=_choices(PaymentStatus.ALL),
        default=PaymentStatus.UNPAID,
    )
    paid_at = models.DateTimeField(null=True, blank=True, db_index=True)
    paid_method = models.CharField(
        max_length=16,
        choices=_choices(PaymentMethod.ALL),
        null=True,
        blank=True,
    )
    subtotal = models.DecimalField(**MONEY)
    discount_amount = models.DecimalField(**MONEY, default=0)
    total = models.DecimalField(**MONEY)
    note = models.TextField(blank=True, default="")
    version = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "orders"
        ordering = ["-opened_at"]
        indexes = [
            models.Index(fields=["queue_status", "opened_at"], name="idx_order_queue"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount_amount__gte=0) & models.Q(total__gte=0),
                name="order_amounts_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.code} ({self.queue_status}/{self.payment_status})"


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    position = models.PositiveIntegerField()
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="+")
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(**MONEY)
    subtotal = models.DecimalField(**MONEY)

    class Meta:
        db_table = "order_items"
        ordering = ["order", "position"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "position"], name="unique_order_item_position",
            ),
        ]


class Payment(AppendOnlyModel):
    seq = models.BigAutoField(primary_key=True)
    entry_id = models.UUIDField(unique=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name="payments")
    method = models.CharField(max_length=16, choices=_choices(PaymentMethod.ALL))
    amount = models.DecimalField(**MONEY)
    created_at = models.DateTimeField()

    class Meta:
        db_table = "payments"
        ordering = ["seq"]


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

class Ingredient(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    unit = models.CharField(max_length=16, default="g")
    min_level = models.DecimalField(**QUANTITY, default=0)
    purchase_unit = models.CharField(max_length=32, null=True, blank=True)
    base_per_purchase = models.DecimalField(**QUANTITY, null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "ingredients"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.unit})"


class RecipeLine(models.Model):
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="recipe_lines")
    ingredient = models.ForeignKey(Ingredient, on_delete=models.PROTECT, related_name="+")
    qty_per_unit = models.DecimalField(**QUANTITY)
    position = models.PositiveIntegerField()

    class Meta:
        db_table = "recipes"
        ordering = ["product", "position"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "ingredient"], name="unique_recipe_ingredient",
            ),
        ]


class InventoryMovement(AppendOnlyModel):
    seq = models.BigAutoField(primary_key=True)
    entry_id = models.UUIDField(unique=True, default=uuid.uuid4, editable=False)
    ingredient = models.ForeignKey(Ingredient, on_delete=models.PROTECT, related_name="+")
    quantity = models.DecimalField(**QUANTITY)
    kind = models.CharField(max_length=8, choices=_choices(MovementKind.ALL))
    reason = models.CharField(max_length=200, blank=True, default="")
    reference = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    created_at = models.DateTimeField()

    class Meta:
        db_table = "inventory_movements"
        ordering = ["seq"]
        indexes = [
            models.Index(fields=["ingredient", "seq"], name="idx_movement_ingredient"),
        ]


# ══════════════════════════════════════════════════════════════
# CASH
# ══════════════════════════════════════════════════════════════

class Shift(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    opened_at = models.DateTimeField()
    opening_cash = models.DecimalField(**MONEY)
    closed_at = models.DateTimeField(null=True, blank=True)
    closing_cash = models.DecimalField(**MONEY, null=True, blank=True)
    cash_diff = models.DecimalField(**MONEY, null=True, blank=True)
    note = models.TextField(blank=True, default="")
    # Constant True; only indexed while closed_at IS NULL.
    open_slot = models.BooleanField(default=True, editable=False)

    class Meta:
        db_table = "shifts"
        ordering = ["-opened_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["open_slot"],
                condition=models.Q(closed_at__isnull=True),
                name="single_open_shift",
            ),
        ]

    def __str__(self):
        state = "open" if self.closed_at is None else "closed"
        return f"Shift {self.id} ({state})"


class CashMovement(AppendOnlyModel):
    seq = models.BigAutoField(primary_key=True)
    entry_id = models.UUIDField(unique=True, default=uuid.uuid4, editable=False)
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="movements")
    amount = models.DecimalField(**MONEY)
    txn_type = models.CharField(max_length=16, choices=_choices(CashTxnType.ALL))
    note = models.TextField(blank=True, default="")
    reference = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    created_at = models.DateTimeField()

    class Meta:
        db_table = "cash_movements"
        ordering = ["seq"]
