import uuid

import django.db.models.deletion
from django.db import migrations, models


QUEUE_STATUS_CHOICES = [
    ("queued", "Queued"),
    ("preparing", "Preparing"),
    ("done", "Done"),
    ("void", "Void"),
]
PAYMENT_STATUS_CHOICES = [("unpaid", "Unpaid"), ("paid", "Paid")]
PAYMENT_METHOD_CHOICES = [
    ("cash", "Cash"),
    ("transfer", "Transfer"),
    ("promptpay", "Promptpay"),
    ("card", "Card"),
    ("other", "Other"),
]
MOVEMENT_KIND_CHOICES = [("in", "In"), ("waste", "Waste"), ("adjust", "Adjust")]
CASH_TXN_CHOICES = [
    ("sale_cash", "Sale Cash"),
    ("cash_in", "Cash In"),
    ("cash_out", "Cash Out"),
    ("refund_cash", "Refund Cash"),
    ("expense", "Expense"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("category", models.CharField(blank=True, default="", max_length=100)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "db_table": "products",
                "ordering": ["name", "sku"],
            },
        ),
        migrations.CreateModel(
            name="Ingredient",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("unit", models.CharField(default="g", max_length=16)),
                ("min_level", models.DecimalField(decimal_places=3, default=0, max_digits=14)),
                ("purchase_unit", models.CharField(blank=True, max_length=32, null=True)),
                ("base_per_purchase", models.DecimalField(blank=True, decimal_places=3, max_digits=14, null=True)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "db_table": "ingredients",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=32, unique=True)),
                ("opened_at", models.DateTimeField(db_index=True)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("done_at", models.DateTimeField(blank=True, null=True)),
                ("queue_status", models.CharField(choices=QUEUE_STATUS_CHOICES, default="queued", max_length=16)),
                ("payment_status", models.CharField(choices=PAYMENT_STATUS_CHOICES, default="unpaid", max_length=16)),
                ("paid_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("paid_method", models.CharField(blank=True, choices=PAYMENT_METHOD_CHOICES, max_length=16, null=True)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("note", models.TextField(blank=True, default="")),
                ("version", models.PositiveIntegerField(default=1)),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-opened_at"],
                "indexes": [
                    models.Index(fields=["queue_status", "opened_at"], name="idx_order_queue"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("discount_amount__gte", 0), ("total__gte", 0)),
                        name="order_amounts_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Shift",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("opened_at", models.DateTimeField()),
                ("opening_cash", models.DecimalField(decimal_places=2, max_digits=12)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("closing_cash", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("cash_diff", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("note", models.TextField(blank=True, default="")),
                ("open_slot", models.BooleanField(default=True, editable=False)),
            ],
            options={
                "db_table": "shifts",
                "ordering": ["-opened_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("closed_at__isnull", True)),
                        fields=("open_slot",),
                        name="single_open_shift",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField()),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="ledger_store.order")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_store.product")),
            ],
            options={
                "db_table": "order_items",
                "ordering": ["order", "position"],
                "constraints": [
                    models.UniqueConstraint(fields=("order", "position"), name="unique_order_item_position"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("seq", models.BigAutoField(primary_key=True, serialize=False)),
                ("entry_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("method", models.CharField(choices=PAYMENT_METHOD_CHOICES, max_length=16)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("created_at", models.DateTimeField()),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="ledger_store.order")),
            ],
            options={
                "db_table": "payments",
                "ordering": ["seq"],
            },
        ),
        migrations.CreateModel(
            name="RecipeLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("qty_per_unit", models.DecimalField(decimal_places=3, max_digits=14)),
                ("position", models.PositiveIntegerField()),
                ("ingredient", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_store.ingredient")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="recipe_lines", to="ledger_store.product")),
            ],
            options={
                "db_table": "recipes",
                "ordering": ["product", "position"],
                "constraints": [
                    models.UniqueConstraint(fields=("product", "ingredient"), name="unique_recipe_ingredient"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryMovement",
            fields=[
                ("seq", models.BigAutoField(primary_key=True, serialize=False)),
                ("entry_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                ("kind", models.CharField(choices=MOVEMENT_KIND_CHOICES, max_length=8)),
                ("reason", models.CharField(blank=True, default="", max_length=200)),
                ("reference", models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ("created_at", models.DateTimeField()),
                ("ingredient", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_store.ingredient")),
            ],
            options={
                "db_table": "inventory_movements",
                "ordering": ["seq"],
                "indexes": [
                    models.Index(fields=["ingredient", "seq"], name="idx_movement_ingredient"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CashMovement",
            fields=[
                ("seq", models.BigAutoField(primary_key=True, serialize=False)),
                ("entry_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("txn_type", models.CharField(choices=CASH_TXN_CHOICES, max_length=16)),
                ("note", models.TextField(blank=True, default="")),
                ("reference", models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ("created_at", models.DateTimeField()),
                ("shift", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="movements", to="ledger_store.shift")),
            ],
            options={
                "db_table": "cash_movements",
                "ordering": ["seq"],
            },
        ),
    ]
