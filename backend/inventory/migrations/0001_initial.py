from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "is_active",
                    models.BooleanField(
                        db_index=True,
                        default=True,
                        help_text="Designates whether this record is active. Inactive records are considered archived/soft-deleted.",
                    ),
                ),
                (
                    "archived_at",
                    models.DateTimeField(blank=True, help_text="Timestamp when this record was archived.", null=True),
                ),
                ("name", models.CharField(help_text="Name of the ingredient.", max_length=100)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("TEA", "Tea"),
                            ("MILK", "Dairy"),
                            ("TOPPING", "Topping"),
                            ("SYRUP", "Syrup"),
                            ("FRUIT", "Fruit"),
                            ("SPICE", "Spice"),
                            ("PACKAGING", "Packaging"),
                            ("CLEANING", "Cleaning Supplies"),
                            ("OTHER", "Other"),
                        ],
                        default="OTHER",
                        max_length=20,
                    ),
                ),
                ("unit", models.CharField(help_text="Unit of measure, e.g. 'kg', 'L', 'pcs'.", max_length=20)),
                (
                    "current_stock",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("0"),
                        help_text="Quantity on hand.",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "min_stock",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("0"),
                        help_text="Reorder threshold; at or below this level the item is low on stock.",
                        max_digits=12,
                    ),
                ),
                (
                    "max_stock",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("1000"),
                        help_text="Storage capacity used to bound manual adjustments.",
                        max_digits=12,
                    ),
                ),
                ("unit_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("supplier", models.CharField(blank=True, max_length=100)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Inventory Item",
                "verbose_name_plural": "Inventory Items",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["category"], name="inventory_item_category_idx"),
                    models.Index(fields=["expiry_date"], name="inventory_item_expiry_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(current_stock__gte=0),
                        name="inventory_item_stock_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockHistoryEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "operation_type",
                    models.CharField(
                        choices=[
                            ("ORDER_DEDUCTION", "Order Deduction"),
                            ("ORDER_RESTORATION", "Order Restoration"),
                            ("RESTORATION_SKIPPED", "Restoration Skipped"),
                            ("ADJUSTED_ADD", "Stock Added"),
                            ("ADJUSTED_SUBTRACT", "Stock Subtracted"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "quantity_change",
                    models.DecimalField(
                        decimal_places=3,
                        help_text="Positive for additions, negative for subtractions",
                        max_digits=12,
                    ),
                ),
                ("previous_quantity", models.DecimalField(decimal_places=3, max_digits=12)),
                ("new_quantity", models.DecimalField(decimal_places=3, max_digits=12)),
                ("reason", models.CharField(blank=True, max_length=255)),
                (
                    "reference_id",
                    models.CharField(
                        blank=True,
                        help_text="Links related operations, e.g. the order number",
                        max_length=100,
                    ),
                ),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="history",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who performed the operation",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_operations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Stock History Entry",
                "verbose_name_plural": "Stock History Entries",
                "ordering": ["-timestamp", "-id"],
                "indexes": [
                    models.Index(fields=["item", "timestamp"], name="stock_hist_item_time_idx"),
                    models.Index(fields=["operation_type"], name="stock_hist_operation_idx"),
                    models.Index(fields=["reference_id"], name="stock_hist_reference_idx"),
                ],
            },
        ),
    ]
