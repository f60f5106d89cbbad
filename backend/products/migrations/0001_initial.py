from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
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
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True)),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Recipe",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "quantity",
                    models.DecimalField(
                        decimal_places=3,
                        help_text="Nominal amount of the ingredient per unit of product.",
                        max_digits=10,
                    ),
                ),
                (
                    "unit",
                    models.CharField(help_text="Unit of measure, should match the ingredient's unit.", max_length=20),
                ),
                (
                    "usage_percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("100.00"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("100")),
                        ],
                    ),
                ),
                ("is_required", models.BooleanField(default=True)),
                ("sort_order", models.PositiveIntegerField(default=1)),
                ("notes", models.CharField(blank=True, max_length=500)),
                (
                    "ingredient",
                    models.ForeignKey(
                        help_text="The inventory item consumed by this product.",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="recipe_usages",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recipes",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "verbose_name": "Recipe Line",
                "verbose_name_plural": "Recipe Lines",
                "ordering": ["product", "sort_order", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "ingredient"), name="unique_recipe_ingredient_per_product"
                    ),
                ],
            },
        ),
    ]
