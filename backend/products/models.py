from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import SoftDeleteMixin


class Product(SoftDeleteMixin):
    """A sellable drink or snack. Catalog management owns these rows."""

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering = ["name"]

    def __str__(self):
        return self.name


class Recipe(models.Model):
    """
    One ingredient line of a product's recipe (product -> inventory item).

    ``usage_percentage`` scales the nominal quantity, e.g. "less sugar" recipes
    use 50% of the syrup.
    """

    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="recipes"
    )
    ingredient = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        related_name="recipe_usages",
        help_text=_("The inventory item consumed by this product."),
    )
    quantity = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        help_text=_("Nominal amount of the ingredient per unit of product."),
    )
    unit = models.CharField(
        max_length=20, help_text=_("Unit of measure, should match the ingredient's unit.")
    )
    usage_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("100.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    is_required = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=1)
    notes = models.CharField(max_length=500, blank=True)

    class Meta:
        verbose_name = _("Recipe Line")
        verbose_name_plural = _("Recipe Lines")
        ordering = ["product", "sort_order", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "ingredient"], name="unique_recipe_ingredient_per_product"
            ),
        ]

    def __str__(self):
        return f"{self.adjusted_quantity}{self.unit} of {self.ingredient.name} for {self.product.name}"

    @property
    def adjusted_quantity(self):
        """Nominal quantity scaled by the usage percentage."""
        return self.quantity * self.usage_percentage / Decimal("100")

    def clean(self):
        errors = {}
        if self.quantity is not None and self.quantity <= 0:
            errors["quantity"] = _("Ingredient quantity must be greater than zero")
        if self.usage_percentage is not None and not (0 <= self.usage_percentage <= 100):
            errors["usage_percentage"] = _("Usage percentage must be between 0 and 100")
        if errors:
            raise ValidationError(errors)
