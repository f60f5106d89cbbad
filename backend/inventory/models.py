from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import SoftDeleteMixin


class InventoryItem(SoftDeleteMixin):
    """
    A tracked ingredient or consumable (tea leaves, milk, pearls, cups...).

    ``current_stock`` is owned by the inventory ledger
    (inventory.services.InventoryService) and must never be written directly.
    """

    class Category(models.TextChoices):
        TEA = "TEA", _("Tea")
        MILK = "MILK", _("Dairy")
        TOPPING = "TOPPING", _("Topping")
        SYRUP = "SYRUP", _("Syrup")
        FRUIT = "FRUIT", _("Fruit")
        SPICE = "SPICE", _("Spice")
        PACKAGING = "PACKAGING", _("Packaging")
        CLEANING = "CLEANING", _("Cleaning Supplies")
        OTHER = "OTHER", _("Other")

    name = models.CharField(max_length=100, help_text=_("Name of the ingredient."))
    category = models.CharField(
        max_length=20, choices=Category.choices, default=Category.OTHER
    )
    unit = models.CharField(
        max_length=20, help_text=_("Unit of measure, e.g. 'kg', 'L', 'pcs'.")
    )
    current_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
        help_text=_("Quantity on hand."),
    )
    min_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("0"),
        help_text=_("Reorder threshold; at or below this level the item is low on stock."),
    )
    max_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("1000"),
        help_text=_("Storage capacity used to bound manual adjustments."),
    )
    unit_cost = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    supplier = models.CharField(max_length=100, blank=True)
    expiry_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Inventory Item")
        verbose_name_plural = _("Inventory Items")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category"], name="inventory_item_category_idx"),
            models.Index(fields=["expiry_date"], name="inventory_item_expiry_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(current_stock__gte=0),
                name="inventory_item_stock_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.current_stock}{self.unit})"

    @property
    def restore_ceiling(self):
        """Upper bound for stock returned by cancelled orders."""
        factor = settings.FULFILLMENT["RESTORE_CEILING_FACTOR"]
        return self.max_stock * factor

    @property
    def is_expired(self):
        return bool(self.expiry_date and timezone.now().date() > self.expiry_date)

    def is_expiring_soon(self, days=None):
        """True if the item expires within ``days`` (not already expired)."""
        if not self.expiry_date:
            return False
        if days is None:
            days = settings.FULFILLMENT["EXPIRY_WARNING_DAYS"]
        today = timezone.now().date()
        return today <= self.expiry_date <= today + timedelta(days=days)

    @property
    def needs_reorder(self):
        return self.current_stock <= self.min_stock

    @property
    def stock_status(self):
        if self.is_expired:
            return "EXPIRED"
        if self.current_stock > self.max_stock:
            return "OVERSTOCK"
        if self.current_stock <= self.min_stock:
            return "LOW"
        return "NORMAL"

    @property
    def stock_level(self):
        """Finer grained level used by alert listings."""
        if self.current_stock <= 0:
            return "OUT_OF_STOCK"
        if self.current_stock <= self.min_stock * Decimal("0.5"):
            return "VERY_LOW"
        if self.current_stock <= self.min_stock:
            return "LOW"
        if self.current_stock >= self.max_stock * Decimal("1.2"):
            return "OVERSTOCK"
        if self.current_stock >= self.max_stock * Decimal("0.8"):
            return "HIGH"
        return "NORMAL"

    @property
    def recommended_reorder_quantity(self):
        """Quantity needed to bring stock back to 80% of capacity."""
        target = self.max_stock * Decimal("0.8")
        return max(Decimal("0"), target - self.current_stock)

    @property
    def stock_value(self):
        return self.current_stock * self.unit_cost


class StockHistoryEntry(models.Model):
    """
    Tracks every ledger operation for audit trail and history purposes.
    """

    class OperationType(models.TextChoices):
        ORDER_DEDUCTION = "ORDER_DEDUCTION", _("Order Deduction")
        ORDER_RESTORATION = "ORDER_RESTORATION", _("Order Restoration")
        RESTORATION_SKIPPED = "RESTORATION_SKIPPED", _("Restoration Skipped")
        ADJUSTED_ADD = "ADJUSTED_ADD", _("Stock Added")
        ADJUSTED_SUBTRACT = "ADJUSTED_SUBTRACT", _("Stock Subtracted")

    item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name="history",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_operations",
        help_text=_("User who performed the operation"),
    )
    operation_type = models.CharField(max_length=20, choices=OperationType.choices)
    quantity_change = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        help_text=_("Positive for additions, negative for subtractions"),
    )
    previous_quantity = models.DecimalField(max_digits=12, decimal_places=3)
    new_quantity = models.DecimalField(max_digits=12, decimal_places=3)
    reason = models.CharField(max_length=255, blank=True)
    reference_id = models.CharField(
        max_length=100,
        blank=True,
        help_text=_("Links related operations, e.g. the order number"),
    )
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Stock History Entry")
        verbose_name_plural = _("Stock History Entries")
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(fields=["item", "timestamp"], name="stock_hist_item_time_idx"),
            models.Index(fields=["operation_type"], name="stock_hist_operation_idx"),
            models.Index(fields=["reference_id"], name="stock_hist_reference_idx"),
        ]

    def __str__(self):
        return (
            f"{self.operation_type}: {self.item.name} ({self.quantity_change:+}) "
            f"- {self.timestamp:%Y-%m-%d %H:%M}"
        )
