from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from core_backend.admin_mixins import ArchivingAdminMixin
from .models import InventoryItem, StockHistoryEntry


@admin.register(InventoryItem)
class InventoryItemAdmin(ArchivingAdminMixin, admin.ModelAdmin):
    list_display = (
        "name",
        "category",
        "current_stock",
        "unit",
        "min_stock",
        "max_stock",
        "stock_status_badge",
        "expiry_date",
    )
    list_filter = ("category",)
    search_fields = ("name", "supplier")
    # Stock only moves through the ledger so every change has a history row
    readonly_fields = ("current_stock", "created_at", "updated_at", "archived_at")
    fieldsets = (
        (None, {"fields": ("name", "category", "unit", "supplier")}),
        ("Stock Levels", {"fields": ("current_stock", "min_stock", "max_stock")}),
        ("Cost & Expiry", {"fields": ("unit_cost", "expiry_date")}),
        ("Metadata", {"fields": ("is_active", "archived_at", "created_at", "updated_at"), "classes": ("collapse",)}),
    )

    @admin.display(description="Status")
    def stock_status_badge(self, obj):
        colors = {"EXPIRED": "#6B7280", "LOW": "#EF4444", "OVERSTOCK": "#F97316", "NORMAL": "#10B981"}
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.stock_status, "#64748B"),
            obj.stock_status,
        )


@admin.register(StockHistoryEntry)
class StockHistoryEntryAdmin(admin.ModelAdmin):
    list_display = (
        "timestamp",
        "item_link",
        "operation_type",
        "quantity_change_formatted",
        "new_quantity",
        "user",
        "reference_id",
    )
    list_filter = ("operation_type", "timestamp")
    search_fields = ("item__name", "reason", "reference_id")
    date_hierarchy = "timestamp"
    ordering = ("-timestamp",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("item", "user")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description="Item")
    def item_link(self, obj):
        url = reverse("admin:inventory_inventoryitem_change", args=[obj.item_id])
        return format_html('<a href="{}">{}</a>', url, obj.item.name)

    @admin.display(description="Change")
    def quantity_change_formatted(self, obj):
        if obj.quantity_change >= 0:
            return format_html('<span style="color: green; font-weight: bold;">+{}</span>', obj.quantity_change)
        return format_html('<span style="color: red; font-weight: bold;">{}</span>', obj.quantity_change)
