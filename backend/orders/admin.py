from django.contrib import admin

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("product", "product_name", "unit_price", "quantity", "subtotal")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "status",
        "production_stage",
        "priority",
        "customer",
        "final_amount",
        "assigned_to",
        "created_at",
    )
    list_filter = ("status", "production_stage", "priority", "created_at")
    search_fields = ("order_number", "customer__name", "customer__phone")
    date_hierarchy = "created_at"
    ordering = ("-created_at",)
    inlines = [OrderItemInline]
    # Status changes go through the API so stock and loyalty stay consistent
    readonly_fields = (
        "order_number",
        "status",
        "production_stage",
        "total_amount",
        "discount_amount",
        "final_amount",
        "points_used",
        "points_earned",
        "making_started_at",
        "making_completed_at",
        "ready_at",
        "completed_at",
        "cancelled_at",
        "actual_wait_time",
        "loyalty_applied_at",
        "created_at",
        "updated_at",
    )

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("customer", "staff", "assigned_to")

    def has_delete_permission(self, request, obj=None):
        return False
