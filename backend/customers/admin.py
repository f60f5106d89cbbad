from django.contrib import admin

from core_backend.admin_mixins import ArchivingAdminMixin
from .models import Customer, PointsTransaction


class PointsTransactionInline(admin.TabularInline):
    model = PointsTransaction
    extra = 0
    can_delete = False
    readonly_fields = ("delta", "balance_after", "reason", "reference_id", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Customer)
class CustomerAdmin(ArchivingAdminMixin, admin.ModelAdmin):
    list_display = ("name", "phone", "email", "tier", "points", "total_spent")
    list_filter = ("tier",)
    search_fields = ("name", "phone", "email")
    # Balances change only through MembershipService
    readonly_fields = ("points", "points_used", "total_spent", "created_at", "updated_at")
    inlines = [PointsTransactionInline]
