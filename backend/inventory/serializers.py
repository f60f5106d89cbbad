from decimal import Decimal

from rest_framework import serializers

from .models import InventoryItem, StockHistoryEntry


class InventoryItemSerializer(serializers.ModelSerializer):
    stock_status = serializers.CharField(read_only=True)
    stock_level = serializers.CharField(read_only=True)
    needs_reorder = serializers.BooleanField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)
    recommended_reorder_quantity = serializers.DecimalField(
        max_digits=12, decimal_places=3, read_only=True
    )
    stock_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = InventoryItem
        fields = [
            "id",
            "name",
            "category",
            "unit",
            "current_stock",
            "min_stock",
            "max_stock",
            "unit_cost",
            "supplier",
            "expiry_date",
            "is_active",
            "stock_status",
            "stock_level",
            "needs_reorder",
            "is_expired",
            "recommended_reorder_quantity",
            "stock_value",
            "updated_at",
        ]
        # Stock only changes through the ledger endpoints.
        read_only_fields = fields


class StockHistoryEntrySerializer(serializers.ModelSerializer):
    user_username = serializers.CharField(source="user.username", read_only=True, default=None)

    class Meta:
        model = StockHistoryEntry
        fields = [
            "id",
            "operation_type",
            "quantity_change",
            "previous_quantity",
            "new_quantity",
            "reason",
            "reference_id",
            "user",
            "user_username",
            "timestamp",
        ]
        read_only_fields = fields


class StockAdjustmentSerializer(serializers.Serializer):
    """
    Manual stock correction. Positive ``delta`` adds stock, negative removes it.
    """

    delta = serializers.DecimalField(max_digits=12, decimal_places=3)
    reason = serializers.CharField(max_length=255)

    def validate_delta(self, value):
        if value == Decimal("0"):
            raise serializers.ValidationError("Adjustment must not be zero.")
        return value


class AvailabilityQuerySerializer(serializers.Serializer):
    product = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, default=1)


class ExpiryWindowSerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=0, max_value=365, required=False)
