from decimal import Decimal

from rest_framework import serializers

from customers.models import Customer
from orders.models import Order, OrderItem


class OrderItemInputSerializer(serializers.Serializer):
    """
    One requested line. ``unit_price`` overrides the catalog price when given.
    """

    product_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, max_value=999)
    unit_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.01"), required=False
    )


class MemberInfoSerializer(serializers.Serializer):
    tier = serializers.ChoiceField(choices=Customer.Tier.choices, required=False, allow_null=True)
    available_points = serializers.IntegerField(min_value=0, default=0)


class OrderCreateSerializer(serializers.Serializer):
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    customer_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    member_info = MemberInfoSerializer(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000, default="")


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ["id", "product", "product_name", "unit_price", "quantity", "subtotal"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read representation of an order with its lines and derived fields."""

    items = OrderItemSerializer(many=True, read_only=True)
    staff_username = serializers.CharField(source="staff.username", read_only=True)
    assigned_to_username = serializers.CharField(
        source="assigned_to.username", read_only=True, default=None
    )
    total_items = serializers.IntegerField(read_only=True)
    wait_time_minutes = serializers.IntegerField(read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)
    progress_percentage = serializers.IntegerField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "staff",
            "staff_username",
            "total_amount",
            "discount_amount",
            "final_amount",
            "points_used",
            "points_earned",
            "status",
            "production_stage",
            "priority",
            "assigned_to",
            "assigned_to_username",
            "estimated_wait_time",
            "actual_wait_time",
            "notes",
            "quality_notes",
            "rating",
            "created_at",
            "making_started_at",
            "making_completed_at",
            "ready_at",
            "completed_at",
            "cancelled_at",
            "items",
            "total_items",
            "wait_time_minutes",
            "is_overdue",
            "progress_percentage",
        ]
        read_only_fields = fields
