from rest_framework import serializers

from orders.models import Order


class UpdateOrderStatusSerializer(serializers.Serializer):
    """
    Serializer specifically for validating a requested order status.
    Whether the transition is allowed is decided by OrderService.
    """

    status = serializers.ChoiceField(choices=Order.Status.choices)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500, default="")
