from django.contrib.auth import get_user_model
from rest_framework import serializers

from orders.models import Order
from orders.serializers import OrderSerializer


class AdvanceStageSerializer(serializers.Serializer):
    stage = serializers.ChoiceField(choices=Order.ProductionStage.choices)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=500)


class CompleteOrderSerializer(serializers.Serializer):
    quality_notes = serializers.CharField(required=False, allow_blank=True, max_length=1000)
    rating = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=5)


class AssignOrderSerializer(serializers.Serializer):
    staff = serializers.PrimaryKeyRelatedField(queryset=get_user_model().objects.filter(is_active=True))


class SetPrioritySerializer(serializers.Serializer):
    priority = serializers.ChoiceField(choices=Order.Priority.choices)


class BatchStartSerializer(serializers.Serializer):
    order_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False, max_length=100)


class EstimateItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)


class EstimateSerializer(serializers.Serializer):
    items = EstimateItemSerializer(many=True, allow_empty=False)


class StatsQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365, default=30)


class OrderQueueSerializer(serializers.Serializer):
    pending = OrderSerializer(many=True)
    making = OrderSerializer(many=True)
    ready = OrderSerializer(many=True)
    overdue = OrderSerializer(many=True)


class BatchStartResultSerializer(serializers.Serializer):
    started = OrderSerializer(many=True)
    failures = serializers.ListField(child=serializers.DictField())


class ProductionProgressSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    current_stage = serializers.CharField()
    percentage = serializers.IntegerField()
    estimated_time_remaining = serializers.IntegerField()
    time_spent = serializers.IntegerField()
    can_advance = serializers.BooleanField()
    blockers = serializers.ListField(child=serializers.CharField())
