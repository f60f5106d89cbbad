from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from orders.models import Order
from orders.serializers import OrderSerializer
from orders.services import OrderService
from .serializers import (
    AdvanceStageSerializer,
    AssignOrderSerializer,
    BatchStartResultSerializer,
    BatchStartSerializer,
    CompleteOrderSerializer,
    EstimateSerializer,
    OrderQueueSerializer,
    ProductionProgressSerializer,
    SetPrioritySerializer,
    StatsQuerySerializer,
)
from .services import ProductionService


class ProductionViewSet(viewsets.GenericViewSet):
    """
    Production queue actions for baristas. The authenticated user is the
    staff member doing the work.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]

    def _order_response(self, order):
        return Response(OrderSerializer(OrderService.get_order(order.pk)).data)

    @action(detail=False, methods=["get"])
    def queue(self, request):
        return Response(OrderQueueSerializer(ProductionService.get_queue()).data)

    @action(detail=False, methods=["get"], url_path="my-queue")
    def my_queue(self, request):
        orders = ProductionService.get_staff_queue(request.user)
        return Response(OrderSerializer(orders, many=True).data)

    @action(detail=False, methods=["post"], url_path="batch-start")
    def batch_start(self, request):
        serializer = BatchStartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = ProductionService.batch_start(serializer.validated_data["order_ids"], request.user)
        return Response(BatchStartResultSerializer(result).data)

    @action(detail=False, methods=["get"])
    def stats(self, request):
        query = StatsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(ProductionService.get_production_stats(days=query.validated_data["days"]))

    @action(detail=False, methods=["post"])
    def estimate(self, request):
        serializer = EstimateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        minutes = ProductionService.estimate_production_time(serializer.validated_data["items"])
        return Response({"estimated_minutes": minutes})

    @action(detail=True, methods=["post"])
    def start(self, request, pk=None):
        order = ProductionService.start_production(pk, request.user)
        return self._order_response(order)

    @action(detail=True, methods=["post"])
    def advance(self, request, pk=None):
        serializer = AdvanceStageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = ProductionService.advance_stage(
            pk,
            serializer.validated_data["stage"],
            notes=serializer.validated_data.get("notes"),
            staff=request.user,
        )
        return self._order_response(order)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        serializer = CompleteOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = ProductionService.complete_order(
            pk,
            quality_notes=serializer.validated_data.get("quality_notes"),
            rating=serializer.validated_data.get("rating"),
            user=request.user,
        )
        return self._order_response(order)

    @action(detail=True, methods=["post"])
    def assign(self, request, pk=None):
        serializer = AssignOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = ProductionService.assign_order(pk, serializer.validated_data["staff"])
        return self._order_response(order)

    @action(detail=True, methods=["post"])
    def priority(self, request, pk=None):
        serializer = SetPrioritySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = ProductionService.set_priority(pk, serializer.validated_data["priority"])
        return self._order_response(order)

    @action(detail=True, methods=["get"])
    def progress(self, request, pk=None):
        progress = ProductionService.get_progress(pk)
        return Response(ProductionProgressSerializer(progress).data)
