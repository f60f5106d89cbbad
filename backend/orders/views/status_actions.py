from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from orders.serializers import CancelOrderSerializer, UpdateOrderStatusSerializer
from orders.services import OrderService


class StatusActionsMixin:
    """
    Mixin for order status transition actions

    This mixin provides action methods for OrderViewSet. Domain errors raised
    by OrderService are rendered by the project exception handler.
    """

    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request: Request, pk=None) -> Response:
        order = self.get_object()
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        OrderService.update_status(order.pk, serializer.validated_data["status"], user=request.user)
        return Response(self.get_serializer(OrderService.get_order(order.pk)).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk=None) -> Response:
        order = self.get_object()
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        OrderService.cancel_order(order.pk, serializer.validated_data["reason"], user=request.user)
        return Response(self.get_serializer(OrderService.get_order(order.pk)).data)
