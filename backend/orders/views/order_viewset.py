from rest_framework import mixins, permissions, status, viewsets
from rest_framework.response import Response

from orders.calculators import MemberInfo
from orders.models import Order
from orders.serializers import OrderCreateSerializer, OrderSerializer
from orders.services import OrderService
from .status_actions import StatusActionsMixin


class OrderViewSet(
    StatusActionsMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    ViewSet for placing orders and moving them through their statuses.

    - create: prices the order and commits its ingredients
    - list / retrieve: read access, ``?status=`` filter on the list
    - status transitions and cancellation (StatusActionsMixin)

    The authenticated user is the staff member taking the order.
    """

    queryset = (
        Order.objects.select_related("customer", "staff", "assigned_to")
        .prefetch_related("items")
        .order_by("-created_at")
    )
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        queryset = super().get_queryset()
        status_filter = self.request.query_params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        member_info = None
        if data.get("member_info"):
            member_info = MemberInfo(
                tier=data["member_info"].get("tier"),
                available_points=data["member_info"].get("available_points", 0),
            )

        order = OrderService.create_order(
            staff=request.user,
            items=data["items"],
            customer=data.get("customer_id"),
            member_info=member_info,
            notes=data.get("notes", ""),
        )
        output = self.get_serializer(OrderService.get_order(order.pk))
        return Response(output.data, status=status.HTTP_201_CREATED)
