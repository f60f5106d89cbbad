from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from products.services import ProductService
from .models import InventoryItem
from .serializers import (
    AvailabilityQuerySerializer,
    ExpiryWindowSerializer,
    InventoryItemSerializer,
    StockAdjustmentSerializer,
    StockHistoryEntrySerializer,
)
from .services import InventoryAlertService, InventoryService, RecipeService


class InventoryItemViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read access to ingredients plus the manual adjustment and alert endpoints.
    Stock levels are never written through a plain update.
    """

    queryset = InventoryItem.objects.all()
    serializer_class = InventoryItemSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        queryset = super().get_queryset()
        category = self.request.query_params.get("category")
        if category:
            queryset = queryset.filter(category=category)
        return queryset

    def _expiry_days(self, request):
        serializer = ExpiryWindowSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data.get("days")

    @action(detail=True, methods=["post"])
    def adjust(self, request, pk=None):
        item = self.get_object()
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = InventoryService.adjust(
            item.pk,
            serializer.validated_data["delta"],
            serializer.validated_data["reason"],
            actor=request.user,
        )
        return Response(self.get_serializer(item).data)

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        item = self.get_object()
        page = self.paginate_queryset(item.history.select_related("user"))
        serializer = StockHistoryEntrySerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        return Response(InventoryAlertService.low_stock_alerts())

    @action(detail=False, methods=["get"])
    def overstock(self, request):
        return Response(InventoryAlertService.overstock_alerts())

    @action(detail=False, methods=["get"])
    def expiring(self, request):
        return Response(InventoryAlertService.expiring_alerts(self._expiry_days(request)))

    @action(detail=False, methods=["get"])
    def alerts(self, request):
        return Response(InventoryAlertService.get_all_alerts(self._expiry_days(request)))

    @action(detail=False, methods=["get"])
    def statistics(self, request):
        return Response(InventoryAlertService.get_inventory_statistics())


class ProductAvailabilityView(APIView):
    """
    Can ``quantity`` units of ``product`` be made from current stock?
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, *args, **kwargs):
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        product = ProductService.get_product(query.validated_data["product"])
        report = RecipeService.check_availability(product.pk, query.validated_data["quantity"])
        return Response(
            {
                "product": product.pk,
                "product_name": product.name,
                "quantity": query.validated_data["quantity"],
                "available": report.available,
                "shortages": report.shortages,
            },
            status=status.HTTP_200_OK,
        )
