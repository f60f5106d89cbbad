from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import InventoryItemViewSet, ProductAvailabilityView

router = DefaultRouter()
router.register(r"items", InventoryItemViewSet, basename="inventory-item")

app_name = "inventory"

urlpatterns = [
    path("", include(router.urls)),
    path("availability/", ProductAvailabilityView.as_view(), name="product-availability"),
]
