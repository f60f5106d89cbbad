from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import ProductionViewSet

app_name = "production"

router = SimpleRouter()
router.register(r"", ProductionViewSet, basename="production")

urlpatterns = [
    path("", include(router.urls)),
]
