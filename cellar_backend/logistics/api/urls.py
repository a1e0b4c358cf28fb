# logistics/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from logistics.api.views import ShipmentViewSet

router = DefaultRouter()
router.register(r"shipments", ShipmentViewSet, basename="shipments")

urlpatterns = [
    path("", include(router.urls)),
]
