# orders/api/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from orders.api.views import PrivateClientContactViewSet, PrivateClientOrderViewSet

router = SimpleRouter()
router.register(r"clients", PrivateClientContactViewSet, basename="pco-clients")
router.register(r"", PrivateClientOrderViewSet, basename="pco")

urlpatterns = [
    path("", include(router.urls)),
]
