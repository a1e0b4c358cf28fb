# partners/api/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from partners.api.views import MyPartnerView, PartnerViewSet

router = SimpleRouter()
router.register(r"", PartnerViewSet, basename="partners")

urlpatterns = [
    # explicit routes BEFORE router URLs
    path("me/", MyPartnerView.as_view(), name="partners-me"),
    path("", include(router.urls)),
]
