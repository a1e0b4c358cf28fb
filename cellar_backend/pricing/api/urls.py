# pricing/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from pricing.api.views import (
    B2BCalculateView,
    CurrentRatesView,
    ExchangeRateViewSet,
    PCOCalculateView,
    PocketCellarCalculateView,
    PricingVariableViewSet,
)

router = DefaultRouter()
router.register(r"variables", PricingVariableViewSet, basename="pricing-variables")
router.register(r"exchange-rates", ExchangeRateViewSet, basename="pricing-exchange-rates")

urlpatterns = [
    path("calculate/pco/", PCOCalculateView.as_view(), name="pricing-calculate-pco"),
    path("calculate/b2b/", B2BCalculateView.as_view(), name="pricing-calculate-b2b"),
    path(
        "calculate/pocket-cellar/",
        PocketCellarCalculateView.as_view(),
        name="pricing-calculate-pocket-cellar",
    ),
    path("rates/", CurrentRatesView.as_view(), name="pricing-rates"),
    path("", include(router.urls)),
]
