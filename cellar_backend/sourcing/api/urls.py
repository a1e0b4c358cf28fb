# sourcing/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sourcing.api.views import (
    LwinSearchView,
    MyRfqDetailView,
    MyRfqsView,
    RfqViewSet,
    SelectQuoteView,
    SubmitQuotesView,
)

router = DefaultRouter()
router.register(r"rfqs", RfqViewSet, basename="rfqs")

urlpatterns = [
    # explicit routes BEFORE router URLs
    path("select-quote/", SelectQuoteView.as_view(), name="sourcing-select-quote"),
    path("lwin-search/", LwinSearchView.as_view(), name="sourcing-lwin-search"),
    path("my-rfqs/", MyRfqsView.as_view(), name="sourcing-my-rfqs"),
    path("my-rfqs/<uuid:rfq_id>/", MyRfqDetailView.as_view(), name="sourcing-my-rfq-detail"),
    path("submit-quotes/", SubmitQuotesView.as_view(), name="sourcing-submit-quotes"),
    path("", include(router.urls)),
]
