# quotes/api/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from quotes.api.views import QuoteViewSet

router = SimpleRouter()
router.register(r"", QuoteViewSet, basename="quotes")

urlpatterns = [
    path("", include(router.urls)),
]
