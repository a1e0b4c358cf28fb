# users/urls.py
"""
Mounted at /api/auth/.

register/login/me are project views; jwt/* are the stock SimpleJWT views
for clients that prefer the raw token pair endpoints.
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import LoginView, MeView, RegisterView

app_name = "users"

urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    # token required
    path("me/", MeView.as_view(), name="me"),
]
