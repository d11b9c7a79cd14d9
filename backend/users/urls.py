"""
URL configuration for user authentication and management.

JWT access/refresh tokens are issued by djangorestframework-simplejwt.
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import LoginView, LogoutView, MeView, RegisterView

app_name = "users"

# URL patterns for user authentication and management
urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    # Username or email + password -> access/refresh pair
    path("login/", LoginView.as_view(), name="login"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Blacklists the refresh token
    path("logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),
]
