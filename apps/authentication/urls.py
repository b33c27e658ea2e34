from django.urls import path, include
from rest_framework.routers import SimpleRouter
from rest_framework_simplejwt.views import TokenRefreshView
from .views import (
    UserRegistrationView,
    UserLoginView,
    CurrentUserView,
    UserViewSet,
)

app_name = "authentication"

router = SimpleRouter()

router.register(r"users", UserViewSet, basename="user")

urlpatterns = [
    # Authentication
    path("auth/register/", UserRegistrationView.as_view(), name="register"),
    path("auth/login/", UserLoginView.as_view(), name="login"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),

    # User profile, must precede the users/{id}/ route
    path("users/me/", CurrentUserView.as_view(), name="current-user"),

    path("", include(router.urls)),
]
