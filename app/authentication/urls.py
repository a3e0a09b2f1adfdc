"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/register/    - Create account, returns token (POST)
    /api/v1/auth/login/       - Log in, returns token (POST)
    /api/v1/users/            - List users (GET)
    /api/v1/users/me/         - Current user (GET), delete own account (DELETE)

Note:
    auth_urlpatterns and user_urlpatterns are included under different
    prefixes in config/urls.py.
"""

from django.urls import path

from authentication.views import (
    CurrentUserView,
    LoginView,
    RegisterView,
    UserListView,
)

auth_urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
]

user_urlpatterns = [
    path("", UserListView.as_view(), name="user-list"),
    path("me/", CurrentUserView.as_view(), name="user-me"),
]
