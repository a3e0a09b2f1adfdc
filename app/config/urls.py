"""
URL configuration for the Django application.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/ping/                     - Liveness ping
    /api/v1/auth/                  - Authentication endpoints
        register/                  - Create account, returns token
        login/                     - Username/password login, returns token
    /api/v1/users/                 - User list
        me/                        - Current user (GET/DELETE)
    /api/v1/channels/              - Channel list/create
        mine/                      - Channels created by the caller
        {id}/                      - Channel detail/delete
    /api/v1/channel-messages/      - Recent messages/post
        {id}/                      - Channel history
    /api/v1/messages/              - Direct messages list/send
    /ws/channels/                  - WebSocket sessions (config.asgi)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from authentication.urls import auth_urlpatterns, user_urlpatterns
from core.views import health_check, ping

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Accounts
    path("auth/", include((auth_urlpatterns, "auth"))),
    path("users/", include((user_urlpatterns, "users"))),
    # Channels, channel messages and direct messages
    path("", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    path("api/ping/", ping, name="ping"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Channel Chat Admin"
admin.site.site_title = "Channel Chat Admin"
admin.site.index_title = "Accounts, channels and messages"
