"""
URL configuration for chat API.

URL Structure:
    Channels:
        /channels/                 GET, POST
        /channels/mine/            GET
        /channels/{id}/            GET, DELETE

    Channel messages:
        /channel-messages/         GET, POST
        /channel-messages/{id}/    GET (history of channel {id})

    Direct messages:
        /messages/                 GET, POST

All URLs are prefixed with /api/v1/ in the main URL configuration.
The WebSocket route lives in routing.py.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import ChannelMessageViewSet, ChannelViewSet, DirectMessageViewSet

router = DefaultRouter(trailing_slash=True)
router.include_root_view = False
router.register(r"channels", ChannelViewSet, basename="channel")
router.register(r"channel-messages", ChannelMessageViewSet, basename="channel-message")
router.register(r"messages", DirectMessageViewSet, basename="direct-message")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
]
