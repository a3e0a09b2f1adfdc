"""
WebSocket URL routing for the chat application.

This module defines the URL patterns for WebSocket connections and the
ASGI lifespan handler that tears the room registry down on shutdown.

URL Patterns:
    ws/channels/ - One viewer session; rooms are joined with frames

Authentication:
    JWT token passed as query parameter (?token=<jwt_access_token>) or as
    the "jwt, <token>" subprotocol. IdentityMiddleware resolves it into
    the consumer's scope.
"""

from __future__ import annotations

import logging

from channels.routing import URLRouter
from django.urls import path

from chat.consumers import ChannelSessionConsumer
from chat.middleware import IdentityMiddleware

logger = logging.getLogger(__name__)


def build_websocket_urlpatterns(broadcaster):
    """URL patterns with the given RoomBroadcaster injected into the consumer."""
    return [
        path(
            "ws/channels/",
            ChannelSessionConsumer.as_asgi(broadcaster=broadcaster),
        ),
    ]


def build_websocket_application(broadcaster):
    """WebSocket ASGI app: identity resolution, then URL routing."""
    return IdentityMiddleware(URLRouter(build_websocket_urlpatterns(broadcaster)))


class BroadcasterLifespan:
    """
    ASGI lifespan handler for the room registry.

    Startup is a no-op (the registry is built with the app registry);
    shutdown closes the broadcaster so no further joins or broadcasts
    happen while connections drain.
    """

    def __init__(self, broadcaster):
        self.broadcaster = broadcaster

    async def __call__(self, scope, receive, send):
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                self.broadcaster.close()
                await send({"type": "lifespan.shutdown.complete"})
                return
