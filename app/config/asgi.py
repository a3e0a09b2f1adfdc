"""
ASGI config for the Django application.

This file exposes the ASGI callable as a module-level variable named
`application`.

This configuration supports:
- HTTP requests via Django
- WebSocket connections via Django Channels (same process and port)
- ASGI lifespan events (room registry teardown on shutdown)

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

# Set the default Django settings module for the ASGI application
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Initialize Django ASGI application early to ensure settings are loaded
# before importing any models or other Django components
django_asgi_app = get_asgi_application()

# Import Channels components after Django is initialized
from channels.routing import ProtocolTypeRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.apps import get_broadcaster  # noqa: E402
from chat.routing import BroadcasterLifespan, build_websocket_application  # noqa: E402

# One room registry per server process
broadcaster = get_broadcaster()

# ASGI application that routes HTTP, WebSocket and lifespan protocols
application = ProtocolTypeRouter(
    {
        # HTTP requests are handled by Django's ASGI application
        "http": django_asgi_app,
        # WebSocket connections are routed through:
        # 1. AllowedHostsOriginValidator - ensures origin matches ALLOWED_HOSTS
        # 2. IdentityMiddleware - resolves the session identity from the token
        # 3. URLRouter - routes to the channel session consumer
        "websocket": AllowedHostsOriginValidator(
            build_websocket_application(broadcaster)
        ),
        "lifespan": BroadcasterLifespan(broadcaster),
    }
)
