"""
Chat application configuration.

This app provides the chat system with:
- Open and restricted channels
- Append-only channel message history
- Direct messages
- Live fan-out of new channel messages over WebSockets

The app config owns the process-wide RoomBroadcaster; the WebSocket
consumer gets it injected at routing time and HTTP views look it up
with get_broadcaster().
"""

from django.apps import AppConfig, apps


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    def ready(self):
        from chat.broadcaster import RoomBroadcaster

        self.broadcaster = RoomBroadcaster()


def get_broadcaster():
    """Return the RoomBroadcaster of this server process."""
    return apps.get_app_config("chat").broadcaster
