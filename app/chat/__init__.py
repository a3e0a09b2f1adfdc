"""
Chat app for topic channels and direct messages.

This app handles:
- Channel directory (open and restricted channels)
- Append-only channel message log with per-channel sequence keys
- Direct messages between users and guests
- Real-time fan-out of new channel messages to live viewers

Related apps:
    - authentication: User model and identity resolution

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.
    See broadcaster.py for the room registry.

Usage:
    from chat.services import ChannelDirectoryService, MessageStoreService

    channel = ChannelDirectoryService.create(name="general", creator=user).data
    message = MessageStoreService.append(
        channel.id, Identity.authenticated(user.pk), "Hello!"
    ).data
"""
