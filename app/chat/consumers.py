"""
WebSocket consumers for the chat application.

This module implements the channel session protocol: one consumer
instance per WebSocket connection (a viewer session), joining and leaving
channel rooms, posting messages and receiving live broadcasts.

Consumers:
    ChannelSessionConsumer: Handles WebSocket connections at ws/channels/

Identity:
    Resolved by IdentityMiddleware into self.scope["identity"]. Connections
    are always accepted; access is checked per channel.

Per-channel state:
    connected --join--> joined --leave--> connected
    Disconnecting clears every joined channel. A reconnect is a fresh
    session that must join again.

Message Types (from client):
    - channel:join     {"channel_id"}             -> channel:joined
    - channel:leave    {"channel_id"}             -> channel:left
    - channel:message  {"channel_id", "content"}  -> broadcast to the room
    - ping                                        -> pong

Message Types (to client):
    - channel:message  {"channel_id", "message"}
    - channel:joined / channel:left  {"channel_id"}
    - pong
    - error            {"error_code", "message", ...}
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from authentication.identity import Identity
from chat.broadcaster import message_event, room_key
from chat.constants import SESSION_EVENTS
from chat.middleware import JWT_SUBPROTOCOL
from chat.serializers import ChannelMessageSerializer
from chat.services import MessageStoreService, parse_id
from core.exceptions import UNAVAILABLE, VALIDATION_FAILED

logger = logging.getLogger(__name__)


@database_sync_to_async
def open_channel(channel_id, identity: Identity):
    return MessageStoreService.open_channel(channel_id, identity)


@database_sync_to_async
def append_message(channel_id, identity: Identity, content):
    """Append and serialize in one thread hop; returns a ServiceResult of dict."""
    result = MessageStoreService.append(channel_id, identity, content)
    return result.map(lambda message: ChannelMessageSerializer(message).data)


class ChannelSessionConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer running the channel session protocol.

    Handles:
        - Joining/leaving channel rooms (via the injected RoomBroadcaster)
        - Posting messages (durable append, then broadcast)
        - Delivering room broadcasts to the client
        - Clean removal from every room on disconnect

    Attributes:
        broadcaster: RoomBroadcaster of this process (injected via as_asgi)
        joined: Room keys this session has joined
    """

    broadcaster = None

    def __init__(self, *args, **kwargs):
        broadcaster = kwargs.pop("broadcaster", None)
        super().__init__(*args, **kwargs)
        if broadcaster is not None:
            self.broadcaster = broadcaster
        self.joined: set[str] = set()

    @property
    def identity(self) -> Identity:
        return self.scope.get("identity") or Identity.anonymous()

    async def connect(self):
        """Accept the connection, echoing the jwt subprotocol when used."""
        if self.broadcaster is None:
            from chat.apps import get_broadcaster

            self.broadcaster = get_broadcaster()

        subprotocols = self.scope.get("subprotocols") or []
        subprotocol = JWT_SUBPROTOCOL if subprotocols[:1] == [JWT_SUBPROTOCOL] else None
        await self.accept(subprotocol=subprotocol)

        identity = self.identity
        logger.info(
            f"Session {self.channel_name} connected as {identity.kind.value}"
            f"{' ' + identity.user_id if identity.user_id else ''}"
        )

    async def disconnect(self, close_code):
        """Remove the session from every room it joined."""
        if self.broadcaster is not None:
            self.broadcaster.session_terminated(self.channel_name)
        self.joined.clear()
        logger.info(f"Session {self.channel_name} disconnected (code {close_code})")

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        """Decode JSON frames; malformed frames get an error, not a disconnect."""
        if text_data is None:
            await self._send_error(VALIDATION_FAILED, "Frames must be JSON text")
            return
        try:
            content = await self.decode_json(text_data)
        except ValueError:
            await self._send_error(VALIDATION_FAILED, "Malformed JSON")
            return
        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        """
        Dispatch an incoming frame by its "type".

        Expected message format:
            {"type": "channel:join", "channel_id": "<uuid>"}
            {"type": "channel:message", "channel_id": "<uuid>", "content": "Hello!"}
        """
        if not isinstance(content, dict):
            await self._send_error(VALIDATION_FAILED, "Frames must be JSON objects")
            return

        message_type = content.get("type")
        handlers = {
            SESSION_EVENTS.JOIN: self._handle_join,
            SESSION_EVENTS.LEAVE: self._handle_leave,
            SESSION_EVENTS.MESSAGE: self._handle_message,
            SESSION_EVENTS.PING: self._handle_ping,
        }
        handler = handlers.get(message_type)
        if handler is None:
            await self._send_error(
                VALIDATION_FAILED, f"Unknown message type: {message_type}"
            )
            return

        try:
            await handler(content)
        except Exception:
            logger.exception(
                f"Unexpected error handling {message_type} for session {self.channel_name}"
            )
            await self._send_error(
                UNAVAILABLE,
                "Temporary connectivity fault, please retry",
                channel_id=content.get("channel_id"),
            )

    # -------------------------------------------------------------------------
    # Client events
    # -------------------------------------------------------------------------

    async def _handle_join(self, content):
        """Check the channel is readable by this identity, then join its room."""
        channel_id = content.get("channel_id")
        result = await open_channel(channel_id, self.identity)
        if not result.success:
            await self._send_failure(result, channel_id)
            return

        key = room_key(result.data.pk)
        self.joined.add(key)
        self.broadcaster.join(self.channel_name, key)
        await self.send_json({"type": SESSION_EVENTS.JOINED, "channel_id": key})

    async def _handle_leave(self, content):
        """Leave a room. Idempotent."""
        channel_id = content.get("channel_id")
        pk = parse_id(channel_id)
        key = room_key(pk) if pk is not None else str(channel_id)
        self.joined.discard(key)
        self.broadcaster.leave(self.channel_name, key)
        await self.send_json({"type": SESSION_EVENTS.LEFT, "channel_id": key})

    async def _handle_message(self, content):
        """
        Post a message: durable append, then broadcast to the room.

        Posting does not require a prior join. A failed append is reported
        to this session only and nothing is broadcast.
        """
        channel_id = content.get("channel_id")
        result = await append_message(channel_id, self.identity, content.get("content"))
        if not result.success:
            await self._send_failure(result, channel_id)
            return

        event = message_event(result.data)
        await self.broadcaster.broadcast(event["channel_id"], event)

    async def _handle_ping(self, content):
        await self.send_json({"type": SESSION_EVENTS.PONG})

    # -------------------------------------------------------------------------
    # Channel layer events
    # -------------------------------------------------------------------------

    async def channel_message(self, event):
        """
        Handle channel.message events from the broadcaster.

        Events for rooms this session has since left are dropped.
        """
        if event["channel_id"] not in self.joined:
            return
        await self.send_json(event["event"])

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _send_failure(self, result, channel_id=None):
        await self._send_error(
            result.error_code,
            result.error,
            channel_id=channel_id,
            errors=result.errors,
        )

    async def _send_error(self, error_code, message, channel_id=None, errors=None):
        frame = {
            "type": SESSION_EVENTS.ERROR,
            "error_code": error_code,
            "message": message,
        }
        if channel_id is not None:
            frame["channel_id"] = str(channel_id)
        if errors:
            frame["errors"] = errors
        await self.send_json(frame)
