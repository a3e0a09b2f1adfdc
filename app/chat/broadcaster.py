"""
In-memory room registry and fan-out.

A room is the set of live WebSocket sessions currently watching one
channel. Sessions are identified by their channel layer name
(``consumer.channel_name``); a session may be in many rooms at once.

Broadcast is fire-and-forget: each member gets the event through
``channel_layer.send()``, which only enqueues into the session's bounded
buffer. A full buffer drops the event for that session only, and a fault
delivering to one session never affects the others or the write that
triggered the broadcast.

Concurrency:
    One RoomBroadcaster per server process, owned by the chat app config
    (see ChatConfig.broadcaster). All mutations run on the event loop
    thread, one at a time, so the registry needs no locks. HTTP views
    reach it through async_to_sync, which runs broadcast() on that loop.

Related files:
    - consumers.py: Sessions join/leave rooms and receive broadcasts
    - views.py: HTTP posts broadcast after a successful append
    - routing.py: Injects the instance into the consumer, tears it down
      on ASGI lifespan shutdown
"""

from __future__ import annotations

import logging
from typing import Any

from channels.exceptions import ChannelFull
from channels.layers import DEFAULT_CHANNEL_LAYER, get_channel_layer

from chat.constants import SESSION_EVENTS

logger = logging.getLogger(__name__)


def room_key(channel_id) -> str:
    """Rooms are keyed by the channel id's canonical string form."""
    return str(channel_id)


class RoomBroadcaster:
    """
    Registry mapping channel id -> set of joined sessions.

    Attributes:
        layer_alias: Channel layer used for delivery

    Usage:
        broadcaster = RoomBroadcaster()
        broadcaster.join(consumer.channel_name, channel.id)
        delivered = await broadcaster.broadcast(channel.id, event)
    """

    def __init__(self, channel_layer=None, layer_alias: str = DEFAULT_CHANNEL_LAYER):
        self.layer_alias = layer_alias
        self._channel_layer = channel_layer
        self._rooms: dict[str, set[str]] = {}
        self._memberships: dict[str, set[str]] = {}
        self._closed = False

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer(self.layer_alias)
        return self._channel_layer

    @property
    def closed(self) -> bool:
        return self._closed

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def join(self, session: str, channel_id) -> bool:
        """
        Add a session to a room. Idempotent.

        Returns:
            True if the session was not already a member
        """
        if self._closed:
            logger.warning(f"Join of {session} after broadcaster shutdown ignored")
            return False
        key = room_key(channel_id)
        members = self._rooms.setdefault(key, set())
        if session in members:
            return False
        members.add(session)
        self._memberships.setdefault(session, set()).add(key)
        logger.debug(f"Session {session} joined room {key} ({len(members)} members)")
        return True

    def leave(self, session: str, channel_id) -> bool:
        """
        Remove a session from a room. Idempotent; empty rooms are dropped.

        Returns:
            True if the session was a member
        """
        key = room_key(channel_id)
        members = self._rooms.get(key)
        if not members or session not in members:
            return False
        members.discard(session)
        if not members:
            del self._rooms[key]

        rooms = self._memberships.get(session)
        if rooms is not None:
            rooms.discard(key)
            if not rooms:
                del self._memberships[session]
        logger.debug(f"Session {session} left room {key}")
        return True

    def session_terminated(self, session: str) -> set[str]:
        """
        Remove a session from every room it joined.

        Safe for sessions that never joined anything.

        Returns:
            Keys of the rooms the session was removed from
        """
        rooms = self._memberships.pop(session, set())
        for key in rooms:
            members = self._rooms.get(key)
            if members is None:
                continue
            members.discard(session)
            if not members:
                del self._rooms[key]
        if rooms:
            logger.debug(f"Session {session} terminated, removed from {len(rooms)} rooms")
        return rooms

    def members(self, channel_id) -> frozenset[str]:
        return frozenset(self._rooms.get(room_key(channel_id), ()))

    def rooms_for(self, session: str) -> frozenset[str]:
        return frozenset(self._memberships.get(session, ()))

    def room_count(self) -> int:
        return len(self._rooms)

    # -------------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------------

    async def broadcast(self, channel_id, event: dict[str, Any]) -> int:
        """
        Deliver an event to every session currently in the room.

        Membership is read once, at call time. Each session receives the
        events of a room in the order broadcast() was called.

        Args:
            channel_id: Room to deliver to
            event: JSON-serializable frame sent to each client as-is

        Returns:
            Number of sessions the event was handed to
        """
        if self._closed:
            return 0
        key = room_key(channel_id)
        members = list(self._rooms.get(key, ()))
        if not members:
            return 0

        layer = self.channel_layer
        message = {
            "type": SESSION_EVENTS.LAYER_MESSAGE,
            "channel_id": key,
            "event": event,
        }

        delivered = 0
        for session in members:
            try:
                await layer.send(session, message)
            except ChannelFull:
                logger.warning(f"Buffer full for session {session}, dropped event for room {key}")
                continue
            except Exception as e:
                logger.error(
                    f"Failed to deliver event for room {key} to session {session}: {e}",
                    exc_info=True,
                )
                continue
            delivered += 1

        logger.debug(f"Broadcast to room {key}: {delivered}/{len(members)} sessions")
        return delivered

    def close(self) -> None:
        """Forget every room and refuse further joins and broadcasts."""
        if self._closed:
            return
        logger.info(
            f"Room broadcaster shutting down ({len(self._rooms)} rooms, "
            f"{len(self._memberships)} sessions)"
        )
        self._rooms.clear()
        self._memberships.clear()
        self._closed = True


def message_event(message: dict[str, Any]) -> dict[str, Any]:
    """Client frame announcing a newly stored channel message."""
    key = room_key(message["channel_id"])
    return {"type": SESSION_EVENTS.MESSAGE, "channel_id": key, "message": message}
