"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Channel metadata limits
- Channel and direct message content limits
- Sequence key format
- WebSocket session event names and close codes

Import example:
    from chat.constants import MESSAGE_CONFIG, SESSION_EVENTS
"""

from typing import Final


# =============================================================================
# Channel Configuration
# =============================================================================


class CHANNEL_CONFIG:
    """Configuration for channel metadata."""

    NAME_MIN_LENGTH: Final[int] = 1
    NAME_MAX_LENGTH: Final[int] = 100
    DESCRIPTION_MAX_LENGTH: Final[int] = 300


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for channel message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 5000  # Characters
    MIN_CONTENT_LENGTH: Final[int] = 1

    # Cross-channel recent listing (admin/debug view, unpaginated)
    RECENT_DEFAULT_LIMIT: Final[int] = 100
    RECENT_MAX_LIMIT: Final[int] = 500

    # Length of a stored sender label (user id, GUEST#<id>, anonymous label)
    SENDER_LABEL_MAX_LENGTH: Final[int] = 80


class DIRECT_MESSAGE_CONFIG:
    """Configuration for direct messages."""

    MAX_CONTENT_LENGTH: Final[int] = 500
    MIN_CONTENT_LENGTH: Final[int] = 1

    # Separator between the two sorted participant keys
    CONVERSATION_KEY_SEPARATOR: Final[str] = "#"


# =============================================================================
# Sequence Key Configuration
# =============================================================================


class SEQUENCE_KEY_CONFIG:
    """
    Sequence keys are fixed-width UTC timestamps with microseconds,
    so lexicographic order equals chronological order.

    Example: 2024-05-01T12:00:00.000123Z
    """

    FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S.%fZ"
    LENGTH: Final[int] = 27


# =============================================================================
# WebSocket Session Configuration
# =============================================================================


class SESSION_EVENTS:
    """Event type names carried in the "type" field of session frames."""

    # Client -> server
    JOIN: Final[str] = "channel:join"
    LEAVE: Final[str] = "channel:leave"
    PING: Final[str] = "ping"

    # Both directions
    MESSAGE: Final[str] = "channel:message"

    # Server -> client
    JOINED: Final[str] = "channel:joined"
    LEFT: Final[str] = "channel:left"
    PONG: Final[str] = "pong"
    ERROR: Final[str] = "error"

    # Channel layer handler type for room broadcasts
    LAYER_MESSAGE: Final[str] = "channel.message"
