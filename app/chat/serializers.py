"""
Serializers for chat models.

This module provides DRF serializers for:
- Channel (read) and channel creation input
- ChannelMessage (read) and posting input
- DirectMessage (read) and sending input

Output serializers render every id as a string so the same data can be
sent over WebSockets with send_json().

Related files:
    - models.py: Channel, ChannelMessage, DirectMessage
    - views.py: HTTP views
    - consumers.py: WebSocket frames carry ChannelMessageSerializer data
"""

from rest_framework import serializers

from chat.constants import CHANNEL_CONFIG, DIRECT_MESSAGE_CONFIG, MESSAGE_CONFIG
from chat.models import Channel, ChannelAccess, ChannelMessage, DirectMessage


class ChannelSerializer(serializers.ModelSerializer):
    """Channel metadata."""

    id = serializers.CharField(read_only=True)
    creator_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Channel
        fields = ["id", "name", "description", "access", "creator_id", "created_at"]
        read_only_fields = fields


class ChannelCreateSerializer(serializers.Serializer):
    """Input for POST /channels/. Access defaults to open."""

    name = serializers.CharField(
        min_length=CHANNEL_CONFIG.NAME_MIN_LENGTH,
        max_length=CHANNEL_CONFIG.NAME_MAX_LENGTH,
    )
    description = serializers.CharField(
        max_length=CHANNEL_CONFIG.DESCRIPTION_MAX_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )
    access = serializers.ChoiceField(
        choices=ChannelAccess.choices,
        required=False,
        default=ChannelAccess.OPEN,
    )


class ChannelMessageSerializer(serializers.ModelSerializer):
    """
    A channel message as shown to clients.

    "sender" is the stored sender label: the user id, GUEST#<id>, or the
    anonymous label.
    """

    id = serializers.CharField(read_only=True)
    channel_id = serializers.UUIDField(read_only=True)
    sender_id = serializers.UUIDField(read_only=True)
    sender = serializers.CharField(source="sender_label", read_only=True)

    class Meta:
        model = ChannelMessage
        fields = [
            "id",
            "channel_id",
            "sender_id",
            "sender",
            "content",
            "sequence_key",
            "created_at",
        ]
        read_only_fields = fields


class ChannelMessageCreateSerializer(serializers.Serializer):
    """
    Input for POST /channel-messages/.

    Content bounds are checked by MessageStoreService; the serializer
    only checks the shape of the request.
    """

    channel_id = serializers.CharField()
    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        trim_whitespace=False,
    )
    guest_id = serializers.CharField(required=False, allow_blank=True)


class ChannelHistorySerializer(serializers.Serializer):
    """Response of GET /channel-messages/{id}/."""

    channel = ChannelSerializer()
    messages = ChannelMessageSerializer(many=True)


class DirectMessageSerializer(serializers.ModelSerializer):
    """A direct message as shown to clients."""

    id = serializers.CharField(read_only=True)
    sender_id = serializers.UUIDField(read_only=True)
    receiver_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = DirectMessage
        fields = [
            "id",
            "conversation_key",
            "sender_id",
            "sender_key",
            "receiver_id",
            "content",
            "sequence_key",
            "created_at",
        ]
        read_only_fields = fields


class DirectMessageCreateSerializer(serializers.Serializer):
    """Input for POST /messages/."""

    receiver_id = serializers.CharField()
    content = serializers.CharField(
        max_length=DIRECT_MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        trim_whitespace=False,
    )
    guest_id = serializers.CharField(required=False, allow_blank=True)


class RecentQuerySerializer(serializers.Serializer):
    """Query parameters of the listing endpoints."""

    limit = serializers.IntegerField(
        min_value=1,
        max_value=MESSAGE_CONFIG.RECENT_MAX_LIMIT,
        required=False,
    )
    peer = serializers.CharField(required=False, allow_blank=True)
    guest_id = serializers.CharField(required=False, allow_blank=True)
