"""
Chat system models.

This module defines the data models for channels and messaging:
- Channels: named topic streams, open or restricted
- Channel messages: append-only log per channel
- Direct messages: append-only log per participant pair

Models:
    Channel: Channel metadata (name, access mode, creator)
    ChannelMessage: Message posted to a channel
    DirectMessage: Message between two participants

Design Decisions:
    - Channels are immutable except for deletion; only the creator deletes
    - Deleting a channel cascades to its messages
    - Messages are never edited or deleted individually
    - Message order is the sequence key: a fixed-width UTC timestamp,
      unique per channel (or per conversation), assigned by the store
"""

from __future__ import annotations

from django.conf import settings
from django.core.validators import MinLengthValidator
from django.db import models

from chat.constants import (
    CHANNEL_CONFIG,
    DIRECT_MESSAGE_CONFIG,
    MESSAGE_CONFIG,
    SEQUENCE_KEY_CONFIG,
)
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ChannelAccess(models.TextChoices):
    """
    Who may read and post in a channel.

    OPEN: Anyone, including guests and anonymous viewers
    RESTRICTED: Authenticated users only
    """

    OPEN = "open", "Open"
    RESTRICTED = "restricted", "Restricted"


class Channel(UUIDPrimaryKeyMixin, BaseModel):
    """
    A named topic stream of messages.

    Fields:
        name: Display name (1-100 chars, not unique)
        description: Optional description (up to 300 chars)
        access: Access mode (open or restricted)
        creator: User who created the channel; only they may delete it

    Relationships:
        messages: ChannelMessage records (deleted with the channel)
    """

    name = models.CharField(
        max_length=CHANNEL_CONFIG.NAME_MAX_LENGTH,
        validators=[MinLengthValidator(CHANNEL_CONFIG.NAME_MIN_LENGTH)],
        help_text="Display name of the channel",
    )

    description = models.CharField(
        max_length=CHANNEL_CONFIG.DESCRIPTION_MAX_LENGTH,
        blank=True,
        default="",
        help_text="Optional description",
    )

    access = models.CharField(
        max_length=10,
        choices=ChannelAccess.choices,
        default=ChannelAccess.OPEN,
        help_text="Access mode (open or restricted)",
    )

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="created_channels",
        help_text="User who created this channel",
    )

    class Meta:
        db_table = "chat_channel"
        ordering = ["name", "id"]
        indexes = [
            models.Index(fields=["creator", "name"], name="chat_channel_creator_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.access})"

    @property
    def is_restricted(self) -> bool:
        return self.access == ChannelAccess.RESTRICTED


class ChannelMessage(UUIDPrimaryKeyMixin, BaseModel):
    """
    A message posted to a channel.

    Fields:
        channel: Channel this message belongs to
        sender: Authenticated sender (null for guest and anonymous posts)
        sender_label: Stored sender key: user id, GUEST#<id>, or the
            anonymous label
        content: Message text (1-5000 chars)
        sequence_key: Fixed-width UTC timestamp, unique within the channel
    """

    channel = models.ForeignKey(
        Channel,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Channel this message was posted to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="channel_messages",
        help_text="Authenticated sender (null for guests and anonymous posts)",
    )

    sender_label = models.CharField(
        max_length=MESSAGE_CONFIG.SENDER_LABEL_MAX_LENGTH,
        help_text="User id, GUEST#<guest id>, or the anonymous label",
    )

    content = models.TextField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        help_text="Message text",
    )

    sequence_key = models.CharField(
        max_length=SEQUENCE_KEY_CONFIG.LENGTH,
        help_text="UTC timestamp with microseconds; orders messages within a channel",
    )

    class Meta:
        db_table = "chat_channel_message"
        ordering = ["sequence_key", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["channel", "sequence_key"],
                name="chat_channel_message_seq_uniq",
            ),
        ]
        indexes = [
            models.Index(fields=["-sequence_key"], name="chat_chmsg_recent_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.sender_label} @ {self.sequence_key}"


class DirectMessage(UUIDPrimaryKeyMixin, BaseModel):
    """
    A message between two participants.

    The conversation key is the two participant keys sorted and joined
    with "#", so both directions of a conversation share one key.

    Fields:
        conversation_key: Sorted participant keys joined with "#"
        sender: Authenticated sender (null for guests)
        sender_key: User id, or GUEST#<guest id>
        receiver: Receiving user
        content: Message text (1-500 chars)
        sequence_key: Fixed-width UTC timestamp, unique within the conversation
    """

    conversation_key = models.CharField(
        max_length=200,
        db_index=True,
        help_text="Sorted participant keys joined with '#'",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_direct_messages",
        help_text="Authenticated sender (null for guests)",
    )

    sender_key = models.CharField(
        max_length=MESSAGE_CONFIG.SENDER_LABEL_MAX_LENGTH,
        help_text="User id, or GUEST#<guest id>",
    )

    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_direct_messages",
        help_text="Receiving user",
    )

    content = models.TextField(
        max_length=DIRECT_MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        help_text="Message text",
    )

    sequence_key = models.CharField(
        max_length=SEQUENCE_KEY_CONFIG.LENGTH,
        help_text="UTC timestamp with microseconds; orders the conversation",
    )

    class Meta:
        db_table = "chat_direct_message"
        ordering = ["sequence_key", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation_key", "sequence_key"],
                name="chat_direct_message_seq_uniq",
            ),
        ]
        indexes = [
            models.Index(
                fields=["sender_key", "-sequence_key"], name="chat_dm_sender_idx"
            ),
            models.Index(
                fields=["receiver", "-sequence_key"], name="chat_dm_receiver_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.sender_key} -> {self.receiver_id} @ {self.sequence_key}"
