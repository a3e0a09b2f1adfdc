# Generated manually - Channels, channel messages and direct messages

import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Channel",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        help_text="Display name of the channel",
                        max_length=100,
                        validators=[django.core.validators.MinLengthValidator(1)],
                    ),
                ),
                (
                    "description",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Optional description",
                        max_length=300,
                    ),
                ),
                (
                    "access",
                    models.CharField(
                        choices=[("open", "Open"), ("restricted", "Restricted")],
                        default="open",
                        help_text="Access mode (open or restricted)",
                        max_length=10,
                    ),
                ),
                (
                    "creator",
                    models.ForeignKey(
                        help_text="User who created this channel",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_channels",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_channel",
                "ordering": ["name", "id"],
                "indexes": [
                    models.Index(
                        fields=["creator", "name"], name="chat_channel_creator_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ChannelMessage",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "sender_label",
                    models.CharField(
                        help_text="User id, GUEST#<guest id>, or the anonymous label",
                        max_length=80,
                    ),
                ),
                (
                    "content",
                    models.TextField(help_text="Message text", max_length=5000),
                ),
                (
                    "sequence_key",
                    models.CharField(
                        help_text="UTC timestamp with microseconds; orders messages within a channel",
                        max_length=27,
                    ),
                ),
                (
                    "channel",
                    models.ForeignKey(
                        help_text="Channel this message was posted to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.channel",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        blank=True,
                        help_text="Authenticated sender (null for guests and anonymous posts)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="channel_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_channel_message",
                "ordering": ["sequence_key", "id"],
                "indexes": [
                    models.Index(fields=["-sequence_key"], name="chat_chmsg_recent_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("channel", "sequence_key"),
                        name="chat_channel_message_seq_uniq",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DirectMessage",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "conversation_key",
                    models.CharField(
                        db_index=True,
                        help_text="Sorted participant keys joined with '#'",
                        max_length=200,
                    ),
                ),
                (
                    "sender_key",
                    models.CharField(
                        help_text="User id, or GUEST#<guest id>", max_length=80
                    ),
                ),
                (
                    "content",
                    models.TextField(help_text="Message text", max_length=500),
                ),
                (
                    "sequence_key",
                    models.CharField(
                        help_text="UTC timestamp with microseconds; orders the conversation",
                        max_length=27,
                    ),
                ),
                (
                    "receiver",
                    models.ForeignKey(
                        help_text="Receiving user",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="received_direct_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        blank=True,
                        help_text="Authenticated sender (null for guests)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sent_direct_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_direct_message",
                "ordering": ["sequence_key", "id"],
                "indexes": [
                    models.Index(
                        fields=["sender_key", "-sequence_key"], name="chat_dm_sender_idx"
                    ),
                    models.Index(
                        fields=["receiver", "-sequence_key"], name="chat_dm_receiver_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("conversation_key", "sequence_key"),
                        name="chat_direct_message_seq_uniq",
                    ),
                ],
            },
        ),
    ]
