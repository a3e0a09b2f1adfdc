"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Channel management
- Channel message moderation (read-only log)
- Direct message viewing
"""

from django.contrib import admin

from chat.models import Channel, ChannelMessage, DirectMessage

CONTENT_PREVIEW_LENGTH = 50


def _preview(content: str) -> str:
    if len(content) > CONTENT_PREVIEW_LENGTH:
        return content[:CONTENT_PREVIEW_LENGTH] + "..."
    return content


@admin.register(Channel)
class ChannelAdmin(admin.ModelAdmin):
    """Admin interface for Channel model."""

    list_display = ["name", "id", "access", "creator", "created_at"]
    list_filter = ["access", "created_at"]
    search_fields = ["name", "id", "creator__username"]
    readonly_fields = ["id", "created_at", "updated_at"]
    raw_id_fields = ["creator"]
    ordering = ["name"]


@admin.register(ChannelMessage)
class ChannelMessageAdmin(admin.ModelAdmin):
    """Admin interface for ChannelMessage model. Messages are never edited."""

    list_display = [
        "sequence_key",
        "channel",
        "sender_label",
        "content_preview",
    ]
    list_filter = ["created_at"]
    search_fields = ["content", "sender_label", "channel__name"]
    readonly_fields = [
        "id",
        "channel",
        "sender",
        "sender_label",
        "content",
        "sequence_key",
        "created_at",
        "updated_at",
    ]
    ordering = ["-sequence_key"]

    def has_change_permission(self, request, obj=None):
        return False

    @admin.display(description="Content Preview")
    def content_preview(self, obj: ChannelMessage) -> str:
        return _preview(obj.content)


@admin.register(DirectMessage)
class DirectMessageAdmin(admin.ModelAdmin):
    """Admin interface for DirectMessage model."""

    list_display = [
        "sequence_key",
        "sender_key",
        "receiver",
        "content_preview",
    ]
    search_fields = ["content", "sender_key", "conversation_key"]
    readonly_fields = ["id", "conversation_key", "created_at", "updated_at"]
    raw_id_fields = ["sender", "receiver"]
    ordering = ["-sequence_key"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: DirectMessage) -> str:
        return _preview(obj.content)
