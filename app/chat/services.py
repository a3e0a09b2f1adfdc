"""
Chat system service layer.

This module provides the business logic for channels and messages. The
same calls back the HTTP views and the WebSocket session consumer.

Services:
    ChannelDirectoryService: Channel metadata (create, get, delete, list)
    MessageStoreService: Channel message log (append, history, recent)
    DirectMessageService: Direct messages between two participants

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with an error code
      from core.exceptions
    - Store faults are logged and reported as UNAVAILABLE, never retried
      here (retry policy belongs to the client)
    - Validation and access checks run before any write
    - Services never broadcast; callers broadcast after a successful append

Access policy:
    The directory stores access modes but does not enforce them. The
    message store does: restricted channels require an authenticated
    identity whose account still exists, for history and for posting.
    Guest identities are never trusted for access control.

Usage:
    from chat.services import ChannelDirectoryService, MessageStoreService

    result = MessageStoreService.append(channel_id, identity, "hello")
    if result.success:
        message = result.data
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError, IntegrityError
from django.db.models import Q

from authentication.identity import GUEST_KEY_PREFIX, Identity
from authentication.models import User
from chat.constants import (
    CHANNEL_CONFIG,
    DIRECT_MESSAGE_CONFIG,
    MESSAGE_CONFIG,
)
from chat.models import Channel, ChannelAccess, ChannelMessage, DirectMessage
from chat.sequence import next_sequence_key
from core.exceptions import (
    CONFLICT,
    FORBIDDEN,
    NOT_FOUND,
    TOKEN_EXPIRED,
    UNAUTHENTICATED,
    VALIDATION_FAILED,
)
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

# Appends that lose a sequence-key race are retried this many times
APPEND_ATTEMPTS = 3


def parse_id(value) -> uuid.UUID | None:
    """Return the UUID for an id given as UUID or string, None if malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _sorted_channels(channels: Iterable[Channel]) -> list[Channel]:
    # Case-sensitive code point order, independent of database collation
    return sorted(channels, key=lambda c: (c.name, str(c.id)))


def _content_errors(content, max_length: int) -> dict[str, list[str]] | None:
    if not isinstance(content, str) or not content.strip():
        return {"content": ["Message content cannot be empty."]}
    if len(content) > max_length:
        return {"content": [f"Ensure this field has no more than {max_length} characters."]}
    return None


def _unauthenticated(identity: Identity, message: str) -> ServiceResult:
    if identity.credential_expired:
        return ServiceResult.failure("Your session has expired", error_code=TOKEN_EXPIRED)
    return ServiceResult.failure(message, error_code=UNAUTHENTICATED)


class ChannelDirectoryService(BaseService):
    """
    Durable channel metadata.

    The directory is a pure metadata store: it does not enforce access
    modes. Only the creator may delete a channel.
    """

    @classmethod
    def create(
        cls,
        name: str,
        creator: User,
        access: str = ChannelAccess.OPEN,
        description: str = "",
    ) -> ServiceResult[Channel]:
        """
        Create a channel with a freshly generated id.

        The insert is conditional (never an upsert): if the generated id
        already exists the create fails with CONFLICT.

        Error codes:
            VALIDATION_FAILED: Name, description or access out of bounds
            CONFLICT: Generated id already taken
            UNAVAILABLE: Store fault
        """
        name = name.strip() if isinstance(name, str) else ""
        description = description or ""
        errors = {}
        if not (CHANNEL_CONFIG.NAME_MIN_LENGTH <= len(name) <= CHANNEL_CONFIG.NAME_MAX_LENGTH):
            errors["name"] = [
                f"Name must be {CHANNEL_CONFIG.NAME_MIN_LENGTH}-"
                f"{CHANNEL_CONFIG.NAME_MAX_LENGTH} characters."
            ]
        if len(description) > CHANNEL_CONFIG.DESCRIPTION_MAX_LENGTH:
            errors["description"] = [
                f"Ensure this field has no more than "
                f"{CHANNEL_CONFIG.DESCRIPTION_MAX_LENGTH} characters."
            ]
        if access not in ChannelAccess.values:
            errors["access"] = [f"Access must be one of: {', '.join(ChannelAccess.values)}."]
        if errors:
            return ServiceResult.failure(
                "Validation failed", error_code=VALIDATION_FAILED, errors=errors
            )

        try:
            with cls.atomic():
                # QuerySet.create() forces an INSERT
                channel = Channel.objects.create(
                    id=uuid.uuid4(),
                    name=name,
                    description=description,
                    access=access,
                    creator=creator,
                )
        except IntegrityError:
            cls.get_logger().warning(f"Channel id collision for '{name}'")
            return ServiceResult.failure("Channel already exists", error_code=CONFLICT)
        except DatabaseError as e:
            return cls.handle_exception(e, "creating channel")

        cls.get_logger().info(
            f"User {creator.id} created {channel.access} channel {channel.id}"
        )
        return ServiceResult.success(channel)

    @classmethod
    def get(cls, channel_id) -> ServiceResult[Channel]:
        """Look up a channel; NOT_FOUND if absent or the id is malformed."""
        pk = parse_id(channel_id)
        if pk is None:
            return ServiceResult.failure("Channel not found", error_code=NOT_FOUND)
        try:
            channel = Channel.objects.filter(pk=pk).first()
        except DatabaseError as e:
            return cls.handle_exception(e, "loading channel")
        if channel is None:
            return ServiceResult.failure("Channel not found", error_code=NOT_FOUND)
        return ServiceResult.success(channel)

    @classmethod
    def delete(cls, channel_id, requester: User) -> ServiceResult[None]:
        """
        Delete a channel (and, by cascade, its messages).

        The delete is conditional on the row still existing, so of two
        racing deletes by the creator exactly one succeeds and the other
        reports NOT_FOUND.

        Error codes:
            NOT_FOUND: Channel absent (including already deleted)
            FORBIDDEN: Requester is not the creator
            UNAVAILABLE: Store fault
        """
        result = cls.get(channel_id)
        if not result.success:
            return result
        channel = result.data

        if channel.creator_id is None or channel.creator_id != requester.pk:
            return ServiceResult.failure(
                "Only the creator can delete a channel", error_code=FORBIDDEN
            )

        try:
            deleted = Channel.objects.filter(pk=channel.pk, creator=requester).delete()[0]
        except DatabaseError as e:
            return cls.handle_exception(e, "deleting channel")

        if not deleted:
            return ServiceResult.failure("Channel not found", error_code=NOT_FOUND)

        cls.get_logger().info(f"User {requester.id} deleted channel {channel.pk}")
        return ServiceResult.success(None)

    @classmethod
    def list_all(cls) -> ServiceResult[list[Channel]]:
        """All channels ordered by name (case-sensitive), then id."""
        try:
            return ServiceResult.success(_sorted_channels(Channel.objects.all()))
        except DatabaseError as e:
            return cls.handle_exception(e, "listing channels")

    @classmethod
    def list_by_creator(cls, creator: User) -> ServiceResult[list[Channel]]:
        """Channels created by a user, same ordering as list_all."""
        try:
            return ServiceResult.success(
                _sorted_channels(Channel.objects.filter(creator=creator))
            )
        except DatabaseError as e:
            return cls.handle_exception(e, "listing channels by creator")


class MessageStoreService(BaseService):
    """
    Append-only channel message log.

    Sequence keys are assigned here: the current UTC time, bumped one
    microsecond past the channel's last key when needed, so keys within
    a channel are strictly increasing in write order. Appends to one
    channel are serialized on the channel row.
    """

    @classmethod
    def check_access(cls, channel: Channel, identity: Identity) -> ServiceResult | None:
        """
        Return a failure if the identity may not read or post in the channel.

        Restricted channels require an authenticated identity whose user
        still exists. Returns None when access is granted.
        """
        if not channel.is_restricted:
            return None
        if not identity.is_authenticated:
            return _unauthenticated(identity, "This channel requires authentication")
        found = cls._live_user(identity)
        if not found.success:
            return found
        return None

    @classmethod
    def open_channel(cls, channel_id, identity: Identity) -> ServiceResult[Channel]:
        """Load a channel and check the identity may read it."""
        result = ChannelDirectoryService.get(channel_id)
        if not result.success:
            return result
        denied = cls.check_access(result.data, identity)
        if denied is not None:
            return denied
        return result

    @classmethod
    def _live_user(cls, identity: Identity) -> ServiceResult[User]:
        """The active user behind an authenticated identity."""
        try:
            user = User.objects.filter(pk=identity.user_id, is_active=True).first()
        except DatabaseError as e:
            return cls.handle_exception(e, "loading user")
        if user is None:
            return ServiceResult.failure("User no longer exists", error_code=UNAUTHENTICATED)
        return ServiceResult.success(user)

    @classmethod
    def _sender_for(cls, identity: Identity) -> ServiceResult[tuple[User | None, str]]:
        if identity.is_authenticated:
            found = cls._live_user(identity)
            if not found.success:
                return found
            return ServiceResult.success((found.data, str(found.data.pk)))
        if identity.is_guest:
            return ServiceResult.success((None, identity.sender_key))
        return ServiceResult.success((None, settings.ANONYMOUS_SENDER_LABEL))

    @classmethod
    def append(cls, channel_id, identity: Identity, content: str) -> ServiceResult[ChannelMessage]:
        """
        Append a message to a channel.

        Sender: the authenticated user, else GUEST#<id> for guests, else
        the reserved anonymous label (open channels only).

        Error codes:
            VALIDATION_FAILED: Content empty or too long
            NOT_FOUND: Channel absent (or deleted before the write)
            UNAUTHENTICATED / TOKEN_EXPIRED: Restricted channel without identity
            UNAVAILABLE: Store fault
        """
        errors = _content_errors(content, MESSAGE_CONFIG.MAX_CONTENT_LENGTH)
        if errors:
            return ServiceResult.failure(
                "Validation failed", error_code=VALIDATION_FAILED, errors=errors
            )

        result = cls.open_channel(channel_id, identity)
        if not result.success:
            return result
        channel = result.data

        sender_result = cls._sender_for(identity)
        if not sender_result.success:
            return sender_result
        sender, sender_label = sender_result.data

        for attempt in range(1, APPEND_ATTEMPTS + 1):
            try:
                with cls.atomic():
                    # Lock the channel row: serializes appends and sees deletes
                    locked = Channel.objects.select_for_update().filter(pk=channel.pk).first()
                    if locked is None:
                        return ServiceResult.failure("Channel not found", error_code=NOT_FOUND)
                    last_key = (
                        ChannelMessage.objects.filter(channel=locked)
                        .order_by("-sequence_key")
                        .values_list("sequence_key", flat=True)
                        .first()
                    )
                    message = ChannelMessage.objects.create(
                        channel=locked,
                        sender=sender,
                        sender_label=sender_label,
                        content=content,
                        sequence_key=next_sequence_key(last_key),
                    )
                break
            except IntegrityError as e:
                if attempt == APPEND_ATTEMPTS:
                    return cls.handle_exception(e, f"appending to channel {channel.pk}")
                cls.get_logger().debug(
                    f"Sequence key race on channel {channel.pk}, attempt {attempt}"
                )
            except DatabaseError as e:
                return cls.handle_exception(e, f"appending to channel {channel.pk}")

        cls.get_logger().debug(
            f"{sender_label} appended message {message.id} to channel {channel.pk} "
            f"at {message.sequence_key}"
        )
        return ServiceResult.success(message)

    @classmethod
    def history(
        cls, channel_id, identity: Identity
    ) -> ServiceResult[tuple[Channel, list[ChannelMessage]]]:
        """
        A channel's metadata and messages, ascending by sequence key.

        Error codes:
            NOT_FOUND: Channel absent
            UNAUTHENTICATED / TOKEN_EXPIRED: Restricted channel without identity
            UNAVAILABLE: Store fault
        """
        result = cls.open_channel(channel_id, identity)
        if not result.success:
            return result
        channel = result.data
        try:
            messages = list(
                ChannelMessage.objects.filter(channel=channel).order_by("sequence_key", "id")
            )
        except DatabaseError as e:
            return cls.handle_exception(e, f"reading history of channel {channel.pk}")
        return ServiceResult.success((channel, messages))

    @classmethod
    def all_recent(cls, limit: int | None = None) -> ServiceResult[list[ChannelMessage]]:
        """
        Messages across all channels, newest first.

        Not paginated: a lightweight admin/debug listing capped at
        MESSAGE_CONFIG.RECENT_MAX_LIMIT rows.
        """
        limit = limit or MESSAGE_CONFIG.RECENT_DEFAULT_LIMIT
        limit = max(1, min(limit, MESSAGE_CONFIG.RECENT_MAX_LIMIT))
        try:
            messages = list(
                ChannelMessage.objects.select_related("channel").order_by(
                    "-sequence_key", "-id"
                )[:limit]
            )
        except DatabaseError as e:
            return cls.handle_exception(e, "listing recent messages")
        return ServiceResult.success(messages)


class DirectMessageService(BaseService):
    """
    Direct messages between two participants.

    Participant keys are user ids for authenticated senders and
    GUEST#<guest id> for guests. Both directions of a conversation share
    the key formed by sorting the two participant keys.
    """

    @staticmethod
    def conversation_key(first: str, second: str) -> str:
        return DIRECT_MESSAGE_CONFIG.CONVERSATION_KEY_SEPARATOR.join(
            sorted([str(first), str(second)])
        )

    @classmethod
    def send(cls, identity: Identity, receiver_id, content: str) -> ServiceResult[DirectMessage]:
        """
        Send a direct message to a user.

        Error codes:
            VALIDATION_FAILED: No identity or guest id, bad content, or
                sending to yourself
            NOT_FOUND: Receiver does not exist
            UNAVAILABLE: Store fault
        """
        if identity.sender_key is None:
            if identity.credential_expired:
                return _unauthenticated(identity, "")
            return ServiceResult.failure(
                "Log in or provide a guest id to send direct messages",
                error_code=VALIDATION_FAILED,
                errors={"guest_id": ["This field is required without a valid token."]},
            )

        errors = _content_errors(content, DIRECT_MESSAGE_CONFIG.MAX_CONTENT_LENGTH)
        if errors:
            return ServiceResult.failure(
                "Validation failed", error_code=VALIDATION_FAILED, errors=errors
            )

        pk = parse_id(receiver_id)
        try:
            receiver = User.objects.filter(pk=pk, is_active=True).first() if pk else None
        except DatabaseError as e:
            return cls.handle_exception(e, "loading receiver")
        if receiver is None:
            return ServiceResult.failure("Receiver not found", error_code=NOT_FOUND)

        if identity.sender_key == str(receiver.pk):
            return ServiceResult.failure(
                "You cannot send a message to yourself", error_code=VALIDATION_FAILED
            )

        sender = None
        if identity.is_authenticated:
            sender_result = MessageStoreService._sender_for(identity)
            if not sender_result.success:
                return sender_result
            sender = sender_result.data[0]

        key = cls.conversation_key(identity.sender_key, receiver.pk)
        for attempt in range(1, APPEND_ATTEMPTS + 1):
            try:
                with cls.atomic():
                    # Lock the receiver row: serializes appends to its conversations
                    User.objects.select_for_update().filter(pk=receiver.pk).first()
                    last_key = (
                        DirectMessage.objects.filter(conversation_key=key)
                        .order_by("-sequence_key")
                        .values_list("sequence_key", flat=True)
                        .first()
                    )
                    message = DirectMessage.objects.create(
                        conversation_key=key,
                        sender=sender,
                        sender_key=identity.sender_key,
                        receiver=receiver,
                        content=content,
                        sequence_key=next_sequence_key(last_key),
                    )
                break
            except IntegrityError as e:
                if attempt == APPEND_ATTEMPTS:
                    return cls.handle_exception(e, f"sending direct message in {key}")
            except DatabaseError as e:
                return cls.handle_exception(e, f"sending direct message in {key}")

        cls.get_logger().debug(f"Direct message {message.id} sent in {key}")
        return ServiceResult.success(message)

    @classmethod
    def conversation(cls, identity: Identity, peer: str) -> ServiceResult[list[DirectMessage]]:
        """
        Messages between the caller and a peer, ascending.

        The peer is a user id or a GUEST#<guest id> key.
        """
        if not identity.is_authenticated:
            return _unauthenticated(identity, "Authentication required")
        peer = (peer or "").strip()
        if not peer:
            return ServiceResult.failure(
                "Validation failed",
                error_code=VALIDATION_FAILED,
                errors={"peer": ["This field may not be blank."]},
            )
        if not peer.startswith(GUEST_KEY_PREFIX):
            peer_id = parse_id(peer)
            if peer_id is not None:
                peer = str(peer_id)
        key = cls.conversation_key(identity.user_id, peer)
        try:
            messages = list(
                DirectMessage.objects.filter(conversation_key=key).order_by("sequence_key", "id")
            )
        except DatabaseError as e:
            return cls.handle_exception(e, f"reading conversation {key}")
        return ServiceResult.success(messages)

    @classmethod
    def recent(cls, identity: Identity, limit: int | None = None) -> ServiceResult[list[DirectMessage]]:
        """The caller's sent and received direct messages, newest first."""
        if not identity.is_authenticated:
            return _unauthenticated(identity, "Authentication required")
        limit = limit or MESSAGE_CONFIG.RECENT_DEFAULT_LIMIT
        limit = max(1, min(limit, MESSAGE_CONFIG.RECENT_MAX_LIMIT))
        try:
            messages = list(
                DirectMessage.objects.filter(
                    Q(sender_key=identity.user_id) | Q(receiver_id=identity.user_id)
                ).order_by("-sequence_key", "-id")[:limit]
            )
        except DatabaseError as e:
            return cls.handle_exception(e, "listing recent direct messages")
        return ServiceResult.success(messages)
