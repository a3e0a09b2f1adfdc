"""
Tests for chat services.

This module tests:
- ChannelDirectoryService: create, get, delete, list
- MessageStoreService: access policy, append, history, recent
- DirectMessageService: send, conversation, recent

Testing Philosophy:
    Services are called directly with Identity values; every expected
    failure is asserted through its error code.
"""

import uuid
from unittest.mock import patch

import pytest
from django.db import DatabaseError, IntegrityError
from freezegun import freeze_time

from authentication.identity import CredentialStatus, Identity
from authentication.tests.factories import UserFactory
from chat.models import Channel, ChannelAccess, ChannelMessage, DirectMessage
from chat.services import (
    ChannelDirectoryService,
    DirectMessageService,
    MessageStoreService,
    parse_id,
)
from chat.tests.factories import ChannelFactory, ChannelMessageFactory


class TestParseId:
    """Tests for parse_id."""

    def test_string_uuid(self):
        value = uuid.uuid4()

        assert parse_id(str(value)) == value

    def test_malformed(self):
        assert parse_id("not-a-uuid") is None
        assert parse_id(None) is None


# =============================================================================
# ChannelDirectoryService
# =============================================================================


@pytest.mark.django_db
class TestChannelDirectoryCreate:
    """
    Tests for ChannelDirectoryService.create.

    Verifies:
    - Channels get a fresh UUID and default to open
    - Name, description and access are validated
    - An id collision is a CONFLICT, never an overwrite
    """

    def test_create_open_channel(self, creator):
        result = ChannelDirectoryService.create(name="general", creator=creator)

        assert result.success
        channel = result.data
        assert isinstance(channel.id, uuid.UUID)
        assert channel.access == ChannelAccess.OPEN
        assert channel.creator == creator

    def test_create_restricted_channel(self, creator):
        result = ChannelDirectoryService.create(
            name="secret", creator=creator, access=ChannelAccess.RESTRICTED
        )

        assert result.data.is_restricted

    def test_name_is_trimmed(self, creator):
        assert ChannelDirectoryService.create(name="  general ", creator=creator).data.name == "general"

    def test_blank_name_fails(self, creator):
        result = ChannelDirectoryService.create(name="   ", creator=creator)

        assert result.error_code == "VALIDATION_FAILED"
        assert "name" in result.errors
        assert not Channel.objects.exists()

    def test_name_too_long_fails(self, creator):
        result = ChannelDirectoryService.create(name="x" * 101, creator=creator)

        assert result.error_code == "VALIDATION_FAILED"

    def test_description_too_long_fails(self, creator):
        result = ChannelDirectoryService.create(
            name="general", creator=creator, description="x" * 301
        )

        assert "description" in result.errors

    def test_unknown_access_fails(self, creator):
        result = ChannelDirectoryService.create(name="general", creator=creator, access="public")

        assert "access" in result.errors

    def test_duplicate_names_are_allowed(self, creator):
        first = ChannelDirectoryService.create(name="general", creator=creator)
        second = ChannelDirectoryService.create(name="general", creator=creator)

        assert first.data.id != second.data.id

    def test_id_collision_is_conflict(self, creator, general):
        """
        A generated id that already exists fails instead of overwriting.

        Why it matters: The insert is conditional; an upsert would
        silently replace another user's channel.
        """
        with patch("chat.services.uuid.uuid4", return_value=general.id):
            result = ChannelDirectoryService.create(name="impostor", creator=creator)

        assert result.error_code == "CONFLICT"
        general.refresh_from_db()
        assert general.name == "general"

    def test_store_fault_is_unavailable(self, creator):
        with patch.object(Channel.objects, "create", side_effect=DatabaseError("down")):
            result = ChannelDirectoryService.create(name="general", creator=creator)

        assert result.error_code == "UNAVAILABLE"


@pytest.mark.django_db
class TestChannelDirectoryLookup:
    """
    Tests for get, list_all and list_by_creator.

    Verifies:
    - Absent and malformed ids are NOT_FOUND
    - Listings are ordered by case-sensitive name, then id
    """

    def test_get(self, general):
        assert ChannelDirectoryService.get(str(general.id)).data == general

    def test_get_absent(self, db):
        assert ChannelDirectoryService.get(uuid.uuid4()).error_code == "NOT_FOUND"

    def test_get_malformed_id(self, db):
        assert ChannelDirectoryService.get("nope").error_code == "NOT_FOUND"

    def test_list_all_ordered_case_sensitive(self, creator):
        for name in ["beta", "Alpha", "alpha"]:
            ChannelFactory(name=name, creator=creator)

        names = [c.name for c in ChannelDirectoryService.list_all().data]

        assert names == ["Alpha", "alpha", "beta"]

    def test_list_all_ties_broken_by_id(self, creator):
        channels = [ChannelFactory(name="same", creator=creator) for _ in range(3)]

        listed = ChannelDirectoryService.list_all().data

        assert [c.id for c in listed] == sorted((c.id for c in channels), key=str)

    def test_list_by_creator(self, creator, member, general, secret):
        ChannelFactory(name="other", creator=member)

        listed = ChannelDirectoryService.list_by_creator(creator).data

        assert listed == [general, secret]


@pytest.mark.django_db
class TestChannelDirectoryDelete:
    """
    Tests for ChannelDirectoryService.delete.

    Verifies:
    - Only the creator may delete
    - A second delete reports NOT_FOUND
    - Messages go with the channel
    """

    def test_creator_deletes(self, general, creator):
        ChannelMessageFactory(channel=general)

        result = ChannelDirectoryService.delete(general.id, creator)

        assert result.success
        assert not Channel.objects.filter(pk=general.pk).exists()
        assert not ChannelMessage.objects.filter(channel_id=general.pk).exists()

    def test_other_user_is_forbidden(self, general, member):
        result = ChannelDirectoryService.delete(general.id, member)

        assert result.error_code == "FORBIDDEN"
        assert Channel.objects.filter(pk=general.pk).exists()

    def test_absent_is_not_found(self, creator):
        assert ChannelDirectoryService.delete(uuid.uuid4(), creator).error_code == "NOT_FOUND"

    def test_second_delete_is_not_found(self, general, creator):
        ChannelDirectoryService.delete(general.id, creator)

        assert ChannelDirectoryService.delete(general.id, creator).error_code == "NOT_FOUND"

    def test_orphaned_channel_cannot_be_deleted(self, general, creator, member):
        creator.delete()

        assert ChannelDirectoryService.delete(general.id, member).error_code == "FORBIDDEN"


# =============================================================================
# MessageStoreService
# =============================================================================


@pytest.mark.django_db
class TestMessageStoreAccess:
    """
    Tests for the access policy.

    Verifies:
    - Open channels are readable by anyone
    - Restricted channels need an authenticated identity
    - An expired credential is reported as TOKEN_EXPIRED
    """

    def test_open_channel_for_anonymous(self, general, anonymous_identity):
        assert MessageStoreService.open_channel(general.id, anonymous_identity).success

    def test_restricted_channel_for_authenticated(self, secret, member_identity):
        assert MessageStoreService.open_channel(secret.id, member_identity).success

    def test_restricted_channel_for_guest(self, secret, guest_identity):
        """
        Guests never pass access control.

        Why it matters: Guest ids are chosen by the client and never
        verified.
        """
        result = MessageStoreService.open_channel(secret.id, guest_identity)

        assert result.error_code == "UNAUTHENTICATED"

    def test_restricted_channel_with_expired_credential(self, secret):
        identity = Identity.anonymous(credential=CredentialStatus.EXPIRED)

        result = MessageStoreService.open_channel(secret.id, identity)

        assert result.error_code == "TOKEN_EXPIRED"

    def test_restricted_channel_for_anonymous(self, secret, anonymous_identity):
        result = MessageStoreService.open_channel(secret.id, anonymous_identity)

        assert result.success is False
        assert result.data is None
        assert result.error_code == "UNAUTHENTICATED"

    def test_restricted_channel_for_deleted_user(self, secret):
        """
        A still-valid token for a deleted account opens nothing restricted.

        Why it matters: WebSocket sessions resolve their identity from the
        token alone, without loading the user.
        """
        user = UserFactory()
        identity = Identity.authenticated(str(user.pk))
        user.delete()

        result = MessageStoreService.open_channel(secret.id, identity)

        assert result.error_code == "UNAUTHENTICATED"

    def test_restricted_channel_for_deactivated_user(self, secret):
        user = UserFactory(is_active=False)

        result = MessageStoreService.open_channel(secret.id, Identity.authenticated(str(user.pk)))

        assert result.error_code == "UNAUTHENTICATED"

    def test_deleted_user_may_still_open_an_open_channel(self, general):
        identity = Identity.authenticated(str(uuid.uuid4()))

        assert MessageStoreService.open_channel(general.id, identity).success

    def test_absent_channel(self, db, member_identity):
        assert MessageStoreService.open_channel(uuid.uuid4(), member_identity).error_code == "NOT_FOUND"


@pytest.mark.django_db
class TestMessageStoreAppend:
    """
    Tests for MessageStoreService.append.

    Verifies:
    - Sender attribution for users, guests and anonymous callers
    - Content bounds
    - Strictly increasing sequence keys
    - Nothing is written on failure
    """

    def test_authenticated_sender(self, general, member, member_identity):
        result = MessageStoreService.append(general.id, member_identity, "hello")

        message = result.data
        assert message.sender == member
        assert message.sender_label == str(member.pk)
        assert message.content == "hello"
        assert len(message.sequence_key) == 27

    def test_guest_sender(self, general, guest_identity):
        message = MessageStoreService.append(general.id, guest_identity, "hi").data

        assert message.sender is None
        assert message.sender_label == "GUEST#visitor"

    def test_anonymous_sender(self, general, anonymous_identity):
        message = MessageStoreService.append(general.id, anonymous_identity, "hi").data

        assert message.sender is None
        assert message.sender_label == "anonymous"

    def test_content_stored_exactly(self, general, member_identity):
        message = MessageStoreService.append(general.id, member_identity, "  spaced  ").data

        message.refresh_from_db()
        assert message.content == "  spaced  "

    def test_empty_content_fails(self, general, member_identity):
        result = MessageStoreService.append(general.id, member_identity, "")

        assert result.error_code == "VALIDATION_FAILED"
        assert "content" in result.errors

    def test_whitespace_content_fails(self, general, member_identity):
        assert MessageStoreService.append(general.id, member_identity, "   ").error_code == "VALIDATION_FAILED"

    def test_content_at_limit(self, general, member_identity):
        assert MessageStoreService.append(general.id, member_identity, "x" * 5000).success

    def test_content_over_limit_fails(self, general, member_identity):
        result = MessageStoreService.append(general.id, member_identity, "x" * 5001)

        assert result.error_code == "VALIDATION_FAILED"
        assert not ChannelMessage.objects.exists()

    def test_non_string_content_fails(self, general, member_identity):
        assert MessageStoreService.append(general.id, member_identity, 42).error_code == "VALIDATION_FAILED"

    def test_absent_channel(self, db, member_identity):
        assert MessageStoreService.append(uuid.uuid4(), member_identity, "hi").error_code == "NOT_FOUND"

    def test_restricted_channel_rejects_anonymous(self, secret, anonymous_identity):
        result = MessageStoreService.append(secret.id, anonymous_identity, "hi")

        assert result.error_code == "UNAUTHENTICATED"
        assert not ChannelMessage.objects.exists()

    def test_restricted_channel_accepts_authenticated(self, secret, member_identity):
        assert MessageStoreService.append(secret.id, member_identity, "hi").success

    def test_deleted_user_token_is_unauthenticated(self, general):
        user = UserFactory()
        identity = Identity.authenticated(str(user.pk))
        user.delete()

        assert MessageStoreService.append(general.id, identity, "hi").error_code == "UNAUTHENTICATED"

    @freeze_time("2024-05-01 12:00:00")
    def test_same_instant_appends_get_increasing_keys(self, general, member_identity):
        """
        Appends within one clock tick still get distinct, ordered keys.

        Why it matters: Keys are the ordering and de-duplication basis of
        every transcript.
        """
        keys = [
            MessageStoreService.append(general.id, member_identity, f"m{i}").data.sequence_key
            for i in range(3)
        ]

        assert keys == [
            "2024-05-01T12:00:00.000000Z",
            "2024-05-01T12:00:00.000001Z",
            "2024-05-01T12:00:00.000002Z",
        ]

    def test_store_fault_is_unavailable(self, general, member_identity):
        with patch.object(ChannelMessage.objects, "create", side_effect=DatabaseError("down")):
            result = MessageStoreService.append(general.id, member_identity, "hi")

        assert result.error_code == "UNAVAILABLE"

    def test_sequence_key_race_is_retried(self, general, member_identity):
        original_create = ChannelMessage.objects.create
        calls = []

        def flaky_create(**kwargs):
            calls.append(kwargs["sequence_key"])
            if len(calls) == 1:
                raise IntegrityError("duplicate key")
            return original_create(**kwargs)

        with patch.object(ChannelMessage.objects, "create", side_effect=flaky_create):
            result = MessageStoreService.append(general.id, member_identity, "hi")

        assert result.success
        assert len(calls) == 2


@pytest.mark.django_db
class TestMessageStoreHistory:
    """
    Tests for history and all_recent.

    Verifies:
    - History is ascending by sequence key and per channel
    - Restricted history needs an authenticated identity
    - Recent messages are newest first and capped
    """

    def test_history_ascending(self, general, anonymous_identity):
        second = ChannelMessageFactory(channel=general, sequence_key="2024-05-01T12:00:02.000000Z")
        first = ChannelMessageFactory(channel=general, sequence_key="2024-05-01T12:00:01.000000Z")
        ChannelMessageFactory()

        channel, messages = MessageStoreService.history(general.id, anonymous_identity).data

        assert channel == general
        assert messages == [first, second]

    def test_restricted_history_requires_identity(self, secret, guest_identity):
        assert MessageStoreService.history(secret.id, guest_identity).error_code == "UNAUTHENTICATED"

    def test_restricted_history_for_member(self, secret, member_identity):
        ChannelMessageFactory(channel=secret)

        _, messages = MessageStoreService.history(secret.id, member_identity).data

        assert len(messages) == 1

    def test_all_recent_newest_first_across_channels(self, general, secret):
        old = ChannelMessageFactory(channel=general, sequence_key="2024-05-01T12:00:01.000000Z")
        new = ChannelMessageFactory(channel=secret, sequence_key="2024-05-01T12:00:02.000000Z")

        assert MessageStoreService.all_recent().data == [new, old]

    def test_all_recent_limit(self, general):
        ChannelMessageFactory.create_batch(5, channel=general)

        assert len(MessageStoreService.all_recent(2).data) == 2


# =============================================================================
# DirectMessageService
# =============================================================================


@pytest.mark.django_db
class TestDirectMessageSend:
    """
    Tests for DirectMessageService.send.

    Verifies:
    - Users and guests can send; nobody else can
    - Receivers must exist; self-messages are rejected
    - Both directions share one conversation key
    """

    def test_user_to_user(self, creator, member, member_identity):
        message = DirectMessageService.send(member_identity, str(creator.pk), "hi").data

        assert message.sender == member
        assert message.sender_key == str(member.pk)
        assert message.receiver == creator
        assert message.conversation_key == "#".join(sorted([str(member.pk), str(creator.pk)]))

    def test_guest_to_user(self, creator, guest_identity):
        message = DirectMessageService.send(guest_identity, creator.pk, "hi").data

        assert message.sender is None
        assert message.sender_key == "GUEST#visitor"

    def test_anonymous_needs_guest_id(self, creator, anonymous_identity):
        result = DirectMessageService.send(anonymous_identity, creator.pk, "hi")

        assert result.error_code == "VALIDATION_FAILED"
        assert "guest_id" in result.errors

    def test_expired_credential_without_guest_id(self, creator):
        identity = Identity.anonymous(credential=CredentialStatus.EXPIRED)

        assert DirectMessageService.send(identity, creator.pk, "hi").error_code == "TOKEN_EXPIRED"

    def test_unknown_receiver(self, member_identity):
        assert DirectMessageService.send(member_identity, uuid.uuid4(), "hi").error_code == "NOT_FOUND"

    def test_malformed_receiver(self, member_identity):
        assert DirectMessageService.send(member_identity, "bob", "hi").error_code == "NOT_FOUND"

    def test_send_to_self(self, member, member_identity):
        result = DirectMessageService.send(member_identity, member.pk, "hi")

        assert result.error_code == "VALIDATION_FAILED"
        assert not DirectMessage.objects.exists()

    def test_content_over_limit(self, creator, member_identity):
        assert DirectMessageService.send(member_identity, creator.pk, "x" * 501).error_code == "VALIDATION_FAILED"

    def test_both_directions_share_conversation(self, creator, member, creator_identity, member_identity):
        first = DirectMessageService.send(member_identity, creator.pk, "ping").data
        second = DirectMessageService.send(creator_identity, member.pk, "pong").data

        assert first.conversation_key == second.conversation_key
        assert first.sequence_key < second.sequence_key


@pytest.mark.django_db
class TestDirectMessageRead:
    """Tests for conversation and recent."""

    def test_conversation_ascending(self, creator, member, creator_identity, member_identity):
        DirectMessageService.send(member_identity, creator.pk, "one")
        DirectMessageService.send(creator_identity, member.pk, "two")

        messages = DirectMessageService.conversation(creator_identity, str(member.pk)).data

        assert [m.content for m in messages] == ["one", "two"]

    def test_conversation_with_guest(self, creator, creator_identity, guest_identity):
        DirectMessageService.send(guest_identity, creator.pk, "hello from a guest")

        messages = DirectMessageService.conversation(creator_identity, "GUEST#visitor").data

        assert [m.content for m in messages] == ["hello from a guest"]

    @pytest.mark.parametrize("spelling", ["upper", "hex"])
    def test_conversation_peer_id_spelling(self, creator, member, creator_identity, member_identity, spelling):
        """
        Any spelling of the peer's UUID finds the same conversation.

        Why it matters: Conversation keys are built from canonical ids
        when sending, so reads must canonicalize too.
        """
        DirectMessageService.send(member_identity, creator.pk, "one")
        peer = str(member.pk).upper() if spelling == "upper" else member.pk.hex

        messages = DirectMessageService.conversation(creator_identity, peer).data

        assert [m.content for m in messages] == ["one"]

    def test_conversation_requires_authentication(self, member, guest_identity):
        assert DirectMessageService.conversation(guest_identity, str(member.pk)).error_code == "UNAUTHENTICATED"

    def test_recent_includes_sent_and_received_newest_first(
        self, creator, member, creator_identity, member_identity
    ):
        third = UserFactory()
        DirectMessageService.send(member_identity, creator.pk, "received")
        DirectMessageService.send(creator_identity, third.pk, "sent")
        DirectMessageService.send(member_identity, third.pk, "unrelated")

        messages = DirectMessageService.recent(creator_identity).data

        assert [m.content for m in messages] == ["sent", "received"]
