"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures (channel creator and another member)
- Channel fixtures ("general" open, "secret" restricted)
- API client helpers for requests with bearer tokens
- A recording broadcaster for HTTP posts

Usage:
    def test_example(general, creator_client):
        response = creator_client.get(f'/api/v1/channels/{general.id}/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.identity import Identity
from authentication.tests.factories import UserFactory, access_token_for, expired_token_for
from chat.models import ChannelAccess
from chat.tests.factories import ChannelFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def creator(db):
    """Create a user who creates the channels."""
    return UserFactory(username="creator")


@pytest.fixture
def member(db):
    """Create another authenticated user."""
    return UserFactory(username="member")


# =============================================================================
# Identity Fixtures
# =============================================================================


@pytest.fixture
def creator_identity(creator):
    return Identity.authenticated(str(creator.pk))


@pytest.fixture
def member_identity(member):
    return Identity.authenticated(str(member.pk))


@pytest.fixture
def guest_identity():
    return Identity.guest("visitor")


@pytest.fixture
def anonymous_identity():
    return Identity.anonymous()


# =============================================================================
# Channel Fixtures
# =============================================================================


@pytest.fixture
def general(creator):
    """An open channel named "general"."""
    return ChannelFactory(name="general", creator=creator)


@pytest.fixture
def secret(creator):
    """A restricted channel named "secret"."""
    return ChannelFactory(name="secret", creator=creator, access=ChannelAccess.RESTRICTED)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


def _client_with_token(token):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture
def creator_client(creator):
    return _client_with_token(access_token_for(creator))


@pytest.fixture
def member_client(member):
    return _client_with_token(access_token_for(member))


@pytest.fixture
def expired_client(member):
    """API client sending an expired token for the member."""
    return _client_with_token(expired_token_for(member.pk))


# =============================================================================
# Broadcaster Fixtures
# =============================================================================


class RecordingBroadcaster:
    """Stands in for RoomBroadcaster and records every broadcast."""

    def __init__(self):
        self.broadcasts = []

    async def broadcast(self, channel_id, event):
        self.broadcasts.append((str(channel_id), event))
        return 1


@pytest.fixture
def recording_broadcaster(monkeypatch):
    """
    Replace the process broadcaster used by HTTP views.

    Usage:
        api_client.post(CHANNEL_MESSAGES_URL, {...})
        assert recording_broadcaster.broadcasts
    """
    broadcaster = RecordingBroadcaster()
    monkeypatch.setattr("chat.views.get_broadcaster", lambda: broadcaster)
    return broadcaster
