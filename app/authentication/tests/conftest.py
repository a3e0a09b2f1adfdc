"""
Test configuration and fixtures for authentication tests.

This module provides:
- Reusable user fixtures
- API client helpers for requests with bearer tokens

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get('/api/v1/users/me/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.models import User
from authentication.tests.factories import (
    DEFAULT_PASSWORD,
    UserFactory,
    access_token_for,
    expired_token_for,
)


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a basic active user."""
    return UserFactory(username="alice")


@pytest.fixture
def other_user(db):
    """Create another user for various tests."""
    return UserFactory(username="bob")


@pytest.fixture
def deactivated_user(db):
    """Create a deactivated user (is_active=False)."""
    return UserFactory(username="carol", is_active=False)


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(username="root", password=DEFAULT_PASSWORD)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def token(user):
    """A valid access token for the default user."""
    return access_token_for(user)


@pytest.fixture
def authenticated_client(token):
    """API client sending the default user's bearer token."""
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture
def authenticated_client_factory():
    """
    Build API clients for arbitrary users.

    Usage:
        client = authenticated_client_factory(other_user)
    """

    def _make(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {access_token_for(user)}")
        return client

    return _make


@pytest.fixture
def expired_client(user):
    """API client sending an expired token for the default user."""
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {expired_token_for(user.pk)}")
    return client
