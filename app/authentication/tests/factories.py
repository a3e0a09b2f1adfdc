"""
Factory Boy factories for authentication models.

Provides realistic test data generation for:
- User: Custom user model with username-based authentication
- Bearer access tokens (valid and expired) for those users

Usage:
    from authentication.tests.factories import UserFactory

    # Create a user with default values
    user = UserFactory()

    # Create a user with a known password
    user = UserFactory(username="alice", password="secret1")
"""

import uuid
from datetime import datetime, timedelta, timezone

import factory
import jwt
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from authentication.models import User

DEFAULT_PASSWORD = "TestPass123!"


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Creates active users with the default access level.

    Examples:
        # Basic user
        user = UserFactory()

        # Staff user
        user = UserFactory(is_staff=True)

        # Inactive user (deactivated)
        user = UserFactory(is_active=False)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", DEFAULT_PASSWORD)
        return model_class.objects.create_user(
            username=kwargs.pop("username"), password=password, **kwargs
        )


def access_token_for(user) -> str:
    """A valid bearer access token for the user."""
    return str(AccessToken.for_user(user))


def expired_token_for(user_id) -> str:
    """An access token that is well-formed and correctly signed but expired."""
    now = datetime.now(tz=timezone.utc)
    payload = {
        api_settings.TOKEN_TYPE_CLAIM: "access",
        api_settings.USER_ID_CLAIM: str(user_id),
        "iat": int((now - timedelta(hours=2)).timestamp()),
        "exp": int((now - timedelta(hours=1)).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, api_settings.SIGNING_KEY, algorithm=api_settings.ALGORITHM)
