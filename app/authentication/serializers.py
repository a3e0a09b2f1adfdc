"""
Serializers for authentication models.

This module provides DRF serializers for:
- User model (read operations)
- Registration and login input

Related files:
    - models.py: User model
    - views.py: Views that use these serializers

Security:
    - Password fields are write-only
"""

from rest_framework import serializers

from authentication.models import (
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    User,
)

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100


class UserSerializer(serializers.ModelSerializer):
    """Public view of a user account."""

    id = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "access_level", "date_joined"]
        read_only_fields = fields


class CredentialsSerializer(serializers.Serializer):
    """
    Username and password input shared by register and login.

    Usernames are trimmed and lower-cased before use.
    """

    username = serializers.CharField(
        min_length=USERNAME_MIN_LENGTH,
        max_length=USERNAME_MAX_LENGTH,
        trim_whitespace=True,
    )
    password = serializers.CharField(
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        write_only=True,
        trim_whitespace=False,
        style={"input_type": "password"},
    )

    def validate_username(self, value):
        return value.lower()


class RegisterSerializer(CredentialsSerializer):
    """Input for POST /auth/register/."""


class LoginSerializer(CredentialsSerializer):
    """Input for POST /auth/login/."""


class AuthTokenSerializer(serializers.Serializer):
    """Response of register and login."""

    token = serializers.CharField()
    user = UserSerializer()
