"""
Authentication models.

This module defines the account model:
- User: Custom user model with username-based authentication

Related files:
    - managers.py: Custom user manager for username-based creation
    - services.py: AccountService business logic
    - identity.py: Bearer credential verification

Security:
    - User passwords hashed with Django's configured hasher
    - Usernames stored trimmed and lower-cased so lookups are case-insensitive
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.validators import MinLengthValidator
from django.db import models

from authentication.managers import UserManager
from core.model_mixins import UUIDPrimaryKeyMixin

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
DEFAULT_ACCESS_LEVEL = "user"


def normalize_username(value: str) -> str:
    """Return the stored form of a username (trimmed, lower-cased)."""
    return value.strip().lower()


class User(UUIDPrimaryKeyMixin, AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using a username as the primary identifier.

    Fields:
        id: UUID, used as the JWT user id claim
        username: Unique, 3-20 characters, stored normalized
        access_level: Coarse role label exposed to clients
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created

    Usage:
        user = User.objects.create_user(username="alice", password="secret1")
    """

    username = models.CharField(
        unique=True,
        max_length=USERNAME_MAX_LENGTH,
        validators=[MinLengthValidator(USERNAME_MIN_LENGTH)],
        help_text="Login name, stored trimmed and lower-cased",
    )
    access_level = models.CharField(
        max_length=20,
        default=DEFAULT_ACCESS_LEVEL,
        help_text="Role label returned with the user record",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )

    USERNAME_FIELD = "username"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        db_table = "authentication_user"
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["username"]

    def __str__(self):
        return self.username

    def save(self, *args, **kwargs):
        if self.username:
            self.username = normalize_username(self.username)
        super().save(*args, **kwargs)
