"""
Authentication services.

This module provides the AccountService class for registration, login,
user listing and account removal.

Related files:
    - models.py: User
    - identity.py: Verification of the tokens issued here

Security:
    - Passwords hashed with Django's configured hasher
    - Login failures never reveal whether the username exists
    - Access tokens are signed with the SIMPLE_JWT signing key
"""

from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from django.db import DatabaseError, IntegrityError
from rest_framework_simplejwt.tokens import AccessToken

from authentication.models import User, normalize_username
from core.exceptions import CONFLICT, NOT_FOUND, UNAUTHENTICATED
from core.services import BaseService, ServiceResult

logger = logging.getLogger(__name__)


class AccountService(BaseService):
    """
    Account business logic.

    Usage:
        result = AccountService.register("alice", "secret1")
        if result.success:
            token = AccountService.issue_token(result.data)
    """

    @staticmethod
    def issue_token(user: User) -> str:
        """Issue a signed access token for the user."""
        return str(AccessToken.for_user(user))

    @classmethod
    def register(cls, username: str, password: str) -> ServiceResult[User]:
        """
        Create a user account.

        Returns:
            ServiceResult with the new User, or CONFLICT if the
            normalized username is taken.
        """
        username = normalize_username(username)
        try:
            with cls.atomic():
                if User.objects.filter(username=username).exists():
                    return ServiceResult.failure(
                        "Username is already taken", error_code=CONFLICT
                    )
                user = User.objects.create_user(username=username, password=password)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            return ServiceResult.failure("Username is already taken", error_code=CONFLICT)
        except DatabaseError as e:
            return cls.handle_exception(e, "registering user")

        logger.info(f"User registered: {user.username} ({user.id})")
        return ServiceResult.success(user)

    @classmethod
    def login(cls, username: str, password: str) -> ServiceResult[User]:
        """Check credentials; UNAUTHENTICATED on any mismatch."""
        try:
            user = authenticate(username=normalize_username(username), password=password)
        except DatabaseError as e:
            return cls.handle_exception(e, "authenticating user")

        if user is None:
            logger.info(f"Failed login for username: {normalize_username(username)}")
            return ServiceResult.failure(
                "Invalid username or password", error_code=UNAUTHENTICATED
            )
        return ServiceResult.success(user)

    @classmethod
    def list_users(cls) -> ServiceResult[list[User]]:
        try:
            return ServiceResult.success(list(User.objects.filter(is_active=True)))
        except DatabaseError as e:
            return cls.handle_exception(e, "listing users")

    @classmethod
    def delete_account(cls, user_id) -> ServiceResult[None]:
        """
        Remove an account.

        The delete is conditional on the row existing: a second delete
        (or a delete racing with another) reports NOT_FOUND.
        """
        try:
            deleted, _ = User.objects.filter(pk=user_id).delete()
        except DatabaseError as e:
            return cls.handle_exception(e, "deleting user")

        if not deleted:
            return ServiceResult.failure("User not found", error_code=NOT_FOUND)

        logger.info(f"User deleted: {user_id}")
        return ServiceResult.success(None)
