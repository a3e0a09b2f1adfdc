"""
Tests for AccountService.

This module tests registration, login, listing and account deletion
at the service layer, including store faults.
"""

from unittest.mock import patch

import pytest
from django.db import DatabaseError

from authentication.identity import check_credential
from authentication.models import User
from authentication.services import AccountService
from authentication.tests.factories import DEFAULT_PASSWORD, UserFactory


@pytest.mark.django_db
class TestAccountServiceRegister:
    """
    Tests for AccountService.register.

    Verifies:
    - New accounts are created with normalized usernames
    - Duplicates are CONFLICT
    - Store faults are UNAVAILABLE
    """

    def test_register_creates_user(self):
        result = AccountService.register("Alice", "secret1")

        assert result.success
        assert result.data.username == "alice"
        assert result.data.check_password("secret1")

    def test_register_duplicate_is_conflict(self):
        UserFactory(username="alice")

        result = AccountService.register("alice", "secret1")

        assert not result.success
        assert result.error_code == "CONFLICT"

    def test_register_store_fault_is_unavailable(self):
        with patch.object(User.objects, "create_user", side_effect=DatabaseError("down")):
            result = AccountService.register("alice", "secret1")

        assert not result.success
        assert result.error_code == "UNAVAILABLE"


@pytest.mark.django_db
class TestAccountServiceLogin:
    """Tests for AccountService.login."""

    def test_login_returns_user(self):
        user = UserFactory(username="alice")

        result = AccountService.login("alice", DEFAULT_PASSWORD)

        assert result.success
        assert result.data == user

    def test_login_wrong_password_is_unauthenticated(self):
        UserFactory(username="alice")

        result = AccountService.login("alice", "nope-nope")

        assert result.error_code == "UNAUTHENTICATED"


@pytest.mark.django_db
class TestAccountServiceAccounts:
    """
    Tests for token issuing, listing and deletion.

    Verifies:
    - Issued tokens verify to the user's id
    - Inactive users are not listed
    - Deletion is conditional: the second delete is NOT_FOUND
    """

    def test_issue_token_verifies(self):
        user = UserFactory()

        check = check_credential(AccountService.issue_token(user))

        assert check.user_id == str(user.id)

    def test_list_users_excludes_inactive(self):
        active = UserFactory(username="alice")
        UserFactory(username="zed", is_active=False)

        result = AccountService.list_users()

        assert result.data == [active]

    def test_delete_account(self):
        user = UserFactory()

        result = AccountService.delete_account(user.pk)

        assert result.success
        assert not User.objects.filter(pk=user.pk).exists()

    def test_delete_account_twice_is_not_found(self):
        user = UserFactory()
        AccountService.delete_account(user.pk)

        result = AccountService.delete_account(user.pk)

        assert result.error_code == "NOT_FOUND"
