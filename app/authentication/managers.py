"""
Custom user manager for username-based authentication.

Related files:
    - models.py: User model that uses this manager

Security:
    - Passwords are automatically hashed via set_password()
    - Usernames are normalized (trimmed, lower-cased) before lookup and save
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Custom manager for User model with username-based authentication.

    Usage:
        user = User.objects.create_user(username="alice", password="secret1")
        admin = User.objects.create_superuser(username="root", password="secret1")
    """

    def create_user(self, username, password=None, **extra_fields):
        """
        Create and save a regular user with the given username and password.

        Raises:
            ValueError: If username is not provided
        """
        if not username or not username.strip():
            raise ValueError("The Username field must be set")

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(username=username.strip().lower(), **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, username, password=None, **extra_fields):
        """
        Create and save a superuser with the given username and password.

        Raises:
            ValueError: If is_staff or is_superuser is not True
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(username, password, **extra_fields)

    def get_by_natural_key(self, username):
        return self.get(**{self.model.USERNAME_FIELD: username.strip().lower()})
