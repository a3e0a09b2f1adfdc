"""
Tests for authentication app.

This package contains test modules for:
- test_identity.py: Credential checks and identity resolution
- test_backends.py: DRF authentication classes and permissions
- test_models.py: User model and manager tests
- test_services.py: AccountService tests
- test_views.py: API endpoint tests

Usage:
    pytest authentication/tests/
    pytest authentication/tests/test_identity.py
"""
