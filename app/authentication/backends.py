"""
DRF authentication classes built on the identity resolver.

BearerTokenAuthentication:
    Default for the API. No credential means no user (permissions decide);
    an invalid or expired credential fails the request with 401 and an
    error code the client can act on (TOKEN_EXPIRED vs UNAUTHENTICATED).

OptionalBearerTokenAuthentication:
    For endpoints where anonymous and guest callers are allowed (reading
    open channels, posting to them, direct messages from guests). Never
    fails the request; the credential outcome is kept on the request so
    the view can still report an expired session where it matters.

Both record the CredentialCheck as ``request.credential_check``.
"""

from __future__ import annotations

import logging

from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.settings import api_settings

from authentication.identity import (
    CredentialCheck,
    CredentialStatus,
    Identity,
    check_credential,
    credential_from_header,
    normalize_guest_id,
)
from authentication.models import User

logger = logging.getLogger(__name__)


class BearerTokenAuthentication(BaseAuthentication):
    """Authenticate requests carrying ``Authorization: Bearer <jwt>``."""

    www_authenticate_realm = "api"
    raise_on_failure = True

    def authenticate(self, request):
        token = credential_from_header(request.META.get(api_settings.AUTH_HEADER_NAME))
        check = check_credential(token)
        request.credential_check = check

        if check.status is CredentialStatus.MISSING:
            return None

        if check.status is CredentialStatus.EXPIRED:
            return self._fail("Token has expired", code="token_expired")
        if check.status is CredentialStatus.INVALID:
            return self._fail("Token is invalid", code="token_invalid")

        user = User.objects.filter(pk=check.user_id, is_active=True).first()
        if user is None:
            logger.info(f"Valid token for unknown or inactive user {check.user_id}")
            return self._fail("User not found", code="user_not_found")

        return (user, token)

    def authenticate_header(self, request):
        return f'Bearer realm="{self.www_authenticate_realm}"'

    def _fail(self, message: str, code: str):
        if self.raise_on_failure:
            raise AuthenticationFailed(message, code=code)
        return None


class OptionalBearerTokenAuthentication(BearerTokenAuthentication):
    """Same as BearerTokenAuthentication, but a bad credential never fails the request."""

    raise_on_failure = False


def credential_check_for(request) -> CredentialCheck:
    return getattr(request, "credential_check", None) or CredentialCheck(
        CredentialStatus.MISSING
    )


def identity_for_request(request, guest_id=None) -> Identity:
    """
    Build the Identity of an authenticated DRF request.

    The verified user wins; otherwise a usable guest id gives a guest
    identity; otherwise anonymous. A valid token whose user no longer
    exists counts as an invalid credential.
    """
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return Identity.authenticated(str(user.pk))

    status = credential_check_for(request).status
    if status is CredentialStatus.VALID:
        status = CredentialStatus.INVALID

    guest_id = normalize_guest_id(guest_id)
    if guest_id is not None:
        return Identity.guest(guest_id, credential=status)
    return Identity.anonymous(credential=status)
