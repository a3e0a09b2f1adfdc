"""
Permission classes for endpoints that need a verified account.

Used together with OptionalBearerTokenAuthentication: the authenticator
never fails the request, and this permission turns "no usable
credential" into a 401 whose error code says whether the session
expired.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from authentication.backends import credential_check_for
from authentication.identity import CredentialStatus
from core.exceptions import TOKEN_EXPIRED, UnauthenticatedError

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class HasVerifiedIdentity(permissions.BasePermission):
    """
    Allows access only to requests with a valid token for an existing user.

    Raises UnauthenticatedError (TOKEN_EXPIRED when the token expired)
    instead of returning False, so the response is always 401.
    """

    def has_permission(self, request: Request, view: APIView) -> bool:
        if request.user and request.user.is_authenticated:
            return True

        if credential_check_for(request).status is CredentialStatus.EXPIRED:
            raise UnauthenticatedError("Token has expired", error_code=TOKEN_EXPIRED)
        raise UnauthenticatedError("Authentication credentials were not provided")
